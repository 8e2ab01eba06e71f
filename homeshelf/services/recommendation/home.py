import asyncio
from collections.abc import Iterable
from datetime import datetime, timezone

from loguru import logger

from homeshelf.core.async_utils import with_timeout
from homeshelf.core.config import settings
from homeshelf.core.constants import (
    HOME_SECTION_LIMIT,
    NEW_WINDOW_MONTHS,
    POPULAR_WINDOW_MONTHS,
    TASTE_DECAY_STEP,
    TASTE_MAX_WEIGHT,
    TASTE_MIN_WEIGHT,
    TOP_PICKS_RATING_MULTIPLIER,
    TVDB_HOME_CANDIDATE_LIMIT,
)
from homeshelf.models.library import LibraryItem
from homeshelf.models.tvdb import CandidateSet
from homeshelf.services.jellyfin.service import JellyfinService, get_jellyfin_service
from homeshelf.services.recommendation.matching import match_candidates
from homeshelf.services.recommendation.utils import is_within_last_months, sort_by_most_recent, sort_by_rating
from homeshelf.services.tvdb.service import TVDBService, get_tvdb_service


def build_genre_taste_profile(watched_items: Iterable[LibraryItem]) -> dict[str, int]:
    """
    Genre weights from watch history, most recent first.

    Every genre of the item at position ``i`` gains ``max(1, 12 - i // 20)``, so the
    latest twenty watches count twelve times as much as anything past the 220th.
    """
    weights: dict[str, int] = {}
    for index, item in enumerate(watched_items):
        recency_weight = max(TASTE_MIN_WEIGHT, TASTE_MAX_WEIGHT - index // TASTE_DECAY_STEP)
        for genre in item.genres:
            key = genre.lower()
            weights[key] = weights.get(key, 0) + recency_weight
    return weights


def score_top_pick(item: LibraryItem, taste_profile: dict[str, int]) -> float:
    genre_boost = sum(taste_profile.get(genre.lower(), 0) for genre in item.genres)
    return genre_boost + item.rating * TOP_PICKS_RATING_MULTIPLIER


def merge_unique(*groups: tuple[list[LibraryItem], bool]) -> list[LibraryItem]:
    """
    Concatenate item groups in priority order, keeping the first copy of each Id.

    Each group is ``(items, mark_as_new)``; items kept from a flagged group get the
    "new" badge. Items without an Id are dropped.
    """
    used_ids: set[str] = set()
    merged: list[LibraryItem] = []
    for items, mark_as_new in groups:
        for item in items:
            if not item.id or item.id in used_ids:
                continue
            used_ids.add(item.id)
            if mark_as_new:
                item.is_recent_new_badge = True
            merged.append(item)
    return merged


class HomeRecommendationService:
    """
    Builds the "New and Popular" and "Top picks for you" home rows.

    Both rows are best effort: any failure is logged and turns into an empty row, so
    the home screen never shows an error for them.
    """

    def __init__(
        self,
        jellyfin: JellyfinService,
        tvdb: TVDBService,
        tvdb_timeout: float | None = None,
        limit: int = HOME_SECTION_LIMIT,
    ):
        self.jellyfin = jellyfin
        self.tvdb = tvdb
        self.tvdb_timeout = tvdb_timeout if tvdb_timeout is not None else settings.TVDB_SECTION_TIMEOUT_SECONDS
        self.limit = limit

    async def get_new_and_popular_items(self, user_id: str) -> list[LibraryItem]:
        try:
            library_items, candidates = await asyncio.gather(
                self.jellyfin.get_library_items(user_id),
                with_timeout(
                    self.tvdb.get_new_and_popular_candidates(TVDB_HOME_CANDIDATE_LIMIT),
                    self.tvdb_timeout,
                    CandidateSet(),
                ),
            )

            if candidates.is_empty():
                logger.info(f"No TVDB candidates for {user_id}; New and Popular uses the library only")

            now = datetime.now(timezone.utc)

            def recent(months: int):
                return lambda item: is_within_last_months(item, months, now)

            new_from_library = sort_by_most_recent(list(filter(recent(NEW_WINDOW_MONTHS), library_items)))
            new_from_tvdb = list(
                filter(recent(NEW_WINDOW_MONTHS), match_candidates(library_items, candidates.new_candidates))
            )
            popular_from_tvdb = list(
                filter(recent(POPULAR_WINDOW_MONTHS), match_candidates(library_items, candidates.popular_candidates))
            )
            popular_from_library = sort_by_rating(list(filter(recent(POPULAR_WINDOW_MONTHS), library_items)))

            merged = merge_unique(
                (new_from_library, True),
                (new_from_tvdb, True),
                (popular_from_tvdb, False),
                (popular_from_library, False),
            )[: self.limit]

            logger.info(
                f"New and Popular for {user_id}: {len(new_from_library)} new in library, "
                f"{len(new_from_tvdb)} TVDB new, {len(popular_from_tvdb)} TVDB popular, "
                f"{len(popular_from_library)} popular in library -> {len(merged)} items"
            )
            if merged:
                return merged

            return sort_by_rating(library_items)[: self.limit]
        except Exception as e:
            logger.exception(f"Failed to build New and Popular for {user_id}: {e}")
            return []

    async def get_top_picks_items(self, user_id: str) -> list[LibraryItem]:
        try:
            library_items, watched_items = await asyncio.gather(
                self.jellyfin.get_library_items(user_id),
                self.jellyfin.get_watched_items(user_id),
            )

            taste_profile = build_genre_taste_profile(watched_items)
            scored = [(score_top_pick(item, taste_profile), item) for item in library_items if not item.is_played]
            scored.sort(key=lambda entry: entry[0], reverse=True)

            logger.info(
                f"Top picks for {user_id}: {len(taste_profile)} genres from {len(watched_items)} watched, "
                f"{len(scored)} unplayed candidates"
            )
            return [item for _, item in scored[: self.limit]]
        except Exception as e:
            logger.exception(f"Failed to build Top picks for {user_id}: {e}")
            return []


def get_home_recommendation_service() -> HomeRecommendationService:
    return HomeRecommendationService(jellyfin=get_jellyfin_service(), tvdb=get_tvdb_service())
