import asyncio
import re
import time
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from cachetools import TTLCache
from loguru import logger

from homeshelf.core.config import settings
from homeshelf.core.constants import TVDB_DEFAULT_CANDIDATE_LIMIT
from homeshelf.models.tvdb import Candidate, CandidateSet, CandidateType, RecordType
from homeshelf.services.tvdb.auth import TVDBTokenBroker
from homeshelf.services.tvdb.client import TVDBClient

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_year(value: Any) -> int | None:
    """
    Leniently read a year from a string or number.

    Reads the leading integer ("2021", "2021-05-01", 2021.0 all give 2021). Anything
    without one gives None rather than 0.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        return int(value) if value == value and abs(value) != float("inf") else None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def extract_records(payload: Any) -> list[dict[str, Any]]:
    """TVDB returns either ``{"data": [...]}`` or ``{"data": {"items": [...]}}``."""
    if not isinstance(payload, dict):
        return []
    data = payload.get("data")
    if isinstance(data, list):
        records = data
    elif isinstance(data, dict) and isinstance(data.get("items"), list):
        records = data["items"]
    else:
        return []
    return [record for record in records if isinstance(record, dict)]


def _first_text(*values: Any) -> str:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def to_candidates(
    records: Iterable[dict[str, Any]], record_type: RecordType, candidate_type: CandidateType
) -> list[Candidate]:
    candidates = []
    for record in records:
        title = _first_text(record.get("name"), record.get("title"))
        if not title:
            continue
        score = record.get("score")
        candidates.append(
            Candidate(
                title=title,
                year=parse_year(record.get("year")),
                score=score if isinstance(score, (int, float)) and not isinstance(score, bool) else None,
                record_type=record_type,
                candidate_type=candidate_type,
            )
        )
    return candidates


def dedupe_candidates(candidates: Iterable[Candidate]) -> list[Candidate]:
    """Drop repeats of (record type, lowercased title, year); the first one seen is kept."""
    seen = set()
    deduped = []
    for candidate in candidates:
        key = candidate.dedupe_key
        if key in seen:
            continue
        seen.add(key)
        deduped.append(candidate)
    return deduped


class TVDBService:
    """
    Fetches "new" and "popular" title candidates from TVDB.

    Results are cached per requested limit for a few minutes. Concurrent requests for
    the same limit share a single fetch.
    """

    def __init__(
        self,
        client: TVDBClient | None = None,
        token_broker: TVDBTokenBroker | None = None,
        candidates_ttl: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client or TVDBClient()
        self.auth = token_broker or TVDBTokenBroker(self.client, clock=clock)
        ttl = candidates_ttl if candidates_ttl is not None else settings.TVDB_CANDIDATES_TTL_SECONDS
        self._candidates: TTLCache = TTLCache(maxsize=32, ttl=ttl, timer=clock)
        self._pending: dict[int, asyncio.Task] = {}
        self._generation = 0

    async def close(self):
        """Close the underlying HTTP client."""
        await self.client.close()

    def clear_cache(self) -> None:
        """Drop cached candidates. Fetches already in flight finish but are not cached."""
        self._generation += 1
        self._candidates.clear()
        self._pending.clear()

    async def fetch_filtered_titles(
        self,
        record_type: RecordType,
        candidate_type: CandidateType,
        sort: str,
        year: int | None = None,
    ) -> list[Candidate]:
        token = await self.auth.get_token()
        kind = "movies" if record_type == RecordType.MOVIE else "series"
        payload = await self.client.filter_titles(kind, sort=sort, token=token, year=year)
        return to_candidates(extract_records(payload), record_type, candidate_type)

    async def get_new_and_popular_candidates(self, limit: int = TVDB_DEFAULT_CANDIDATE_LIMIT) -> CandidateSet:
        """Get up to ``limit`` new and ``limit`` popular candidates. Never raises."""
        cached = self._candidates.get(limit)
        if cached is not None:
            return cached

        task = self._pending.get(limit)
        if task is None:
            task = asyncio.ensure_future(self._fetch_candidates(limit, self._generation))
            self._pending[limit] = task
            task.add_done_callback(lambda done, key=limit: self._clear_pending(key, done))

        return await asyncio.shield(task)

    def _clear_pending(self, limit: int, task: asyncio.Task) -> None:
        if self._pending.get(limit) is task:
            del self._pending[limit]

    async def _fetch_candidates(self, limit: int, generation: int) -> CandidateSet:
        current_year = datetime.now().year
        previous_year = current_year - 1
        movie, series = RecordType.MOVIE, RecordType.SERIES
        new, popular = CandidateType.NEW, CandidateType.POPULAR

        queries = {
            "new movies (current year)": self.fetch_filtered_titles(movie, new, "firstAired", current_year),
            "new series (current year)": self.fetch_filtered_titles(series, new, "firstAired", current_year),
            "new movies (previous year)": self.fetch_filtered_titles(movie, new, "firstAired", previous_year),
            "new series (previous year)": self.fetch_filtered_titles(series, new, "firstAired", previous_year),
            "popular movies": self.fetch_filtered_titles(movie, popular, "score"),
            "popular series": self.fetch_filtered_titles(series, popular, "score"),
        }
        results = await asyncio.gather(*queries.values(), return_exceptions=True)

        collected: list[list[Candidate]] = []
        failures = 0
        for label, result in zip(queries, results):
            if isinstance(result, BaseException):
                failures += 1
                logger.warning(f"TVDB {label} query failed: {result}")
                collected.append([])
            else:
                collected.append(result)

        new_movies_cur, new_series_cur, new_movies_prev, new_series_prev, popular_movies, popular_series = collected
        value = CandidateSet(
            new_candidates=dedupe_candidates(new_movies_cur + new_series_cur + new_movies_prev + new_series_prev)[
                :limit
            ],
            popular_candidates=dedupe_candidates(popular_movies + popular_series)[:limit],
        )

        logger.info(
            f"TVDB candidates: {len(value.new_candidates)} new, {len(value.popular_candidates)} popular "
            f"({failures}/{len(queries)} queries failed)"
        )
        if generation == self._generation:
            self._candidates[limit] = value
        return value


_tvdb_service: TVDBService | None = None


def get_tvdb_service() -> TVDBService:
    """Process-wide TVDBService; its token and candidate caches live as long as the app."""
    global _tvdb_service
    if _tvdb_service is None:
        _tvdb_service = TVDBService()
    return _tvdb_service
