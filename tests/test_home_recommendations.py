"""Tests for services/recommendation/home.py"""

import asyncio
import time
from datetime import datetime
from unittest.mock import AsyncMock

from conftest import FakeTVDB, build_tvdb_service, days_ago, make_item
from homeshelf.models.tvdb import Candidate, CandidateSet, CandidateType, RecordType
from homeshelf.services.recommendation.home import (
    HomeRecommendationService,
    build_genre_taste_profile,
    merge_unique,
    score_top_pick,
)


class FakeJellyfin:
    def __init__(self, library=None, watched=None):
        self.library = library or []
        self.watched = watched or []
        self.library_calls = 0

    async def get_library_items(self, user_id):
        self.library_calls += 1
        return [item.model_copy(deep=True) for item in self.library]

    async def get_watched_items(self, user_id):
        return list(self.watched)


class StubTVDB:
    def __init__(self, candidates=None, delay=0.0, hang=False):
        self.candidates = candidates or CandidateSet()
        self.delay = delay
        self.hang = hang
        self.limits = []

    async def get_new_and_popular_candidates(self, limit=60):
        self.limits.append(limit)
        if self.hang:
            await asyncio.Event().wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.candidates


def new(title, record_type=RecordType.MOVIE):
    return Candidate(title=title, record_type=record_type, candidate_type=CandidateType.NEW)


def popular(title, record_type=RecordType.MOVIE):
    return Candidate(title=title, record_type=record_type, candidate_type=CandidateType.POPULAR)


def ids(items):
    return [item.id for item in items]


class TestBuildGenreTasteProfile:
    """Tests for build_genre_taste_profile"""

    def test_weights_decay_every_twenty_items(self):
        watched = [make_item(i, f"W{i}", Genres=["Drama"]) for i in range(41)]
        profile = build_genre_taste_profile(watched)
        assert profile["drama"] == 20 * 12 + 20 * 11 + 1 * 10

    def test_weight_never_drops_below_one(self):
        watched = [make_item(i, f"W{i}", Genres=[]) for i in range(400)]
        watched.append(make_item(999, "Oldest", Genres=["Horror"]))
        assert build_genre_taste_profile(watched) == {"horror": 1}

    def test_genres_are_lowercased(self):
        watched = [make_item(1, "A", Genres=["Sci-Fi", "Drama"]), make_item(2, "B", Genres=["sci-fi"])]
        assert build_genre_taste_profile(watched) == {"sci-fi": 24, "drama": 12}

    def test_missing_genres(self):
        assert build_genre_taste_profile([make_item(1, "A", Genres=None)]) == {}


class TestScoreTopPick:
    """Tests for score_top_pick"""

    def test_genre_boost_plus_double_rating(self):
        item = make_item(1, "A", Genres=["Drama", "Comedy", "Western"], CommunityRating=7.5)
        assert score_top_pick(item, {"drama": 12, "comedy": 3}) == 12 + 3 + 15.0

    def test_missing_rating_counts_as_zero(self):
        assert score_top_pick(make_item(1, "A", Genres=["Drama"]), {"drama": 5}) == 5


class TestMergeUnique:
    """Tests for merge_unique"""

    def test_first_occurrence_wins_and_flags_new(self):
        a, b, c = make_item(1, "A"), make_item(2, "B"), make_item(3, "C")
        merged = merge_unique(([a], True), ([a, b], False), ([c, b], True))
        assert ids(merged) == ["1", "2", "3"]
        assert a.is_recent_new_badge is True
        assert b.is_recent_new_badge is None
        assert c.is_recent_new_badge is True


class TestGetNewAndPopularItems:
    """Tests for HomeRecommendationService.get_new_and_popular_items"""

    def test_merges_sub_lists_in_priority_order(self):
        library = [
            make_item("lib-new-older", "Quiet Film", PremiereDate=days_ago(40), CommunityRating=5),
            make_item("lib-new", "Brand New", PremiereDate=days_ago(5), CommunityRating=6),
            make_item("tvdb-popular", "Big Hit", PremiereDate=days_ago(100), CommunityRating=6),
            make_item("lib-popular", "Well Rated", PremiereDate=days_ago(150), CommunityRating=9),
            make_item("old", "Classic", PremiereDate=days_ago(900), CommunityRating=10),
        ]
        candidates = CandidateSet(
            new_candidates=[new("Quiet Film"), new("Classic")],
            popular_candidates=[popular("Big Hit"), popular("Classic")],
        )
        service = HomeRecommendationService(FakeJellyfin(library), StubTVDB(candidates))

        result = asyncio.run(service.get_new_and_popular_items("user"))

        assert ids(result) == ["lib-new", "lib-new-older", "tvdb-popular", "lib-popular"]
        assert [item.is_recent_new_badge for item in result] == [True, True, None, None]

    def test_asks_tvdb_for_eighty_candidates(self):
        tvdb = StubTVDB()
        service = HomeRecommendationService(FakeJellyfin([]), tvdb)
        asyncio.run(service.get_new_and_popular_items("user"))
        assert tvdb.limits == [80]

    def test_truncates_to_limit(self):
        library = [make_item(i, f"Item {i}", DateCreated=days_ago(i)) for i in range(40)]
        service = HomeRecommendationService(FakeJellyfin(library), StubTVDB())

        result = asyncio.run(service.get_new_and_popular_items("user"))

        assert ids(result) == [str(i) for i in range(24)]

    def test_falls_back_to_rating_when_nothing_recent(self):
        library = [
            make_item(1, "A", PremiereDate=days_ago(800), CommunityRating=6),
            make_item(2, "B", PremiereDate=days_ago(900), CommunityRating=8),
            make_item(3, "C"),
        ]
        service = HomeRecommendationService(FakeJellyfin(library), StubTVDB())

        result = asyncio.run(service.get_new_and_popular_items("user"))

        assert ids(result) == ["2", "1", "3"]
        assert all(item.is_recent_new_badge is None for item in result)

    def test_slow_tvdb_falls_back_to_library_only(self):
        library = [
            make_item("recent", "Recent", PremiereDate=days_ago(3)),
            make_item("tvdb-only", "Hyped", PremiereDate=days_ago(90), CommunityRating=1),
        ]
        service = HomeRecommendationService(FakeJellyfin(library), StubTVDB(hang=True), tvdb_timeout=0.05)

        started = time.monotonic()
        result = asyncio.run(service.get_new_and_popular_items("user"))

        assert time.monotonic() - started < 1
        assert ids(result) == ["recent", "tvdb-only"]

    def test_library_failure_gives_empty_list(self):
        jellyfin = FakeJellyfin()
        jellyfin.get_library_items = AsyncMock(side_effect=RuntimeError("server down"))
        service = HomeRecommendationService(jellyfin, StubTVDB())

        assert asyncio.run(service.get_new_and_popular_items("user")) == []

    def test_unexpected_tvdb_error_gives_empty_list(self):
        tvdb = StubTVDB()
        tvdb.get_new_and_popular_candidates = AsyncMock(side_effect=ValueError("bad data"))
        service = HomeRecommendationService(FakeJellyfin([make_item(1, "A")]), tvdb)

        assert asyncio.run(service.get_new_and_popular_items("user")) == []

    def test_full_pipeline_reuses_cached_candidates(self):
        year = datetime.now().year
        fake = FakeTVDB()
        fake.set_titles("/movies/filter", "firstAired", year, [{"name": "Fresh Movie", "year": year}])
        fake.set_titles("/series/filter", "score", None, [{"name": "Hit Show", "score": 90}])
        library = [
            make_item("m1", "Fresh Movie (2025)", PremiereDate=days_ago(20), ProductionYear=year),
            make_item("s1", "Hit Show", "Series", PremiereDate=days_ago(100), CommunityRating=7),
            make_item("m2", "Something Else", PremiereDate=days_ago(10)),
        ]
        service = HomeRecommendationService(FakeJellyfin(library), build_tvdb_service(fake), tvdb_timeout=5)

        async def run():
            first = await service.get_new_and_popular_items("user")
            calls_after_first = len(fake.calls)
            second = await service.get_new_and_popular_items("user")
            return first, second, calls_after_first

        first, second, calls_after_first = asyncio.run(run())

        assert ids(first) == ["m2", "m1", "s1"]
        assert [item.to_api() for item in first] == [item.to_api() for item in second]
        assert calls_after_first == 7
        assert len(fake.calls) == calls_after_first


class TestGetTopPicksItems:
    """Tests for HomeRecommendationService.get_top_picks_items"""

    def test_ranks_unplayed_by_taste_and_rating(self):
        watched = [make_item(f"w{i}", f"Watched {i}", Genres=["Horror"]) for i in range(3)]
        library = [
            make_item("comedy", "Laughs", Genres=["Comedy"], CommunityRating=9),
            make_item("horror", "Scares", Genres=["Horror"], CommunityRating=5),
            make_item("seen", "Seen It", Genres=["Horror"], CommunityRating=10, UserData={"Played": True}),
            make_item("plain", "Plain", CommunityRating=2),
        ]
        service = HomeRecommendationService(FakeJellyfin(library, watched), StubTVDB())

        result = asyncio.run(service.get_top_picks_items("user"))

        # horror: 36 + 10, comedy: 0 + 18, plain: 4
        assert ids(result) == ["horror", "comedy", "plain"]

    def test_equal_scores_keep_library_order(self):
        library = [make_item(i, f"Item {i}", CommunityRating=5) for i in range(5)]
        service = HomeRecommendationService(FakeJellyfin(library), StubTVDB())

        assert ids(asyncio.run(service.get_top_picks_items("user"))) == ["0", "1", "2", "3", "4"]

    def test_returns_at_most_limit(self):
        library = [make_item(i, f"Item {i}", CommunityRating=i % 10) for i in range(60)]
        service = HomeRecommendationService(FakeJellyfin(library), StubTVDB())

        assert len(asyncio.run(service.get_top_picks_items("user"))) == 24

    def test_failure_gives_empty_list(self):
        jellyfin = FakeJellyfin([make_item(1, "A")])
        jellyfin.get_watched_items = AsyncMock(side_effect=RuntimeError("boom"))
        service = HomeRecommendationService(jellyfin, StubTVDB())

        assert asyncio.run(service.get_top_picks_items("user")) == []

    def test_does_not_touch_tvdb(self):
        tvdb = StubTVDB()
        service = HomeRecommendationService(FakeJellyfin([make_item(1, "A")]), tvdb)
        asyncio.run(service.get_top_picks_items("user"))
        assert tvdb.limits == []
