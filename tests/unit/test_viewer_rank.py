"""Unit tests for viewer rank resolution via counting queries."""

import random
from datetime import date, datetime, timezone

import pytest

from moodgarden.services.exceptions import StoreUnavailableError
from moodgarden.services.leaderboard_service import TopKRanker, ViewerRankResolver
from moodgarden.services.metrics import LeaderboardCategory
from moodgarden.services.periods import LeaderboardPeriod
from tests.factories import InMemoryStatStore, StatRecordFactory

NOW = datetime(2024, 3, 15, 12, 30, tzinfo=timezone.utc)
STREAK = LeaderboardCategory.streak
LEVEL = LeaderboardCategory.level
ALL_TIME = LeaderboardPeriod.all_time
MONTHLY = LeaderboardPeriod.monthly


class TestRankOf:
    async def test_rank_from_two_counts(self):
        store = InMemoryStatStore([
            StatRecordFactory.create(telegram_id=10, current_streak=5, longest_streak=10),
            StatRecordFactory.create(telegram_id=1, current_streak=8, longest_streak=8),
            StatRecordFactory.create(telegram_id=2, current_streak=5, longest_streak=3),
        ])
        entry = await ViewerRankResolver(store).rank_of(STREAK, ALL_TIME, 10, now=NOW)

        assert entry.rank == 2
        assert entry.user.telegram_id == 10
        assert entry.score == 5
        assert entry.stats.tieScore == 10

    async def test_tied_primary_with_higher_secondary_counts(self):
        store = InMemoryStatStore([
            StatRecordFactory.create(telegram_id=10, level=4, experience=100),
            StatRecordFactory.create(telegram_id=11, level=4, experience=150),
            StatRecordFactory.create(telegram_id=12, level=4, experience=50),
        ])
        entry = await ViewerRankResolver(store).rank_of(LEVEL, ALL_TIME, 10, now=NOW)
        assert entry.rank == 2

    async def test_never_scans_population(self):
        store = InMemoryStatStore([StatRecordFactory.create(telegram_id=i) for i in range(1, 20)])
        await ViewerRankResolver(store).rank_of(LEVEL, ALL_TIME, 5, now=NOW)
        assert store.operations() == ["get_one", "count", "count"]

    async def test_counts_exclude_viewer_and_hidden(self):
        store = InMemoryStatStore([StatRecordFactory.create(telegram_id=5)])
        await ViewerRankResolver(store).rank_of(LEVEL, MONTHLY, 5, now=NOW)

        count_filters = [args for name, args in store.calls if name == "count"]
        for stat_filter in count_filters:
            assert stat_filter.visible_only is True
            assert stat_filter.exclude_user_id == 5
            assert stat_filter.activity.field == "last_visit_date"

        ahead, tied = count_filters
        assert ahead.greater_than.field == "level"
        assert ahead.equal_to is None
        assert tied.equal_to.field == "level"
        assert tied.greater_than.field == "experience"


class TestUnrankedViewer:
    async def test_unknown_viewer(self):
        store = InMemoryStatStore([StatRecordFactory.create(telegram_id=1)])
        assert await ViewerRankResolver(store).rank_of(LEVEL, ALL_TIME, 999, now=NOW) is None

    async def test_inactive_in_period(self):
        store = InMemoryStatStore([
            StatRecordFactory.create(
                telegram_id=1, current_streak=50, streak_last_checkin=date(2024, 2, 10)
            ),
        ])
        resolver = ViewerRankResolver(store)

        assert await resolver.rank_of(STREAK, MONTHLY, 1, now=NOW) is None
        assert (await resolver.rank_of(STREAK, ALL_TIME, 1, now=NOW)).rank == 1

    async def test_non_finite_score(self):
        store = InMemoryStatStore([StatRecordFactory.create(telegram_id=1, level=float("inf"))])
        assert await ViewerRankResolver(store).rank_of(LEVEL, ALL_TIME, 1, now=NOW) is None
        assert store.operations() == ["get_one"]


class TestVisibilityAsymmetry:
    async def test_hidden_competitors_do_not_push_viewer_down(self):
        store = InMemoryStatStore([
            StatRecordFactory.create_hidden(telegram_id=1, level=20),
            StatRecordFactory.create(telegram_id=2, level=10),
        ])
        viewer = await ViewerRankResolver(store).rank_of(LEVEL, ALL_TIME, 2, now=NOW)
        board = await TopKRanker(store).rank(LEVEL, ALL_TIME, limit=10, now=NOW)

        assert viewer.rank == 1
        # The public board still lists the hidden profile above the viewer
        assert [e.user.telegram_id for e in board] == [1, 2]

    async def test_string_encoded_privacy_still_counts_as_competitor(self):
        store = InMemoryStatStore([
            StatRecordFactory.create(
                telegram_id=1, level=20, privacy_settings='{"showProfile": false}'
            ),
            StatRecordFactory.create(telegram_id=2, level=10),
        ])
        viewer = await ViewerRankResolver(store).rank_of(LEVEL, ALL_TIME, 2, now=NOW)
        board = await TopKRanker(store).rank(LEVEL, ALL_TIME, limit=10, now=NOW)

        # Counting only honors a JSON object; the entry mapper parses the string
        assert viewer.rank == 2
        assert board[0].user.telegram_id == 1
        assert board[0].visibility.isProfileHidden is True

    async def test_hidden_viewer_still_ranked(self):
        store = InMemoryStatStore([
            StatRecordFactory.create_hidden(telegram_id=1, level=3),
            StatRecordFactory.create(telegram_id=2, level=8),
        ])
        viewer = await ViewerRankResolver(store).rank_of(LEVEL, ALL_TIME, 1, now=NOW)

        assert viewer.rank == 2
        assert viewer.visibility.isProfileHidden is True


class TestAgreementWithTopK:
    async def test_matches_full_board_when_all_visible(self):
        rng = random.Random(42)
        pairs = rng.sample([(lvl, xp) for lvl in range(1, 8) for xp in range(0, 500, 25)], 40)
        records = [
            StatRecordFactory.create(telegram_id=i, level=lvl, experience=xp)
            for i, (lvl, xp) in enumerate(pairs, start=1)
        ]
        store = InMemoryStatStore(records, shuffle_ties=True, seed=5)

        board = await TopKRanker(store).rank(LEVEL, ALL_TIME, limit=len(records), now=NOW)
        positions = {e.user.telegram_id: e.rank for e in board}
        resolver = ViewerRankResolver(store)

        for record in records:
            entry = await resolver.rank_of(LEVEL, ALL_TIME, record["telegram_id"], now=NOW)
            assert entry.rank == positions[record["telegram_id"]]

    async def test_full_ties_share_the_leading_rank(self):
        store = InMemoryStatStore([
            StatRecordFactory.create(telegram_id=1, level=3, experience=10),
            StatRecordFactory.create(telegram_id=2, level=3, experience=10),
        ])
        resolver = ViewerRankResolver(store)

        assert (await resolver.rank_of(LEVEL, ALL_TIME, 1, now=NOW)).rank == 1
        assert (await resolver.rank_of(LEVEL, ALL_TIME, 2, now=NOW)).rank == 1


class TestStoreFailure:
    async def test_propagates(self):
        with pytest.raises(StoreUnavailableError):
            await ViewerRankResolver(InMemoryStatStore(fail=True)).rank_of(
                LEVEL, ALL_TIME, 1, now=NOW
            )
