"""Leaderboard ranking: top-K boards and single-viewer rank resolution.

Top-K overfetches a window from the store and re-sorts it in memory with a
final user-id tie-break, so identical snapshots always yield identical
boards even when the store's ORDER BY leaves ties unresolved.

A viewer's rank is never found by scanning the population. It comes from a
point lookup plus two counting queries:

    rank = 1 + #(visible others with primary > mine)
             + #(visible others with primary == mine and secondary > mine)

The top-K list does not filter hidden profiles while the counts do. That
asymmetry is the observed product behavior and is kept as-is.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from moodgarden.logging_config import get_logger
from moodgarden.schemas import LeaderboardEntry, LeaderboardResponse
from moodgarden.services.entry_mapper import map_entry
from moodgarden.services.exceptions import InvalidLeaderboardRequestError
from moodgarden.services.metrics import LeaderboardCategory, MetricDefinition, get_metric
from moodgarden.services.periods import LeaderboardPeriod, activity_window
from moodgarden.services.stat_store import (
    USER_ID_FIELD,
    FieldBound,
    StatFilter,
    StatRecord,
    StatStore,
)
from moodgarden.utils.datetime_utils import isoformat_z, utcnow

logger = get_logger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 50
OVERFETCH_FACTOR = 3
FETCH_CAP = 150
# users.telegram_id is BIGINT
MAX_USER_ID = 2**63 - 1

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


def fetch_window(limit: int, factor: int = OVERFETCH_FACTOR, cap: int = FETCH_CAP) -> int:
    """Number of candidates to read for a board of ``limit`` entries."""
    return min(limit * factor, cap)


def user_sort_key(user_id: Any) -> tuple[int, int, str]:
    """Total order over user ids: numeric ids numerically, then the rest as text."""
    if isinstance(user_id, int) and not isinstance(user_id, bool):
        return (0, user_id, "")
    try:
        return (0, int(str(user_id).strip()), "")
    except ValueError:
        return (1, 0, str(user_id))


def ranking_key(metric: MetricDefinition) -> Callable[[StatRecord], tuple]:
    """Primary desc, secondary desc, user id asc."""

    def key(record: StatRecord) -> tuple:
        return (
            -metric.score(record),
            -metric.tie_break(record),
            user_sort_key(record.get(USER_ID_FIELD)),
        )

    return key


# ---------------------------------------------------------------------------
# Request parsing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LeaderboardQuery:
    category: LeaderboardCategory
    period: LeaderboardPeriod
    limit: int = DEFAULT_LIMIT
    include_viewer: bool = True
    viewer_id: int | None = None

    @classmethod
    def from_params(
        cls,
        category: str | None,
        period: str | None,
        limit: str | int | None = None,
        include_viewer: str | bool | None = None,
        viewer_id: str | int | None = None,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
    ) -> LeaderboardQuery:
        """Validate raw request parameters.

        Category and period are required and matched case-insensitively;
        there is no fallback to a default board. Limit is clamped to
        ``[1, max_limit]``.
        """
        return cls(
            category=_parse_choice(LeaderboardCategory, category, "category"),
            period=_parse_choice(LeaderboardPeriod, period, "period"),
            limit=_parse_limit(limit, default_limit, max_limit),
            include_viewer=_parse_bool(include_viewer, default=True, field="includeViewer"),
            viewer_id=_parse_viewer_id(viewer_id),
        )


def _parse_choice(enum_cls, raw: Any, field: str):
    value = raw.strip().lower() if isinstance(raw, str) else raw
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidLeaderboardRequestError(
            f"Invalid {field}: {raw!r}. Must be one of: {allowed}", field=field
        ) from None


def _parse_limit(raw: Any, default_limit: int, max_limit: int) -> int:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        limit = default_limit
    elif isinstance(raw, bool):
        raise InvalidLeaderboardRequestError("limit must be an integer", field="limit")
    else:
        try:
            limit = int(str(raw).strip())
        except ValueError:
            raise InvalidLeaderboardRequestError(
                "limit must be an integer", field="limit"
            ) from None
    return max(1, min(limit, max_limit))


def _parse_bool(raw: Any, default: bool, field: str) -> bool:
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    value = str(raw).strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise InvalidLeaderboardRequestError(f"{field} must be a boolean", field=field)


def _parse_viewer_id(raw: Any) -> int | None:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    if isinstance(raw, bool):
        raise InvalidLeaderboardRequestError(
            "viewerTelegramId must be a positive integer", field="viewerTelegramId"
        )
    try:
        viewer_id = int(str(raw).strip())
    except ValueError:
        raise InvalidLeaderboardRequestError(
            "viewerTelegramId must be a positive integer", field="viewerTelegramId"
        ) from None
    if not 0 < viewer_id <= MAX_USER_ID:
        raise InvalidLeaderboardRequestError(
            "viewerTelegramId must be a positive integer", field="viewerTelegramId"
        )
    return viewer_id


# ---------------------------------------------------------------------------
# Top-K ranker
# ---------------------------------------------------------------------------


class TopKRanker:
    """Builds the public top-K board for a category and period."""

    def __init__(
        self,
        store: StatStore,
        overfetch_factor: int = OVERFETCH_FACTOR,
        fetch_cap: int = FETCH_CAP,
    ):
        self.store = store
        self.overfetch_factor = overfetch_factor
        self.fetch_cap = fetch_cap

    async def rank(
        self,
        category: LeaderboardCategory,
        period: LeaderboardPeriod,
        limit: int,
        now: datetime | None = None,
    ) -> list[LeaderboardEntry]:
        if limit < 1:
            raise InvalidLeaderboardRequestError("limit must be at least 1", field="limit")

        metric = get_metric(category)
        # No visibility filter here: hidden profiles still appear on the public board.
        stat_filter = StatFilter(activity=activity_window(category, period, now))
        window = fetch_window(limit, self.overfetch_factor, self.fetch_cap)

        records = await self.store.query(stat_filter, metric.order_by, window)

        entries: list[LeaderboardEntry] = []
        skipped = 0
        for record in sorted(records, key=ranking_key(metric)):
            if len(entries) >= limit:
                break
            if not math.isfinite(metric.score(record)):
                skipped += 1
                continue
            entries.append(map_entry(record, category, period, rank=len(entries) + 1))

        if skipped:
            logger.warning(
                "leaderboard_records_skipped",
                category=metric.category.value,
                reason="non_finite_score",
                skipped=skipped,
            )
        return entries


# ---------------------------------------------------------------------------
# Viewer rank resolver
# ---------------------------------------------------------------------------


class ViewerRankResolver:
    """Resolves one user's global rank with two counting queries."""

    def __init__(self, store: StatStore):
        self.store = store

    async def rank_of(
        self,
        category: LeaderboardCategory,
        period: LeaderboardPeriod,
        viewer_id: int | str,
        now: datetime | None = None,
    ) -> LeaderboardEntry | None:
        metric = get_metric(category)
        window = activity_window(category, period, now)

        record = await self.store.get_one(viewer_id, StatFilter(activity=window))
        if record is None:
            return None

        score = metric.score(record)
        if not math.isfinite(score):
            return None

        competitors = StatFilter(activity=window, visible_only=True, exclude_user_id=viewer_id)

        ahead = await self.store.count(
            replace(competitors, greater_than=FieldBound(metric.primary_field, score))
        )

        tied_ahead = 0
        if metric.secondary_field is not None:
            tied_ahead = await self.store.count(
                replace(
                    competitors,
                    equal_to=FieldBound(metric.primary_field, score),
                    greater_than=FieldBound(metric.secondary_field, metric.tie_break(record)),
                )
            )

        return map_entry(record, category, period, rank=1 + ahead + tied_ahead)


# ---------------------------------------------------------------------------
# Request orchestration
# ---------------------------------------------------------------------------


class LeaderboardService:
    """Answers a leaderboard request: top-K plus the viewer's position."""

    def __init__(
        self,
        store: StatStore,
        overfetch_factor: int = OVERFETCH_FACTOR,
        fetch_cap: int = FETCH_CAP,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ranker = TopKRanker(store, overfetch_factor=overfetch_factor, fetch_cap=fetch_cap)
        self.resolver = ViewerRankResolver(store)
        self.clock = clock

    async def get_leaderboard(self, query: LeaderboardQuery) -> LeaderboardResponse:
        now = self.clock()
        started = time.perf_counter()

        entries = await self.ranker.rank(query.category, query.period, query.limit, now=now)

        viewer_position: LeaderboardEntry | None = None
        if query.include_viewer and query.viewer_id is not None:
            viewer_position = _find_viewer(entries, query.viewer_id)
            if viewer_position is None:
                viewer_position = await self.resolver.rank_of(
                    query.category, query.period, query.viewer_id, now=now
                )
                logger.info(
                    "viewer_rank_resolved",
                    category=query.category.value,
                    period=query.period.value,
                    viewer_id=query.viewer_id,
                    rank=viewer_position.rank if viewer_position else None,
                )

        logger.info(
            "leaderboard_built",
            category=query.category.value,
            period=query.period.value,
            limit=query.limit,
            entries=len(entries),
            viewer_ranked=viewer_position is not None,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )

        return LeaderboardResponse(
            entries=entries,
            viewerPosition=viewer_position,
            category=query.category.value,
            period=query.period.value,
            timestamp=isoformat_z(now),
        )


def _find_viewer(entries: list[LeaderboardEntry], viewer_id: int) -> LeaderboardEntry | None:
    for entry in entries:
        if user_sort_key(entry.user.telegram_id) == user_sort_key(viewer_id):
            return entry
    return None

