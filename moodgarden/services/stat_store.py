"""Stat store: read, count and point-lookup contracts over the users table.

The ranking engine only ever talks to a ``StatStore``. ``SqlStatStore`` is
the production implementation; every driver or SQLAlchemy failure leaves
this module as ``StoreUnavailableError``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy import Select, cast, func, literal, or_, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from moodgarden.logging_config import get_logger
from moodgarden.models import User
from moodgarden.services.exceptions import StoreUnavailableError
from moodgarden.services.periods import ActivityWindow

logger = get_logger(__name__)

StatRecord = Mapping[str, Any]
OrderBy = Sequence[str]

USER_ID_FIELD = "telegram_id"

STAT_COLUMNS = (
    User.telegram_id,
    User.first_name,
    User.last_name,
    User.username,
    User.photo_url,
    User.garden_theme,
    User.level,
    User.experience,
    User.current_streak,
    User.longest_streak,
    User.total_elements,
    User.rare_elements_found,
    User.privacy_settings,
    User.streak_last_checkin,
    User.last_visit_date,
)
_COLUMNS_BY_NAME = {column.key: column for column in STAT_COLUMNS}


@dataclass(frozen=True)
class FieldBound:
    field: str
    value: int | float


@dataclass(frozen=True)
class StatFilter:
    """Conjunction of the predicates the ranking engine needs.

    Numeric bounds compare the field with NULL read as 0, matching how the
    metric registry coerces missing values.
    """

    activity: ActivityWindow | None = None
    visible_only: bool = False
    exclude_user_id: int | str | None = None
    greater_than: FieldBound | None = None
    equal_to: FieldBound | None = None


class StatStore(Protocol):
    async def query(
        self, stat_filter: StatFilter, order_by: OrderBy, limit: int
    ) -> list[StatRecord]:
        """Up to ``limit`` records, ``order_by`` fields descending, nulls last."""
        ...

    async def count(self, stat_filter: StatFilter) -> int:
        ...

    async def get_one(
        self, user_id: int | str, stat_filter: StatFilter | None = None
    ) -> StatRecord | None:
        ...


# ---------------------------------------------------------------------------
# SQL translation
# ---------------------------------------------------------------------------


def _column(field: str):
    try:
        return _COLUMNS_BY_NAME[field]
    except KeyError:
        raise ValueError(f"Unknown stat field: {field}") from None


def visible_profile_condition() -> ColumnElement[bool]:
    """``privacy_settings -> 'showProfile'`` is anything but JSON false."""
    return or_(
        User.privacy_settings.is_(None),
        User.privacy_settings["showProfile"].is_distinct_from(cast(literal("false"), JSONB)),
    )


def build_conditions(stat_filter: StatFilter) -> list[ColumnElement[bool]]:
    conditions: list[ColumnElement[bool]] = []

    if stat_filter.activity is not None:
        conditions.append(_column(stat_filter.activity.field) >= stat_filter.activity.cutoff)

    if stat_filter.visible_only:
        conditions.append(visible_profile_condition())

    if stat_filter.exclude_user_id is not None:
        conditions.append(User.telegram_id != stat_filter.exclude_user_id)

    if stat_filter.greater_than is not None:
        bound = stat_filter.greater_than
        conditions.append(func.coalesce(_column(bound.field), 0) > bound.value)

    if stat_filter.equal_to is not None:
        bound = stat_filter.equal_to
        conditions.append(func.coalesce(_column(bound.field), 0) == bound.value)

    return conditions


def build_query(stat_filter: StatFilter, order_by: OrderBy, limit: int) -> Select:
    return (
        select(*STAT_COLUMNS)
        .where(*build_conditions(stat_filter))
        .order_by(*(_column(field).desc().nulls_last() for field in order_by))
        .limit(limit)
    )


def build_count(stat_filter: StatFilter) -> Select:
    return select(func.count()).select_from(User).where(*build_conditions(stat_filter))


def build_get_one(user_id: int | str, stat_filter: StatFilter | None = None) -> Select:
    conditions = build_conditions(stat_filter) if stat_filter is not None else []
    return select(*STAT_COLUMNS).where(User.telegram_id == user_id, *conditions)


# ---------------------------------------------------------------------------
# SQLAlchemy implementation
# ---------------------------------------------------------------------------


class SqlStatStore:
    """StatStore over an AsyncSession. Read-only; never commits."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _execute(self, operation: str, statement: Select):
        try:
            return await self.session.execute(statement)
        except (SQLAlchemyError, OSError) as e:
            logger.error("stat_store_query_failed", operation=operation, error=str(e))
            raise StoreUnavailableError(operation, str(e)) from e

    async def query(
        self, stat_filter: StatFilter, order_by: OrderBy, limit: int
    ) -> list[StatRecord]:
        result = await self._execute("query", build_query(stat_filter, order_by, limit))
        return [dict(row._mapping) for row in result.all()]

    async def count(self, stat_filter: StatFilter) -> int:
        result = await self._execute("count", build_count(stat_filter))
        return int(result.scalar() or 0)

    async def get_one(
        self, user_id: int | str, stat_filter: StatFilter | None = None
    ) -> StatRecord | None:
        result = await self._execute("get_one", build_get_one(user_id, stat_filter))
        row = result.first()
        return dict(row._mapping) if row is not None else None
