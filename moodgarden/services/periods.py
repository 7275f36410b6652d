"""Period resolver: maps a leaderboard period to an activity filter.

Monthly boards do not rank by stat gained during the month. They rank by
the current cumulative stat among users whose proxy activity field falls
on or after the first instant of the current UTC month.
"""

import enum
from dataclasses import dataclass
from datetime import date, datetime

from moodgarden.services.metrics import LeaderboardCategory
from moodgarden.utils.datetime_utils import start_of_month, utcnow


class LeaderboardPeriod(str, enum.Enum):
    all_time = "all_time"
    monthly = "monthly"


@dataclass(frozen=True)
class ActivityWindow:
    """``field >= cutoff``; date-only windows compare calendar dates."""

    field: str
    cutoff: datetime | date
    date_only: bool = False


# category -> (activity proxy field, compare dates only)
ACTIVITY_FIELDS: dict[LeaderboardCategory, tuple[str, bool]] = {
    LeaderboardCategory.level: ("last_visit_date", False),
    LeaderboardCategory.streak: ("streak_last_checkin", True),
    LeaderboardCategory.elements: ("last_visit_date", False),
}


def resolve_cutoff(period: LeaderboardPeriod, now: datetime | None = None) -> datetime | None:
    """UTC cutoff for ``period``, or None when the period is unrestricted."""
    if LeaderboardPeriod(period) is LeaderboardPeriod.all_time:
        return None
    return start_of_month(now or utcnow())


def activity_window(
    category: LeaderboardCategory,
    period: LeaderboardPeriod,
    now: datetime | None = None,
) -> ActivityWindow | None:
    cutoff = resolve_cutoff(period, now)
    if cutoff is None:
        return None
    field, date_only = ACTIVITY_FIELDS[LeaderboardCategory(category)]
    return ActivityWindow(
        field=field,
        cutoff=cutoff.date() if date_only else cutoff,
        date_only=date_only,
    )
