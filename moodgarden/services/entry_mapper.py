"""Entry mapper: raw stat row -> sanitized client-facing leaderboard entry.

``map_entry`` is total. Malformed privacy settings, corrupt counters and
missing display fields are defaulted, never raised.
"""

import math
from collections.abc import Mapping
from typing import Any

from moodgarden.schemas import (
    EntryPrivacySettings,
    EntryStats,
    EntryUser,
    EntryVisibility,
    LeaderboardEntry,
)
from moodgarden.services.metrics import LeaderboardCategory, finite_or_zero, get_metric
from moodgarden.services.periods import LeaderboardPeriod
from moodgarden.services.stat_store import USER_ID_FIELD
from moodgarden.services.visibility import normalize_privacy_settings

DISPLAY_FIELDS = ("first_name", "last_name", "username", "photo_url", "garden_theme")
STAT_COUNTERS = (
    "level",
    "experience",
    "current_streak",
    "longest_streak",
    "total_elements",
    "rare_elements_found",
)


def _user_id(value: Any) -> int | str:
    if isinstance(value, (int, str)) and not isinstance(value, bool):
        return value
    return "" if value is None else str(value)


def _display_text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def map_entry(
    record: Mapping[str, Any],
    category: LeaderboardCategory,
    period: LeaderboardPeriod,
    rank: int,
) -> LeaderboardEntry:
    category = LeaderboardCategory(category)
    metric = get_metric(category)
    privacy = normalize_privacy_settings(record.get("privacy_settings"))

    score = metric.score(record)
    if not math.isfinite(score):
        score = 0

    counters = {name: finite_or_zero(record.get(name)) for name in STAT_COUNTERS}

    return LeaderboardEntry(
        rank=rank,
        score=score,
        category=category.value,
        period=LeaderboardPeriod(period).value,
        visibility=EntryVisibility(
            isProfileHidden=not privacy["showProfile"],
            isGardenHidden=not privacy["shareGarden"],
            isAchievementsHidden=not privacy["shareAchievements"],
        ),
        user=EntryUser(
            telegram_id=_user_id(record.get(USER_ID_FIELD)),
            level=counters["level"],
            privacy_settings=EntryPrivacySettings(**privacy),
            **{name: _display_text(record.get(name)) for name in DISPLAY_FIELDS},
        ),
        stats=EntryStats(
            tieScore=finite_or_zero(metric.tie_break(record)),
            **counters,
        ),
    )
