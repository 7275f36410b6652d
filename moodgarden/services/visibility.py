"""Privacy settings normalization for leaderboard entries."""

import json
from collections.abc import Mapping
from typing import Any

from moodgarden.logging_config import get_logger

logger = get_logger(__name__)

PRIVACY_FLAGS = ("showProfile", "shareGarden", "shareAchievements")


def normalize_privacy_settings(raw: Any) -> dict[str, bool]:
    """Return the client-visible privacy flags, defaulting each to True.

    Accepts a mapping or a JSON-encoded string. Anything that is not an
    explicit boolean counts as absent.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.debug("privacy_settings_unparseable")
            raw = None
    if not isinstance(raw, Mapping):
        raw = {}
    return {
        flag: raw[flag] if isinstance(raw.get(flag), bool) else True
        for flag in PRIVACY_FLAGS
    }

