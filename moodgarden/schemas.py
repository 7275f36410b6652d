"""Pydantic v2 response schemas for the leaderboard endpoints."""

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Leaderboard entries
# ---------------------------------------------------------------------------


class EntryVisibility(BaseModel):
    model_config = ConfigDict(frozen=True)

    isProfileHidden: bool = False
    isGardenHidden: bool = False
    isAchievementsHidden: bool = False


class EntryPrivacySettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    showProfile: bool = True
    shareGarden: bool = True
    shareAchievements: bool = True


class EntryUser(BaseModel):
    """Display-safe subset of a user's row."""

    model_config = ConfigDict(frozen=True)

    telegram_id: int | str
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None
    photo_url: str | None = None
    garden_theme: str | None = None
    level: int | float = 0
    privacy_settings: EntryPrivacySettings = Field(default_factory=EntryPrivacySettings)


class EntryStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: int | float = 0
    experience: int | float = 0
    current_streak: int | float = 0
    longest_streak: int | float = 0
    total_elements: int | float = 0
    rare_elements_found: int | float = 0
    tieScore: int | float = 0


class LeaderboardEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    rank: int = Field(..., ge=1)
    score: int | float
    category: str
    period: str
    visibility: EntryVisibility
    user: EntryUser
    stats: EntryStats


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntry] = Field(default_factory=list)
    viewerPosition: LeaderboardEntry | None = None
    category: str
    period: str
    timestamp: str


class LeaderboardEnvelope(BaseModel):
    """``{success, data}`` on success, ``{success, error}`` on failure."""

    success: bool
    data: LeaderboardResponse | None = None
    error: str | None = None


class HealthCheckResponse(BaseModel):
    status: str
    service: str
