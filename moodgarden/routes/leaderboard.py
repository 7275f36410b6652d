"""Leaderboard endpoints."""

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from moodgarden.config import Settings, get_settings
from moodgarden.database import get_db
from moodgarden.logging_config import bind_leaderboard_context, get_logger
from moodgarden.schemas import LeaderboardEnvelope
from moodgarden.services.exceptions import InvalidLeaderboardRequestError, StoreUnavailableError
from moodgarden.services.leaderboard_service import LeaderboardQuery, LeaderboardService
from moodgarden.services.stat_store import SqlStatStore, StatStore

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["leaderboard"])

UNAVAILABLE_MESSAGE = "Leaderboard temporarily unavailable"


def get_stat_store(db: AsyncSession = Depends(get_db)) -> StatStore:
    """FastAPI dependency: stat store bound to the request's session."""
    return SqlStatStore(db)


def get_leaderboard_service(
    store: StatStore = Depends(get_stat_store),
    settings: Settings = Depends(get_settings),
) -> LeaderboardService:
    return LeaderboardService(
        store,
        overfetch_factor=settings.leaderboard_overfetch_factor,
        fetch_cap=settings.leaderboard_fetch_cap,
    )


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


async def _respond(
    service: LeaderboardService,
    settings: Settings,
    category: str | None,
    period: str | None,
    limit: str | None,
    include_viewer: str | None,
    viewer_telegram_id: str | None,
):
    try:
        query = LeaderboardQuery.from_params(
            category=category,
            period=period,
            limit=limit,
            include_viewer=include_viewer,
            viewer_id=viewer_telegram_id,
            default_limit=settings.leaderboard_default_limit,
            max_limit=settings.leaderboard_max_limit,
        )
    except InvalidLeaderboardRequestError as e:
        logger.info("leaderboard_request_rejected", field=e.field, error=e.message)
        return _error(status.HTTP_400_BAD_REQUEST, e.message)

    bind_leaderboard_context(query.category.value, query.period.value, query.viewer_id)

    try:
        data = await service.get_leaderboard(query)
    except StoreUnavailableError as e:
        logger.error("leaderboard_unavailable", operation=e.operation)
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, UNAVAILABLE_MESSAGE)

    return LeaderboardEnvelope(success=True, data=data)


@router.get(
    "/leaderboard",
    response_model=LeaderboardEnvelope,
    response_model_exclude_unset=True,
)
async def get_leaderboard(
    category: str | None = Query(None, description="level | streak | elements"),
    period: str | None = Query(None, description="all_time | monthly"),
    limit: str | None = Query(None, description="Entries to return, clamped to [1, 50]"),
    include_viewer: str | None = Query(None, alias="includeViewer"),
    viewer_telegram_id: str | None = Query(None, alias="viewerTelegramId"),
    service: LeaderboardService = Depends(get_leaderboard_service),
    settings: Settings = Depends(get_settings),
):
    """Top-K board for a category and period, plus the viewer's position."""
    return await _respond(
        service, settings, category, period, limit, include_viewer, viewer_telegram_id
    )


@router.get(
    "/profile",
    response_model=LeaderboardEnvelope,
    response_model_exclude_unset=True,
    include_in_schema=False,
)
async def get_profile_action(
    action: str | None = Query(None),
    category: str | None = Query(None),
    period: str | None = Query(None),
    limit: str | None = Query(None),
    include_viewer: str | None = Query(None, alias="includeViewer"),
    viewer_telegram_id: str | None = Query(None, alias="viewerTelegramId"),
    service: LeaderboardService = Depends(get_leaderboard_service),
    settings: Settings = Depends(get_settings),
):
    """Legacy ``/api/profile?action=get_leaderboard`` alias used by older clients."""
    if action != "get_leaderboard":
        return _error(status.HTTP_400_BAD_REQUEST, f"Unsupported action: {action}")
    return await _respond(
        service, settings, category, period, limit, include_viewer, viewer_telegram_id
    )
