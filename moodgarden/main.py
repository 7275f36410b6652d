"""Mood Garden leaderboard FastAPI application."""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from moodgarden.config import get_settings
from moodgarden.database import close_db, init_db
from moodgarden.logging_config import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)
from moodgarden.middleware.rate_limit import RateLimitMiddleware
from moodgarden.redis import close_redis, get_redis, init_redis
from moodgarden.routes.leaderboard import router as leaderboard_router
from moodgarden.schemas import HealthCheckResponse

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: init DB + Redis on startup, cleanup on shutdown."""
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_json,
        service_name=settings.service_name,
    )
    logger.info(
        "service_starting",
        service=settings.service_name,
        version=settings.service_version,
    )

    await init_db()
    await init_redis(settings.redis_url)

    logger.info("application_started")
    yield

    logger.info("shutting_down")
    await close_redis()
    await close_db()
    logger.info("shutdown_complete")


app = FastAPI(
    title="Mood Garden Leaderboard",
    description="Deterministic top-K leaderboards and viewer rank for Mood Garden",
    version=settings.service_version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)
app.add_middleware(
    RateLimitMiddleware,
    redis_getter=get_redis,
    limit=settings.rate_limit_requests,
    window=settings.rate_limit_window_seconds,
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    bind_request_context(request_id, request.url.path)
    try:
        response = await call_next(request)
    finally:
        clear_request_context()
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled_exception", path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


app.include_router(leaderboard_router)


@app.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """Health check endpoint."""
    return HealthCheckResponse(status="ok", service=settings.service_name)
