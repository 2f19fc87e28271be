"""FastAPI application entrypoint and router wiring for the backend."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import APIRouter, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware

from collabflow.api.auth import router as auth_router
from collabflow.api.boards import router as boards_router
from collabflow.api.comments import router as comments_router
from collabflow.api.notifications import router as notifications_router
from collabflow.api.projects import router as projects_router
from collabflow.api.realtime import router as realtime_router
from collabflow.api.tasks import router as tasks_router
from collabflow.core.config import settings
from collabflow.core.error_handling import install_error_handling
from collabflow.core.logging import configure_logging, get_logger
from collabflow.db.session import close_db, init_db
from collabflow.schemas.health import HealthStatusResponse
from collabflow.services.realtime import RedisBackplane, TopicHub

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

configure_logging()
logger = get_logger(__name__)
OPENAPI_TAGS = [
    {"name": "auth", "description": "Account registration, login, and current-user lookup."},
    {"name": "health", "description": "Service liveness/readiness probes."},
    {"name": "projects", "description": "Project lifecycle and member list management."},
    {"name": "boards", "description": "Boards that group tasks inside a project."},
    {"name": "tasks", "description": "Task CRUD; assignment emits a notification."},
    {"name": "comments", "description": "Task comments; new comments notify the assignee."},
    {"name": "notifications", "description": "The caller's notification inbox."},
    {"name": "realtime", "description": "WebSocket fan-out of project update events."},
]


def build_topic_hub() -> TopicHub:
    """Create the realtime hub, relayed through Redis when configured."""
    backplane = None
    if settings.realtime_redis_url:
        backplane = RedisBackplane(
            settings.realtime_redis_url,
            channel_prefix=settings.realtime_channel_prefix,
        )
    return TopicHub(backplane=backplane)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncIterator[None]:
    """Initialize database and realtime resources before serving requests."""
    logger.info(
        "app.lifecycle.starting environment=%s db_auto_migrate=%s",
        settings.environment,
        settings.db_auto_migrate,
    )
    await init_db()
    hub = build_topic_hub()
    await hub.start()
    fastapi_app.state.topic_hub = hub
    logger.info("app.lifecycle.started realtime_backplane=%s", hub.backplane is not None)
    try:
        yield
    finally:
        try:
            await hub.stop()
        finally:
            await close_db()
            logger.info("app.lifecycle.stopped")


app = FastAPI(
    title="CollabFlow API",
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=OPENAPI_TAGS,
)

origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info("app.cors.enabled origins_count=%s", len(origins))
else:
    logger.info("app.cors.disabled")

install_error_handling(app)


@app.get(
    "/health",
    tags=["health"],
    response_model=HealthStatusResponse,
    summary="Health Check",
    responses={
        status.HTTP_200_OK: {
            "description": "Service is alive.",
            "content": {"application/json": {"example": {"ok": True}}},
        }
    },
)
def health() -> HealthStatusResponse:
    """Lightweight liveness probe endpoint."""
    return HealthStatusResponse(ok=True)


@app.get("/healthz", tags=["health"], response_model=HealthStatusResponse)
def healthz() -> HealthStatusResponse:
    """Alias liveness probe endpoint for platform compatibility."""
    return HealthStatusResponse(ok=True)


@app.get("/readyz", tags=["health"], response_model=HealthStatusResponse)
def readyz() -> HealthStatusResponse:
    """Readiness probe endpoint for service orchestration checks."""
    return HealthStatusResponse(ok=True)


api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(auth_router)
api_v1.include_router(projects_router)
api_v1.include_router(boards_router)
api_v1.include_router(tasks_router)
api_v1.include_router(comments_router)
api_v1.include_router(notifications_router)
app.include_router(api_v1)
app.include_router(realtime_router)

logger.debug("app.routes.registered count=%s", len(app.routes))
