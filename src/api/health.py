"""Health check endpoints for monitoring and orchestration."""

from datetime import UTC, datetime

from fastapi import APIRouter, Request
from pydantic import BaseModel

from src.config import settings

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    timestamp: datetime
    version: str
    environment: str


class LivenessResponse(BaseModel):
    """Response model for liveness probe."""

    status: str


class ReadinessResponse(BaseModel):
    """Response model for readiness probe."""

    status: str
    checks: dict[str, str]
    pending_dispatches: int = 0


@router.get("/", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=settings.app_version,
        environment=settings.app_env,
    )


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe - app is running."""
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> ReadinessResponse:
    """Readiness probe - app can serve meeting commands.

    Checks:
    - Database is connected and healthy (agenda store and audit log)
    - Meeting session is wired up

    Reports how many event dispatches are still running in the background.
    """
    checks: dict[str, str] = {"api": "ok"}
    state = request.app.state

    db = getattr(state, "db", None)
    if db:
        try:
            checks["database"] = "ok" if await db.is_healthy() else "failed"
        except Exception:
            checks["database"] = "failed"
    else:
        checks["database"] = "not_configured"

    checks["meeting_session"] = (
        "ok" if getattr(state, "meeting_session", None) else "not_configured"
    )

    emitter = getattr(state, "event_emitter", None)
    pending = emitter.pending_dispatches if emitter else 0

    status = "ready" if all(v == "ok" for v in checks.values()) else "not_ready"
    return ReadinessResponse(status=status, checks=checks, pending_dispatches=pending)
