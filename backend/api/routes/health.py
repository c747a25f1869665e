"""Liveness and readiness probes.

- GET /health/        liveness, no I/O
- GET /health/health  readiness: database reachable (503 otherwise)
- GET /health/status  uptime plus the engine runner's state
"""

import platform
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import text
import logging

from app.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

_booted = time.monotonic()
_booted_at = datetime.now(timezone.utc)


def _uptime_seconds() -> float:
    return round(time.monotonic() - _booted, 1)


@router.get("/", response_model=dict[str, Any])
async def liveness() -> dict[str, Any]:
    settings = get_settings()
    return {"app": settings.APP_NAME, "version": settings.APP_VERSION, "status": "ok"}


@router.get("/health", response_model=dict[str, Any])
async def readiness() -> dict[str, Any]:
    """503 when the schedule store cannot answer a trivial query."""
    from db.database import engine

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Database readiness check failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"status": "unhealthy", "database": "unavailable"},
        )
    return {"status": "healthy", "database": "ok"}


@router.get("/status", response_model=dict[str, Any])
async def engine_overview() -> dict[str, Any]:
    from services.engine_runner import get_engine_runner

    settings = get_settings()
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "timezone": settings.TIMEZONE or "host-local",
        "started_at": _booted_at.isoformat(),
        "uptime_seconds": _uptime_seconds(),
        "python": platform.python_version(),
        "engine": get_engine_runner().status(),
    }
