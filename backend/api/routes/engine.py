"""Engine runner status and manual refresh."""

from typing import Any

from fastapi import APIRouter

from services.engine_runner import get_engine_runner

router = APIRouter(tags=["engine"])


@router.get("/status", response_model=dict[str, Any])
async def engine_status() -> dict[str, Any]:
    """Refresh loop state, latest badge counts and recent generation errors."""
    return get_engine_runner().status()


@router.post("/refresh", response_model=dict[str, Any])
async def engine_refresh() -> dict[str, Any]:
    """Run one refresh tick now and return today's counts."""
    counts = await get_engine_runner().tick()
    return counts.to_dict()
