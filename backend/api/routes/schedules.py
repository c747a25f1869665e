"""Schedule management endpoints.

CRUD for recurring email schedules, enable/disable toggle, and the
per-schedule instance history.
"""

from datetime import datetime
from typing import Callable, List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from api.schemas.scheduled_email import (
    InstanceResponse,
    ScheduleCreateRequest,
    ScheduleResponse,
    ScheduleUpdateRequest,
)
from app.dependencies import get_actor, get_bus, get_clock, get_db
from core.events import EventBus
from services.instance_service import InstanceService
from services.lifecycle_service import LifecycleService
from services.schedule_service import ScheduleService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["schedules"])


def _service(db: AsyncSession, clock: Callable[[], datetime], bus: EventBus) -> ScheduleService:
    return ScheduleService(db, clock=clock, event_bus=bus)


@router.get("/", response_model=List[ScheduleResponse])
async def list_schedules(
    include_inactive: bool = Query(False, description="Include disabled schedules"),
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    bus: EventBus = Depends(get_bus),
) -> list:
    """List schedules ordered by name."""
    return await _service(db, clock, bus).list_schedules(include_inactive=include_inactive)


@router.post("/", response_model=ScheduleResponse, status_code=status.HTTP_201_CREATED)
async def create_schedule(
    request: ScheduleCreateRequest,
    actor: str = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    bus: EventBus = Depends(get_bus),
):
    """Create a schedule; today's instance is generated if it fires today."""
    return await _service(db, clock, bus).create_schedule(request.model_dump(mode="json"), actor)


@router.get("/{schedule_id}", response_model=ScheduleResponse)
async def get_schedule(
    schedule_id: str,
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    bus: EventBus = Depends(get_bus),
):
    """Get schedule details."""
    return await _service(db, clock, bus).get_schedule(schedule_id)


@router.put("/{schedule_id}", response_model=ScheduleResponse)
async def update_schedule(
    schedule_id: str,
    request: ScheduleUpdateRequest,
    actor: str = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    bus: EventBus = Depends(get_bus),
):
    """Update a schedule. Existing instances keep their date and time."""
    changes = request.model_dump(mode="json", exclude_unset=True)
    return await _service(db, clock, bus).update_schedule(schedule_id, changes, actor)


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_schedule(
    schedule_id: str,
    purge: bool = Query(False, description="Remove the schedule and its instances permanently"),
    actor: str = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    bus: EventBus = Depends(get_bus),
) -> None:
    """Delete a schedule (soft delete unless purge=true)."""
    await _service(db, clock, bus).delete_schedule(schedule_id, actor, purge=purge)


@router.post("/{schedule_id}/toggle", response_model=ScheduleResponse)
async def toggle_schedule(
    schedule_id: str,
    actor: str = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    bus: EventBus = Depends(get_bus),
):
    """Enable or disable a schedule."""
    return await _service(db, clock, bus).toggle_schedule(schedule_id, actor)


@router.get("/{schedule_id}/history", response_model=List[InstanceResponse])
async def schedule_history(
    schedule_id: str,
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    bus: EventBus = Depends(get_bus),
) -> list:
    """All instances of a schedule, newest date first."""
    await LifecycleService(db, clock=clock, event_bus=bus).reclassify_overdue()
    records = await InstanceService(db, clock=clock).schedule_history(schedule_id)
    return [record.to_dict() for record in records]
