"""Schedule instance endpoints.

Queries for today's work, outstanding items, ranges and badge counts;
generation and overdue sweeps; and the mark-sent / dismiss / reset
lifecycle commands.
"""

from datetime import date, datetime
from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from api.schemas.scheduled_email import (
    ComposeResponse,
    DismissRequest,
    GenerateMissedRequest,
    GenerateRequest,
    InstanceResponse,
    PendingCountsResponse,
)
from app.dependencies import get_actor, get_bus, get_clock, get_db
from core.constants import InstanceStatus
from core.events import EventBus
from services.instance_generator import InstanceGenerator
from services.instance_service import InstanceRecord, InstanceService
from services.lifecycle_service import LifecycleService
from services.pending_counts import PendingCountAggregator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["instances"])


def _records(records: List[InstanceRecord]) -> list:
    return [record.to_dict() for record in records]


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

@router.get("/", response_model=List[InstanceResponse])
async def list_instances(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    status: Optional[InstanceStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    bus: EventBus = Depends(get_bus),
) -> list:
    """Instances filtered by date range and status."""
    await LifecycleService(db, clock=clock, event_bus=bus).reclassify_overdue()
    records = await InstanceService(db, clock=clock).get_instances(
        start_date, end_date, status.value if status else None
    )
    return _records(records)


@router.get("/today", response_model=List[InstanceResponse])
async def today_instances(
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    bus: EventBus = Depends(get_bus),
) -> list:
    """Today's pending and overdue instances across active schedules."""
    await LifecycleService(db, clock=clock, event_bus=bus).reclassify_overdue()
    return _records(await InstanceService(db, clock=clock).today_instances())


@router.get("/outstanding", response_model=List[InstanceResponse])
async def outstanding_instances(
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    bus: EventBus = Depends(get_bus),
) -> list:
    """Every pending or overdue instance up to today."""
    await LifecycleService(db, clock=clock, event_bus=bus).reclassify_overdue()
    return _records(await InstanceService(db, clock=clock).outstanding_instances())


@router.get("/counts", response_model=PendingCountsResponse)
async def pending_counts(
    day: Optional[date] = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    bus: EventBus = Depends(get_bus),
) -> dict:
    """Badge counts (pending, overdue, total) for a date, default today."""
    counts = await PendingCountAggregator(db, clock=clock, event_bus=bus).counts_for(day)
    return counts.to_dict()


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

@router.post("/generate")
async def generate_instances(
    request: GenerateRequest,
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    bus: EventBus = Depends(get_bus),
) -> dict:
    """Generate instances for one date (normally today)."""
    result = await InstanceGenerator(db, clock=clock, event_bus=bus).generate_date(request.date)
    return result.to_dict()


@router.post("/generate-missed")
async def generate_missed_instances(
    request: GenerateMissedRequest = GenerateMissedRequest(),
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    bus: EventBus = Depends(get_bus),
) -> dict:
    """Backfill instances for dates missed since the last generation."""
    result = await InstanceGenerator(db, clock=clock, event_bus=bus).generate_missed(request.since)
    return result.to_dict()


@router.post("/reclassify")
async def reclassify_overdue(
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    bus: EventBus = Depends(get_bus),
) -> dict:
    """Promote pending instances whose send time has passed to overdue."""
    promoted = await LifecycleService(db, clock=clock, event_bus=bus).reclassify_overdue()
    return {"promoted": promoted}


# ---------------------------------------------------------------------------
# Single instance
# ---------------------------------------------------------------------------

@router.get("/{instance_id}", response_model=InstanceResponse)
async def get_instance(
    instance_id: str,
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    bus: EventBus = Depends(get_bus),
) -> dict:
    """Get one instance with its schedule's display fields."""
    await LifecycleService(db, clock=clock, event_bus=bus).reclassify_overdue()
    record = await InstanceService(db, clock=clock).get_record(instance_id)
    return record.to_dict()


@router.get("/{instance_id}/compose", response_model=ComposeResponse)
async def compose_instance(
    instance_id: str,
    actor: str = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> dict:
    """Filled {to, cc, subject, body} for the mail client. Does not mark sent."""
    composed = await InstanceService(db, clock=clock).compose(instance_id, actor)
    return composed.to_dict()


async def _record_after(db: AsyncSession, clock, instance_id: str) -> dict:
    record = await InstanceService(db, clock=clock).get_record(instance_id)
    return record.to_dict()


@router.post("/{instance_id}/sent", response_model=InstanceResponse)
async def mark_sent(
    instance_id: str,
    actor: str = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    bus: EventBus = Depends(get_bus),
) -> dict:
    """Mark a pending or overdue instance as sent."""
    await LifecycleService(db, clock=clock, event_bus=bus).mark_sent(instance_id, actor)
    return await _record_after(db, clock, instance_id)


@router.post("/{instance_id}/dismiss", response_model=InstanceResponse)
async def dismiss_instance(
    instance_id: str,
    request: DismissRequest = DismissRequest(),
    actor: str = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    bus: EventBus = Depends(get_bus),
) -> dict:
    """Dismiss a pending or overdue instance with an optional note."""
    await LifecycleService(db, clock=clock, event_bus=bus).dismiss(instance_id, actor, request.notes)
    return await _record_after(db, clock, instance_id)


@router.post("/{instance_id}/reset", response_model=InstanceResponse)
async def reset_instance(
    instance_id: str,
    actor: str = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    bus: EventBus = Depends(get_bus),
) -> dict:
    """Reopen a sent or dismissed instance as pending."""
    await LifecycleService(db, clock=clock, event_bus=bus).reset(instance_id, actor)
    return await _record_after(db, clock, instance_id)
