"""Pending-count aggregator for UI badges."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.constants import InstanceStatus
from core.events import EventBus
from core.utils import local_now
from db.models.email_schedule import EmailSchedule
from db.models.schedule_instance import ScheduleInstance
from services.lifecycle_service import LifecycleService


@dataclass(frozen=True)
class PendingCounts:
    """Open instances for one date; total is always pending + overdue."""

    scheduled_date: date
    pending: int = 0
    overdue: int = 0

    @property
    def total(self) -> int:
        return self.pending + self.overdue

    def to_dict(self) -> Dict[str, object]:
        return {
            "date": self.scheduled_date.isoformat(),
            "pending": self.pending,
            "overdue": self.overdue,
            "total": self.total,
        }


class PendingCountAggregator:
    """Counts pending and overdue instances of active schedules for a date."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = local_now,
        event_bus: Optional[EventBus] = None,
    ):
        self.db = db
        self.clock = clock
        self.lifecycle = LifecycleService(db, clock=clock, event_bus=event_bus)

    async def counts_for(self, day: Optional[date] = None, reclassify: bool = True) -> PendingCounts:
        """Badge counts for ``day`` (default today).

        Runs the overdue sweep first so the split between pending and
        overdue reflects the current wall-clock time.
        """
        day = day or self.clock().date()
        if reclassify:
            await self.lifecycle.reclassify_overdue()

        result = await self.db.execute(
            select(ScheduleInstance.status, func.count(ScheduleInstance.id))
            .join(EmailSchedule, EmailSchedule.id == ScheduleInstance.schedule_id)
            .where(
                ScheduleInstance.scheduled_date == day,
                ScheduleInstance.status.in_(
                    [InstanceStatus.PENDING.value, InstanceStatus.OVERDUE.value]
                ),
                EmailSchedule.is_active == True,  # noqa: E712
                EmailSchedule.is_deleted == False,  # noqa: E712
            )
            .group_by(ScheduleInstance.status)
        )
        by_status = {status: count for status, count in result.all()}
        return PendingCounts(
            scheduled_date=day,
            pending=by_status.get(InstanceStatus.PENDING.value, 0),
            overdue=by_status.get(InstanceStatus.OVERDUE.value, 0),
        )
