"""Instance generator: materialises schedule instances for calendar dates.

At most one instance exists per (schedule, scheduled_date). The
generator checks for an existing row before inserting, and the
``uq_instance_schedule_date`` constraint backs the check up when two
generation calls race. Each (schedule, date) pair runs in its own
SAVEPOINT so one failing pair is logged, recorded and skipped without
undoing the others.

Startup recovery walks every date between the persisted
``last_generated_date`` marker (exclusive) and yesterday (inclusive),
oldest first, committing and advancing the marker after each date so a
crash mid-sweep resumes where it stopped. Instances created for past
dates start out ``overdue``.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.constants import ChangeKind, InstanceStatus
from core.events import ChangeEvent, EventBus, get_event_bus
from core.utils import local_date, local_now
from db.models.email_schedule import EmailSchedule
from db.models.schedule_instance import ScheduleInstance
from services.base import BaseService
from services.recurrence import fires_on, iter_dates
from services.settings_service import SettingsService

logger = structlog.get_logger(__name__)


@dataclass
class GenerationError:
    """A (schedule, date) pair that could not be generated."""

    schedule_id: str
    scheduled_date: date
    error: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schedule_id": self.schedule_id,
            "scheduled_date": self.scheduled_date.isoformat(),
            "error": self.error,
        }


@dataclass
class GenerationResult:
    """Outcome of a generation call or sweep."""

    generated: int = 0
    missed_dates: List[date] = field(default_factory=list)
    errors: List[GenerationError] = field(default_factory=list)

    def merge(self, other: "GenerationResult") -> None:
        self.generated += other.generated
        self.errors.extend(other.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated": self.generated,
            "missed_dates": [d.isoformat() for d in self.missed_dates],
            "errors": [e.to_dict() for e in self.errors],
        }


class InstanceGenerator(BaseService[ScheduleInstance]):
    """Creates pending/overdue instances for active schedules."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = local_now,
        event_bus: Optional[EventBus] = None,
    ):
        super().__init__(ScheduleInstance, db)
        self.clock = clock
        self.event_bus = event_bus or get_event_bus()
        self.settings = SettingsService(db)

    async def generate_for_date(self, target: date) -> int:
        """Generate instances for one date; returns how many were created."""
        result = await self.generate_date(target)
        return result.generated

    async def generate_date(self, target: date, respect_creation: bool = False) -> GenerationResult:
        """Generate instances for one date and commit.

        Args:
            target: Calendar date to generate for.
            respect_creation: Skip schedules created after ``target``
                (used by backfill so new rules do not reach into the past).
        """
        today = self.clock().date()
        initial_status = InstanceStatus.OVERDUE if target < today else InstanceStatus.PENDING
        result = GenerationResult()

        # Savepoints below must only ever contain their own pair.
        await self.flush()

        for schedule in await self._active_schedules():
            schedule_id = schedule.id
            try:
                if respect_creation and schedule.created_at and target < local_date(schedule.created_at):
                    continue
                if not fires_on(schedule, target):
                    continue
                if await self._create_instance(schedule, target, initial_status):
                    result.generated += 1
            except IntegrityError:
                # Another generation call inserted the same pair first.
                logger.debug(
                    "Instance already generated concurrently",
                    schedule_id=schedule_id,
                    scheduled_date=target.isoformat(),
                )
            except Exception as e:
                logger.error(
                    "Instance generation failed",
                    schedule_id=schedule_id,
                    scheduled_date=target.isoformat(),
                    error=str(e),
                )
                result.errors.append(GenerationError(schedule_id, target, str(e)))

        if target <= today:
            await self.settings.advance_last_generated_date(target)
        await self.commit()

        if result.generated:
            logger.info(
                "Instances generated",
                scheduled_date=target.isoformat(),
                count=result.generated,
                status=initial_status.value,
            )
            await self.event_bus.publish(
                ChangeEvent(
                    ChangeKind.INSTANCES_GENERATED,
                    payload={"scheduled_date": target.isoformat(), "count": result.generated},
                )
            )
        return result

    async def generate_range(
        self, start: date, end: date, respect_creation: bool = False
    ) -> GenerationResult:
        """Generate every date in [start, end], oldest first.

        ``missed_dates`` lists the dates that received new instances.
        """
        result = GenerationResult()
        for day in iter_dates(start, end):
            day_result = await self.generate_date(day, respect_creation=respect_creation)
            result.merge(day_result)
            if day_result.generated:
                result.missed_dates.append(day)
        return result

    async def generate_missed(self, since_last_check: Optional[date] = None) -> GenerationResult:
        """Backfill instances for dates that passed while the engine was not running.

        Args:
            since_last_check: Last date known to be generated. Defaults to
                the persisted marker, then to the latest instance date.

        Returns:
            GenerationResult whose ``missed_dates`` lists the dates that
            received new (overdue) instances, ascending.
        """
        today = self.clock().date()
        yesterday = today - timedelta(days=1)

        marker = since_last_check
        if marker is None:
            marker = await self.settings.get_last_generated_date()
        if marker is None:
            marker = await self._latest_instance_date()

        if marker is None:
            # Nothing was ever generated; there is no gap to recover.
            await self.settings.advance_last_generated_date(yesterday)
            await self.commit()
            logger.info("No generation history; backfill skipped")
            return GenerationResult()

        result = await self.generate_range(marker + timedelta(days=1), yesterday, respect_creation=True)

        if result.generated or result.errors:
            logger.info(
                "Missed instances backfilled",
                since=marker.isoformat(),
                generated=result.generated,
                missed_dates=[d.isoformat() for d in result.missed_dates],
                errors=len(result.errors),
            )
        return result

    # ─── Internals ─────────────────────────────────────────

    async def _active_schedules(self) -> List[EmailSchedule]:
        result = await self.db.execute(
            select(EmailSchedule).where(
                EmailSchedule.is_active == True,  # noqa: E712
                EmailSchedule.is_deleted == False,  # noqa: E712
            )
        )
        return list(result.scalars().all())

    async def _create_instance(
        self,
        schedule: EmailSchedule,
        target: date,
        status: InstanceStatus,
    ) -> bool:
        """Insert the (schedule, target) instance unless it exists."""
        async with self.db.begin_nested():
            existing = await self.db.execute(
                select(ScheduleInstance.id).where(
                    ScheduleInstance.schedule_id == schedule.id,
                    ScheduleInstance.scheduled_date == target,
                )
            )
            if existing.first() is not None:
                return False

            self.db.add(
                ScheduleInstance(
                    id=str(uuid4()),
                    schedule_id=schedule.id,
                    scheduled_date=target,
                    scheduled_time=schedule.send_time,
                    status=status.value,
                )
            )
            if schedule.last_generated_date is None or target > schedule.last_generated_date:
                schedule.last_generated_date = target
            await self.flush()
        return True

    async def _latest_instance_date(self) -> Optional[date]:
        result = await self.db.execute(
            select(func.max(ScheduleInstance.scheduled_date))
            .join(EmailSchedule, EmailSchedule.id == ScheduleInstance.schedule_id)
            .where(EmailSchedule.is_deleted == False)  # noqa: E712
        )
        return result.scalar_one_or_none()
