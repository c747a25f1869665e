"""Instance lifecycle manager.

State machine:

    pending ──mark_sent──► sent        overdue ──mark_sent──► sent
    pending ──dismiss────► dismissed   overdue ──dismiss────► dismissed
    pending ──(time)─────► overdue
    sent / dismissed ──reset──► pending

Any other transition raises InvalidStateError and leaves the instance
untouched. Every successful transition is audited and published on the
event bus after commit.
"""

from datetime import datetime
from typing import Callable, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.constants import (
    CLOSED_STATUSES,
    OPEN_STATUSES,
    AuditAction,
    ChangeKind,
    InstanceStatus,
    ResourceType,
)
from core.events import ChangeEvent, EventBus, get_event_bus
from core.exceptions import InvalidStateError, NotFoundError
from core.utils import local_now, scheduled_moment, utc_now
from db.models.email_schedule import EmailSchedule
from db.models.schedule_instance import ScheduleInstance
from services.base import BaseService

logger = structlog.get_logger(__name__)

OPEN_VALUES = {s.value for s in OPEN_STATUSES}
CLOSED_VALUES = {s.value for s in CLOSED_STATUSES}


class LifecycleService(BaseService[ScheduleInstance]):
    """Transitions schedule instances between statuses."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = local_now,
        event_bus: Optional[EventBus] = None,
    ):
        super().__init__(ScheduleInstance, db)
        self.clock = clock
        self.event_bus = event_bus or get_event_bus()

    async def get_instance(self, instance_id: str) -> ScheduleInstance:
        """Load an instance whose schedule has not been deleted."""
        result = await self.db.execute(
            select(ScheduleInstance)
            .join(EmailSchedule, EmailSchedule.id == ScheduleInstance.schedule_id)
            .where(
                ScheduleInstance.id == instance_id,
                EmailSchedule.is_deleted == False,  # noqa: E712
            )
        )
        instance = result.scalar_one_or_none()
        if not instance:
            raise NotFoundError(f"Instance {instance_id} not found")
        return instance

    async def mark_sent(self, instance_id: str, actor: Optional[str]) -> ScheduleInstance:
        """pending/overdue -> sent."""
        instance = await self.get_instance(instance_id)
        self._require(instance, OPEN_VALUES, "mark as sent")

        instance.status = InstanceStatus.SENT.value
        instance.sent_at = utc_now()
        return await self._finish(instance, actor, AuditAction.SENT, ChangeKind.INSTANCE_SENT)

    async def dismiss(
        self,
        instance_id: str,
        actor: Optional[str],
        notes: Optional[str] = None,
    ) -> ScheduleInstance:
        """pending/overdue -> dismissed, recording who and why."""
        instance = await self.get_instance(instance_id)
        self._require(instance, OPEN_VALUES, "dismiss")

        instance.status = InstanceStatus.DISMISSED.value
        instance.dismissed_at = utc_now()
        instance.dismissed_by = actor
        instance.notes = notes or None
        return await self._finish(
            instance, actor, AuditAction.DISMISS, ChangeKind.INSTANCE_DISMISSED,
            {"notes": instance.notes},
        )

    async def reset(self, instance_id: str, actor: Optional[str]) -> ScheduleInstance:
        """sent/dismissed -> pending. Overdue status re-applies on the next sweep."""
        instance = await self.get_instance(instance_id)
        self._require(instance, CLOSED_VALUES, "reset")

        previous = instance.status
        instance.status = InstanceStatus.PENDING.value
        instance.sent_at = None
        instance.dismissed_at = None
        instance.dismissed_by = None
        instance.notes = None
        return await self._finish(
            instance, actor, AuditAction.RESET, ChangeKind.INSTANCE_RESET,
            {"previous_status": previous},
        )

    async def reclassify_overdue(self) -> int:
        """Flip pending instances whose scheduled moment has passed to overdue.

        Idempotent: overdue rows are never selected, so repeated calls
        change nothing until another pending instance comes due.
        """
        now = self.clock()
        result = await self.db.execute(
            select(ScheduleInstance).where(
                ScheduleInstance.status == InstanceStatus.PENDING.value,
                ScheduleInstance.scheduled_date <= now.date(),
            )
        )
        promoted = []
        for instance in result.scalars().all():
            if scheduled_moment(instance.scheduled_date, instance.scheduled_time) < now:
                instance.status = InstanceStatus.OVERDUE.value
                promoted.append(instance.id)

        if not promoted:
            return 0

        await self.flush()
        await self.commit()
        logger.info("Pending instances now overdue", count=len(promoted))
        await self.event_bus.publish(
            ChangeEvent(ChangeKind.INSTANCES_OVERDUE, payload={"instance_ids": promoted})
        )
        return len(promoted)

    # ─── Internals ─────────────────────────────────────────

    @staticmethod
    def _require(instance: ScheduleInstance, allowed: set, action: str) -> None:
        if instance.status not in allowed:
            raise InvalidStateError(
                f"Cannot {action} instance {instance.id}: status is {instance.status}"
            )

    async def _finish(
        self,
        instance: ScheduleInstance,
        actor: Optional[str],
        action: AuditAction,
        kind: ChangeKind,
        details: Optional[dict] = None,
    ) -> ScheduleInstance:
        await self.flush()
        await self.audit(
            action.value, actor, ResourceType.SCHEDULE_INSTANCE.value,
            instance.id, {"status": instance.status, **(details or {})},
        )
        await self.commit()
        await self.db.refresh(instance)

        logger.info(
            "Instance status changed",
            instance_id=instance.id,
            status=instance.status,
            actor=actor,
        )
        await self.event_bus.publish(
            ChangeEvent(kind, instance.id, {"schedule_id": instance.schedule_id, "status": instance.status})
        )
        return instance
