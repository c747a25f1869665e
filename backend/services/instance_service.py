"""Instance queries, compose hand-off and placeholder preview.

Every query joins the owning schedule and hides instances of deleted
schedules, so a soft delete never leaves rows pointing at nothing.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.constants import OPEN_STATUSES, InstanceStatus, Language
from core.exceptions import NotFoundError, ValidationError
from core.utils import local_now
from db.models.email_schedule import EmailSchedule
from db.models.schedule_instance import ScheduleInstance
from services.placeholders import render
from services.settings_service import SettingsService


@dataclass
class InstanceRecord:
    """An instance joined with the schedule fields the UI shows."""

    instance: ScheduleInstance
    schedule: EmailSchedule

    def to_dict(self) -> Dict[str, Any]:
        i, s = self.instance, self.schedule
        return {
            "id": i.id,
            "schedule_id": i.schedule_id,
            "schedule_name": s.name,
            "scheduled_date": i.scheduled_date.isoformat(),
            "scheduled_time": i.scheduled_time,
            "status": i.status,
            "sent_at": i.sent_at.isoformat() if i.sent_at else None,
            "dismissed_at": i.dismissed_at.isoformat() if i.dismissed_at else None,
            "dismissed_by": i.dismissed_by,
            "notes": i.notes,
            "to_emails": s.to_emails,
            "cc_emails": s.cc_emails,
            "language": s.language,
        }


@dataclass
class ComposedEmail:
    """Filled message handed to the external mail client."""

    to: str
    cc: Optional[str]
    subject: str
    body: str

    def to_dict(self) -> Dict[str, Any]:
        return {"to": self.to, "cc": self.cc, "subject": self.subject, "body": self.body}


class InstanceService:
    """Read-side queries over schedule instances."""

    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = local_now):
        self.db = db
        self.clock = clock
        self.settings = SettingsService(db)

    def _base_query(self, active_only: bool = False):
        query = (
            select(ScheduleInstance, EmailSchedule)
            .join(EmailSchedule, EmailSchedule.id == ScheduleInstance.schedule_id)
            .where(EmailSchedule.is_deleted == False)  # noqa: E712
        )
        if active_only:
            query = query.where(EmailSchedule.is_active == True)  # noqa: E712
        return query

    async def _fetch(self, query) -> List[InstanceRecord]:
        result = await self.db.execute(
            query.order_by(
                ScheduleInstance.scheduled_date.desc(),
                ScheduleInstance.scheduled_time.asc(),
            )
        )
        return [InstanceRecord(instance, schedule) for instance, schedule in result.all()]

    async def get_instances(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[str] = None,
    ) -> List[InstanceRecord]:
        """Instances in an optional date range and status."""
        query = self._base_query()
        if start_date:
            query = query.where(ScheduleInstance.scheduled_date >= start_date)
        if end_date:
            query = query.where(ScheduleInstance.scheduled_date <= end_date)
        if status:
            if status not in {s.value for s in InstanceStatus}:
                raise ValidationError(f"Unknown status {status!r}")
            query = query.where(ScheduleInstance.status == status)
        return await self._fetch(query)

    async def today_instances(self) -> List[InstanceRecord]:
        """Non-terminal instances scheduled for today across active schedules."""
        today = self.clock().date()
        return await self._fetch(
            self._base_query(active_only=True).where(
                ScheduleInstance.scheduled_date == today,
                ScheduleInstance.status.in_([s.value for s in OPEN_STATUSES]),
            )
        )

    async def outstanding_instances(self) -> List[InstanceRecord]:
        """Every pending/overdue instance up to and including today."""
        today = self.clock().date()
        return await self._fetch(
            self._base_query(active_only=True).where(
                ScheduleInstance.scheduled_date <= today,
                ScheduleInstance.status.in_([s.value for s in OPEN_STATUSES]),
            )
        )

    async def schedule_history(self, schedule_id: str) -> List[InstanceRecord]:
        """All instances of one schedule, any status."""
        schedule = await self.db.get(EmailSchedule, schedule_id)
        if not schedule or schedule.is_deleted:
            raise NotFoundError(f"Schedule {schedule_id} not found")
        return await self._fetch(
            self._base_query().where(ScheduleInstance.schedule_id == schedule_id)
        )

    async def get_record(self, instance_id: str) -> InstanceRecord:
        result = await self.db.execute(
            self._base_query().where(ScheduleInstance.id == instance_id)
        )
        row = result.first()
        if not row:
            raise NotFoundError(f"Instance {instance_id} not found")
        return InstanceRecord(row[0], row[1])

    async def compose(self, instance_id: str, actor: Optional[str]) -> ComposedEmail:
        """Render the message for an instance without changing its status."""
        record = await self.get_record(instance_id)
        schedule = record.schedule
        context = await self.settings.placeholder_context(actor)
        as_of = record.instance.scheduled_date
        language = schedule.language or Language.EN.value
        return ComposedEmail(
            to=schedule.to_emails,
            cc=schedule.cc_emails,
            subject=render(schedule.subject_template, as_of, language, context),
            body=render(schedule.body_template, as_of, language, context),
        )

    async def preview(
        self,
        template: str,
        as_of: date,
        language: str,
        actor: Optional[str],
    ) -> str:
        """Render a template for the editor preview."""
        context = await self.settings.placeholder_context(actor)
        return render(template, as_of, language, context)
