"""Schedule store: CRUD for recurring email schedules.

Validates definitions before anything is persisted, writes an audit
row per change, publishes a change event after commit, and generates
today's instance right away when a rule starts (or restarts) applying.
Editing a rule never touches instances that already exist.
"""

import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.constants import AuditAction, ChangeKind, FrequencyType, Language, ResourceType
from core.events import ChangeEvent, EventBus, get_event_bus
from core.exceptions import NotFoundError, ValidationError
from core.utils import local_now, parse_send_time, split_recipients
from db.models.email_schedule import EmailSchedule
from db.models.schedule_instance import ScheduleInstance
from services.base import BaseService

logger = structlog.get_logger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

EDITABLE_FIELDS = (
    "name",
    "description",
    "to_emails",
    "cc_emails",
    "subject_template",
    "body_template",
    "frequency_type",
    "frequency_days",
    "send_time",
    "language",
    "is_active",
)

# Changes that can make the rule fire today when it did not before
REGENERATING_FIELDS = ("frequency_type", "frequency_days", "is_active")

DAY_RANGES = {
    FrequencyType.WEEKLY.value: (0, 6),
    FrequencyType.MONTHLY.value: (1, 31),
}


def _validate_addresses(field: str, value: Optional[str], required: bool) -> Optional[str]:
    addresses = split_recipients(value)
    if not addresses:
        if required:
            raise ValidationError(f"{field} must contain at least one address")
        return None
    invalid = [a for a in addresses if not EMAIL_RE.match(a)]
    if invalid:
        raise ValidationError(f"{field} has invalid address(es): {', '.join(invalid)}")
    return ", ".join(addresses)


def _validate_days(frequency_type: str, days: Any) -> Optional[List[int]]:
    if frequency_type == FrequencyType.DAILY.value:
        return None
    if not days:
        raise ValidationError(f"{frequency_type} schedules need at least one frequency day")
    if not isinstance(days, (list, tuple, set)):
        raise ValidationError("frequency_days must be a list of integers")

    low, high = DAY_RANGES[frequency_type]
    cleaned = set()
    for day in days:
        if isinstance(day, bool) or not isinstance(day, int):
            raise ValidationError(f"frequency day {day!r} is not an integer")
        if not low <= day <= high:
            raise ValidationError(
                f"frequency day {day} is out of range {low}..{high} for {frequency_type} schedules"
            )
        cleaned.add(day)
    return sorted(cleaned)


def validate_schedule(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and normalise a complete schedule definition.

    Raises:
        ValidationError: describing the first problem found.
    """
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("name is required")
    if len(name) > 255:
        raise ValidationError("name must be at most 255 characters")

    subject = data.get("subject_template") or ""
    if not subject.strip():
        raise ValidationError("subject_template is required")

    frequency_type = data.get("frequency_type")
    if isinstance(frequency_type, FrequencyType):
        frequency_type = frequency_type.value
    if frequency_type not in {f.value for f in FrequencyType}:
        raise ValidationError("frequency_type must be one of daily, weekly, monthly")

    send_time = parse_send_time(data.get("send_time") or "")
    if send_time is None:
        raise ValidationError(f"send_time {data.get('send_time')!r} is not a valid HH:MM time")

    language = data.get("language") or Language.EN.value
    if isinstance(language, Language):
        language = language.value
    if language not in {lang.value for lang in Language}:
        raise ValidationError("language must be one of en, ar")

    return {
        "name": name,
        "description": (data.get("description") or None),
        "to_emails": _validate_addresses("to_emails", data.get("to_emails"), required=True),
        "cc_emails": _validate_addresses("cc_emails", data.get("cc_emails"), required=False),
        "subject_template": subject,
        "body_template": data.get("body_template") or "",
        "frequency_type": frequency_type,
        "frequency_days": _validate_days(frequency_type, data.get("frequency_days")),
        "send_time": send_time.strftime("%H:%M"),
        "language": language,
        "is_active": bool(data.get("is_active", True)),
    }


class ScheduleService(BaseService[EmailSchedule]):
    """Service for email schedule management."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = local_now,
        event_bus: Optional[EventBus] = None,
    ):
        super().__init__(EmailSchedule, db)
        self.clock = clock
        self.event_bus = event_bus or get_event_bus()

    # ─── Queries ───────────────────────────────────────────

    async def get_schedule(self, schedule_id: str) -> EmailSchedule:
        schedule = await self.get_by_id(schedule_id)
        if not schedule:
            raise NotFoundError(f"Schedule {schedule_id} not found")
        return schedule

    async def list_schedules(self, include_inactive: bool = False) -> Sequence[EmailSchedule]:
        """All non-deleted schedules ordered by name."""
        query = select(EmailSchedule).where(EmailSchedule.is_deleted == False)  # noqa: E712
        if not include_inactive:
            query = query.where(EmailSchedule.is_active == True)  # noqa: E712
        result = await self.db.execute(query.order_by(EmailSchedule.name.asc()))
        return result.scalars().all()

    async def list_active(self) -> Sequence[EmailSchedule]:
        return await self.list_schedules(include_inactive=False)

    # ─── Commands ──────────────────────────────────────────

    async def create_schedule(self, data: Dict[str, Any], actor: Optional[str]) -> EmailSchedule:
        """Validate and persist a new schedule, then generate today's instance."""
        values = validate_schedule(data)
        values["created_by"] = actor
        schedule = await self.create(values)
        await self.audit(
            AuditAction.CREATE.value, actor, ResourceType.EMAIL_SCHEDULE.value,
            schedule.id, {"name": schedule.name},
        )
        await self.commit()

        logger.info("Schedule created", schedule_id=schedule.id, name=schedule.name)
        await self.event_bus.publish(
            ChangeEvent(ChangeKind.SCHEDULE_CREATED, schedule.id, {"name": schedule.name})
        )
        await self._generate_today(schedule)
        return schedule

    async def update_schedule(
        self,
        schedule_id: str,
        changes: Dict[str, Any],
        actor: Optional[str],
    ) -> EmailSchedule:
        """Apply a partial update; the merged definition is re-validated."""
        schedule = await self.get_schedule(schedule_id)
        changes = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}

        merged = {field: getattr(schedule, field) for field in EDITABLE_FIELDS}
        merged.update(changes)
        values = validate_schedule(merged)

        for field in changes:
            setattr(schedule, field, values[field])
        if "frequency_type" in changes:
            schedule.frequency_days = values["frequency_days"]

        await self.flush()
        await self.audit(
            AuditAction.UPDATE.value, actor, ResourceType.EMAIL_SCHEDULE.value,
            schedule.id, {field: values[field] for field in changes},
        )
        await self.commit()
        await self.db.refresh(schedule)

        logger.info("Schedule updated", schedule_id=schedule.id, fields=sorted(changes))
        await self.event_bus.publish(
            ChangeEvent(ChangeKind.SCHEDULE_UPDATED, schedule.id, {"fields": sorted(changes)})
        )
        if any(field in changes for field in REGENERATING_FIELDS):
            await self._generate_today(schedule)
        return schedule

    async def toggle_schedule(self, schedule_id: str, actor: Optional[str]) -> EmailSchedule:
        """Flip the active flag."""
        schedule = await self.get_schedule(schedule_id)
        schedule.is_active = not schedule.is_active
        await self.flush()
        await self.audit(
            AuditAction.TOGGLE.value, actor, ResourceType.EMAIL_SCHEDULE.value,
            schedule.id, {"is_active": schedule.is_active},
        )
        await self.commit()
        await self.db.refresh(schedule)

        logger.info("Schedule toggled", schedule_id=schedule.id, is_active=schedule.is_active)
        await self.event_bus.publish(
            ChangeEvent(ChangeKind.SCHEDULE_TOGGLED, schedule.id, {"is_active": schedule.is_active})
        )
        if schedule.is_active:
            await self._generate_today(schedule)
        return schedule

    async def delete_schedule(
        self,
        schedule_id: str,
        actor: Optional[str],
        purge: bool = False,
    ) -> None:
        """Delete a schedule.

        The default soft delete hides the schedule and, through the joins
        every instance query uses, its instances. ``purge`` removes the
        schedule row and its instances in one transaction.
        """
        schedule = await self.get_by_id(schedule_id, include_deleted=purge)
        if not schedule:
            raise NotFoundError(f"Schedule {schedule_id} not found")

        if purge:
            await self.db.execute(
                delete(ScheduleInstance).where(ScheduleInstance.schedule_id == schedule_id)
            )
            await self.db.delete(schedule)
        else:
            schedule.soft_delete()
        await self.flush()
        await self.audit(
            AuditAction.DELETE.value, actor, ResourceType.EMAIL_SCHEDULE.value,
            schedule_id, {"purge": purge},
        )
        await self.commit()

        logger.info("Schedule deleted", schedule_id=schedule_id, purge=purge)
        await self.event_bus.publish(
            ChangeEvent(ChangeKind.SCHEDULE_DELETED, schedule_id, {"purge": purge})
        )

    async def _generate_today(self, schedule: EmailSchedule) -> None:
        from services.instance_generator import InstanceGenerator

        generator = InstanceGenerator(self.db, clock=self.clock, event_bus=self.event_bus)
        await generator.generate_for_date(self.clock().date())
        await self.db.refresh(schedule)
