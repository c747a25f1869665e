"""ScheduleInstance model for the scheduled email engine."""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from core.constants import InstanceStatus
from db.base import RecordModel


class ScheduleInstance(RecordModel):
    """One concrete firing of a schedule on one calendar date.

    Attributes:
        id: Unique identifier (UUID string)
        schedule_id: Foreign key to EmailSchedule
        scheduled_date: Calendar date the schedule fired on
        scheduled_time: Send time copied from the schedule at generation
        status: pending, sent, dismissed or overdue
        sent_at: When the operator marked it sent
        dismissed_at: When the operator dismissed it
        dismissed_by: Operator who dismissed it
        notes: Optional dismissal note
    """

    __tablename__ = "email_schedule_instances"
    __table_args__ = (
        UniqueConstraint("schedule_id", "scheduled_date", name="uq_instance_schedule_date"),
        Index("ix_instance_status_date", "status", "scheduled_date"),
    )

    schedule_id: Mapped[str] = mapped_column(
        ForeignKey("email_schedules.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    scheduled_time: Mapped[str] = mapped_column(String(5), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=InstanceStatus.PENDING.value
    )
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    dismissed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    dismissed_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<ScheduleInstance {self.schedule_id} {self.scheduled_date} {self.status}>"
