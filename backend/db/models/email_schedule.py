"""EmailSchedule model for the scheduled email engine."""

from datetime import date
from typing import List, Optional

from sqlalchemy import JSON, Date, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.constants import FrequencyType, Language
from db.base import BaseModel


class EmailSchedule(BaseModel):
    """A recurring email rule.

    Attributes:
        id: Unique identifier (UUID string)
        name: Schedule name
        description: Optional free-text description
        to_emails: Delimited list of recipient addresses
        cc_emails: Optional delimited list of CC addresses
        subject_template: Subject with {{placeholders}}
        body_template: Rich-text body with {{placeholders}}
        frequency_type: daily, weekly or monthly
        frequency_days: Weekday indexes (0=Sunday..6=Saturday) for weekly,
            days of month (1..31) for monthly, None for daily
        send_time: Local time of day, HH:MM 24-hour
        language: Template language (en, ar)
        is_active: Whether the schedule generates instances
        last_generated_date: Latest date an instance was created for
        created_by: Operator who created the schedule
    """

    __tablename__ = "email_schedules"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    to_emails: Mapped[str] = mapped_column(Text, nullable=False)
    cc_emails: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    subject_template: Mapped[str] = mapped_column(Text, nullable=False)
    body_template: Mapped[str] = mapped_column(Text, nullable=False, default="")
    frequency_type: Mapped[str] = mapped_column(
        String(16), nullable=False, default=FrequencyType.DAILY.value
    )
    frequency_days: Mapped[Optional[List[int]]] = mapped_column(JSON, nullable=True)
    send_time: Mapped[str] = mapped_column(String(5), nullable=False)
    language: Mapped[str] = mapped_column(
        String(8), nullable=False, default=Language.EN.value
    )
    is_active: Mapped[bool] = mapped_column(default=True, index=True)
    last_generated_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    def __repr__(self) -> str:
        return f"<EmailSchedule {self.name!r} {self.frequency_type} {self.send_time}>"
