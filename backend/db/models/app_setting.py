"""AppSetting model: key/value settings store."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.utils import utc_now
from db.base import Base


class AppSetting(Base):
    """Key/value row of the host application's settings store.

    Holds department names and date format for placeholders, and the
    engine's persisted last_generated_date marker.
    """

    __tablename__ = "app_settings"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )
