"""AuditLog model for the scheduled email engine."""

from typing import Optional

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from core.constants import AuditAction
from db.base import RecordModel


class AuditLog(RecordModel):
    """AuditLog model for tracking operator actions.

    Attributes:
        id: Unique identifier (UUID string)
        user_id: Operator who performed the action
        resource_type: email_schedule or schedule_instance
        resource_id: ID of the resource affected
        action: create, update, delete, toggle, sent, dismiss, reset
        details: JSON object describing the change
        created_at: Creation timestamp
    """

    __tablename__ = "audit_logs"

    user_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    resource_type: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    resource_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    action: Mapped[str] = mapped_column(
        String(16), default=AuditAction.UPDATE.value, index=True
    )
    details: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
