"""Database models for the scheduled email engine.

This module imports all models to ensure they are registered
with SQLAlchemy's declarative base.
"""

from db.models.app_setting import AppSetting
from db.models.audit_log import AuditLog
from db.models.email_schedule import EmailSchedule
from db.models.schedule_instance import ScheduleInstance
from db.models.user import User

__all__ = [
    "AppSetting",
    "AuditLog",
    "EmailSchedule",
    "ScheduleInstance",
    "User",
]
