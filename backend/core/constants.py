"""Constants and enums for the scheduled email engine."""

from enum import Enum


class FrequencyType(str, Enum):
    """Recurrence rule of an email schedule."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class InstanceStatus(str, Enum):
    """Lifecycle status of a schedule instance."""

    PENDING = "pending"
    SENT = "sent"
    DISMISSED = "dismissed"
    OVERDUE = "overdue"


# Statuses that still need operator action
OPEN_STATUSES = (InstanceStatus.PENDING, InstanceStatus.OVERDUE)

# Statuses that can be reopened with reset
CLOSED_STATUSES = (InstanceStatus.SENT, InstanceStatus.DISMISSED)


class Language(str, Enum):
    """Template language; drives placeholder localisation and text direction."""

    EN = "en"
    AR = "ar"


class AuditAction(str, Enum):
    """Audit log action type."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    TOGGLE = "toggle"
    SENT = "sent"
    DISMISS = "dismiss"
    RESET = "reset"


class ResourceType(str, Enum):
    """Audited resource type."""

    EMAIL_SCHEDULE = "email_schedule"
    SCHEDULE_INSTANCE = "schedule_instance"


class ChangeKind(str, Enum):
    """Kind of change published on the event bus."""

    SCHEDULE_CREATED = "schedule.created"
    SCHEDULE_UPDATED = "schedule.updated"
    SCHEDULE_DELETED = "schedule.deleted"
    SCHEDULE_TOGGLED = "schedule.toggled"
    INSTANCES_GENERATED = "instances.generated"
    INSTANCE_SENT = "instance.sent"
    INSTANCE_DISMISSED = "instance.dismissed"
    INSTANCE_RESET = "instance.reset"
    INSTANCES_OVERDUE = "instances.overdue"


# Keys in the app_settings table
SETTING_LAST_GENERATED_DATE = "last_generated_date"
SETTING_DEPARTMENT_NAME = "department_name"
SETTING_DEPARTMENT_NAME_ARABIC = "department_name_arabic"
SETTING_DATE_FORMAT = "date_format"
