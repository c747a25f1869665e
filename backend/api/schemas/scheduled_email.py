"""Request/response schemas for schedules, instances and previews."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.constants import FrequencyType, InstanceStatus, Language


class ScheduleCreateRequest(BaseModel):
    """Request body to create a schedule."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    to_emails: str = Field(..., min_length=1, description="Comma/semicolon separated addresses")
    cc_emails: Optional[str] = None
    subject_template: str = Field(..., min_length=1)
    body_template: str = ""
    frequency_type: FrequencyType
    frequency_days: Optional[List[int]] = Field(
        default=None,
        description="Weekly: 0=Sunday..6=Saturday. Monthly: 1..31. Ignored for daily.",
    )
    send_time: str = Field(..., description="Local time of day, HH:MM 24-hour")
    language: Language = Language.EN
    is_active: bool = True


class ScheduleUpdateRequest(BaseModel):
    """Request body to update a schedule; omitted fields stay unchanged."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    to_emails: Optional[str] = None
    cc_emails: Optional[str] = None
    subject_template: Optional[str] = None
    body_template: Optional[str] = None
    frequency_type: Optional[FrequencyType] = None
    frequency_days: Optional[List[int]] = None
    send_time: Optional[str] = None
    language: Optional[Language] = None
    is_active: Optional[bool] = None


class ScheduleResponse(BaseModel):
    """Public representation of a schedule."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    to_emails: str
    cc_emails: Optional[str] = None
    subject_template: str
    body_template: str
    frequency_type: str
    frequency_days: Optional[List[int]] = None
    send_time: str
    language: str
    is_active: bool
    last_generated_date: Optional[date] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class InstanceResponse(BaseModel):
    """Instance joined with its schedule's display fields."""

    id: str
    schedule_id: str
    schedule_name: str
    scheduled_date: date
    scheduled_time: str
    status: InstanceStatus
    sent_at: Optional[datetime] = None
    dismissed_at: Optional[datetime] = None
    dismissed_by: Optional[str] = None
    notes: Optional[str] = None
    to_emails: str
    cc_emails: Optional[str] = None
    language: str


class DismissRequest(BaseModel):
    notes: Optional[str] = Field(default=None, max_length=2000)


class GenerateRequest(BaseModel):
    date: date


class GenerateMissedRequest(BaseModel):
    since: Optional[date] = Field(
        default=None, description="Last generated date; defaults to the stored marker"
    )


class PendingCountsResponse(BaseModel):
    date: date
    pending: int
    overdue: int
    total: int


class ComposeResponse(BaseModel):
    to: str
    cc: Optional[str] = None
    subject: str
    body: str


class PreviewRequest(BaseModel):
    template: str
    date: date
    language: Language = Language.EN


class PreviewResponse(BaseModel):
    rendered: str
