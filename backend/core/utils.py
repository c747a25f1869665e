"""
Utility functions for the scheduled email engine.

Includes:
- Local wall-clock helpers
- Send-time and date parsing
- Recipient list splitting
"""

import re
from datetime import date, datetime, time, timezone
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.config import get_settings

SEND_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
RECIPIENT_SPLIT_RE = re.compile(r"[;,]")


def utc_now() -> datetime:
    """
    Get the current UTC datetime.

    Returns:
        Current datetime in UTC timezone
    """
    return datetime.now(timezone.utc)


def _local_zone() -> Optional[ZoneInfo]:
    """The configured TIMEZONE, or None for the host's local time."""
    tz_name = get_settings().TIMEZONE
    if tz_name:
        try:
            return ZoneInfo(tz_name)
        except ZoneInfoNotFoundError:
            pass
    return None


def local_now() -> datetime:
    """
    Get the current local wall-clock time as a naive datetime.

    Uses the configured TIMEZONE when set, otherwise the host's local time.
    Send times and scheduled dates are stored as local values, so all
    comparisons against them are naive-local.
    """
    zone = _local_zone()
    if zone is None:
        return datetime.now()
    return datetime.now(zone).replace(tzinfo=None)


def local_date(moment: datetime) -> date:
    """Local calendar date of a stored timestamp.

    Naive values are UTC, which is how SQLite hands back the
    ``created_at``/``updated_at`` columns.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(_local_zone()).date()


def parse_send_time(value: str) -> Optional[time]:
    """Parse a zero-padded 24-hour HH:MM string; None if malformed."""
    if not isinstance(value, str):
        return None
    match = SEND_TIME_RE.match(value.strip())
    if not match:
        return None
    return time(int(match.group(1)), int(match.group(2)))


def scheduled_moment(scheduled_date: date, scheduled_time: str) -> datetime:
    """Combine an instance's date and HH:MM time into a naive local datetime.

    A malformed time falls back to midnight, so the instance is treated as
    due from the start of its day.
    """
    parsed = parse_send_time(scheduled_time) or time(0, 0)
    return datetime.combine(scheduled_date, parsed)


def split_recipients(value: Optional[str]) -> List[str]:
    """Split a comma/semicolon delimited address list, dropping blanks."""
    if not value:
        return []
    return [part.strip() for part in RECIPIENT_SPLIT_RE.split(value) if part.strip()]
