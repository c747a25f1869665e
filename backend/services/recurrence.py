"""Recurrence evaluation for email schedules.

Pure functions: no I/O, deterministic for a given (rule, date). The
generator calls them repeatedly during backfill.

Weekday indexes count from Sunday: 0=Sunday, 1=Monday ... 6=Saturday.
Monthly days are days of month 1..31; a day the month does not have
(31 in April, 30 in February) is skipped for that month, never clamped
to month-end and never rolled into the next month.
"""

import calendar
from datetime import date, timedelta
from typing import Iterable, Iterator, List, Optional, Protocol

from core.constants import FrequencyType


class RecurrenceRule(Protocol):
    """Anything carrying a schedule's frequency fields."""

    frequency_type: str
    frequency_days: Optional[List[int]]


def sunday_weekday(day: date) -> int:
    """Weekday index with Sunday as 0."""
    return (day.weekday() + 1) % 7


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def monthly_fire_days(year: int, month: int, frequency_days: Iterable[int]) -> List[int]:
    """Configured days of month that exist in the given month, ascending."""
    last_day = days_in_month(year, month)
    return sorted({int(d) for d in frequency_days if 1 <= int(d) <= last_day})


def fires_on(schedule: RecurrenceRule, day: date) -> bool:
    """Decide whether ``day`` is a fire date for ``schedule``."""
    frequency = schedule.frequency_type
    if frequency == FrequencyType.DAILY.value:
        return True

    frequency_days = schedule.frequency_days or []
    if frequency == FrequencyType.WEEKLY.value:
        return sunday_weekday(day) in {int(d) for d in frequency_days}
    if frequency == FrequencyType.MONTHLY.value:
        return day.day in monthly_fire_days(day.year, day.month, frequency_days)
    return False


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Calendar dates from start to end, both inclusive, oldest first."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def fire_dates(schedule: RecurrenceRule, start: date, end: date) -> List[date]:
    """All fire dates of ``schedule`` in [start, end]."""
    return [day for day in iter_dates(start, end) if fires_on(schedule, day)]
