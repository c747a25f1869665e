"""Tests for recurrence evaluation."""

from datetime import date
from types import SimpleNamespace

import pytest

from services.recurrence import (
    fire_dates,
    fires_on,
    iter_dates,
    monthly_fire_days,
    sunday_weekday,
)


def rule(frequency_type, frequency_days=None):
    return SimpleNamespace(frequency_type=frequency_type, frequency_days=frequency_days)


@pytest.mark.unit
class TestWeekdayIndex:

    def test_sunday_is_zero(self):
        assert sunday_weekday(date(2024, 3, 3)) == 0

    def test_saturday_is_six(self):
        assert sunday_weekday(date(2024, 3, 9)) == 6

    def test_monday_is_one(self):
        assert sunday_weekday(date(2024, 3, 4)) == 1


@pytest.mark.unit
class TestFiresOn:

    def test_daily_fires_every_day(self):
        daily = rule("daily")
        assert all(fires_on(daily, d) for d in iter_dates(date(2024, 2, 25), date(2024, 3, 5)))

    def test_weekly_mon_wed_fri_over_four_weeks(self):
        weekly = rule("weekly", [1, 3, 5])
        dates = fire_dates(weekly, date(2024, 3, 3), date(2024, 3, 30))

        assert dates == [
            date(2024, 3, 4), date(2024, 3, 6), date(2024, 3, 8),
            date(2024, 3, 11), date(2024, 3, 13), date(2024, 3, 15),
            date(2024, 3, 18), date(2024, 3, 20), date(2024, 3, 22),
            date(2024, 3, 25), date(2024, 3, 27), date(2024, 3, 29),
        ]
        assert {d.weekday() for d in dates} == {0, 2, 4}

    def test_weekly_sunday(self):
        weekly = rule("weekly", [0])
        assert fires_on(weekly, date(2024, 3, 10))
        assert not fires_on(weekly, date(2024, 3, 11))

    def test_weekly_without_days_never_fires(self):
        assert fire_dates(rule("weekly", []), date(2024, 3, 1), date(2024, 3, 31)) == []

    def test_monthly_day_31_skips_short_months(self):
        monthly = rule("monthly", [31])
        dates = fire_dates(monthly, date(2024, 1, 1), date(2024, 12, 31))

        assert [d.month for d in dates] == [1, 3, 5, 7, 8, 10, 12]
        assert all(d.day == 31 for d in dates)

    def test_monthly_day_31_never_rolls_into_next_month(self):
        monthly = rule("monthly", [31])
        for day in (date(2024, 3, 1), date(2024, 5, 1), date(2024, 7, 1), date(2024, 10, 1)):
            assert not fires_on(monthly, day)

    def test_monthly_day_30_in_february(self):
        monthly = rule("monthly", [30])
        assert fire_dates(monthly, date(2024, 2, 1), date(2024, 2, 29)) == []
        assert not fires_on(monthly, date(2024, 3, 1))

    def test_monthly_multiple_days(self):
        monthly = rule("monthly", [1, 15])
        assert fire_dates(monthly, date(2024, 4, 1), date(2024, 4, 30)) == [
            date(2024, 4, 1), date(2024, 4, 15),
        ]

    def test_unknown_frequency_never_fires(self):
        assert not fires_on(rule("hourly"), date(2024, 3, 15))


@pytest.mark.unit
class TestCalendarHelpers:

    def test_monthly_fire_days_leap_year(self):
        assert monthly_fire_days(2024, 2, [29, 30, 31]) == [29]

    def test_monthly_fire_days_common_year(self):
        assert monthly_fire_days(2023, 2, [29, 30, 31]) == []

    def test_iter_dates_is_inclusive(self):
        assert list(iter_dates(date(2024, 2, 28), date(2024, 3, 1))) == [
            date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1),
        ]

    def test_iter_dates_empty_when_start_after_end(self):
        assert list(iter_dates(date(2024, 3, 2), date(2024, 3, 1))) == []
