"""Tests for time and recipient helpers."""

from datetime import date, datetime, time, timezone

import pytest

from app.config import get_settings
from core.utils import local_date, parse_send_time, scheduled_moment, split_recipients


@pytest.mark.unit
class TestSendTime:

    @pytest.mark.parametrize("value,expected", [
        ("00:00", time(0, 0)),
        ("09:05", time(9, 5)),
        ("23:59", time(23, 59)),
    ])
    def test_valid(self, value, expected):
        assert parse_send_time(value) == expected

    @pytest.mark.parametrize("value", ["9:00", "24:00", "12:60", "noon", "", None])
    def test_invalid(self, value):
        assert parse_send_time(value) is None

    def test_scheduled_moment(self):
        assert scheduled_moment(date(2024, 3, 15), "14:30") == datetime(2024, 3, 15, 14, 30)

    def test_scheduled_moment_malformed_time_is_midnight(self):
        assert scheduled_moment(date(2024, 3, 15), "bad") == datetime(2024, 3, 15, 0, 0)


@pytest.mark.unit
class TestRecipients:

    def test_mixed_delimiters(self):
        assert split_recipients("a@x.com; b@x.com,c@x.com") == ["a@x.com", "b@x.com", "c@x.com"]

    def test_blank_entries_dropped(self):
        assert split_recipients(" ; a@x.com ;; ") == ["a@x.com"]

    def test_empty(self):
        assert split_recipients(None) == []
        assert split_recipients("") == []


@pytest.mark.unit
class TestLocalDate:

    def test_naive_timestamps_are_read_as_utc(self, monkeypatch):
        monkeypatch.setattr(get_settings(), "TIMEZONE", "Asia/Riyadh")
        assert local_date(datetime(2024, 3, 14, 22, 0)) == date(2024, 3, 15)

    def test_aware_timestamp_behind_utc(self, monkeypatch):
        monkeypatch.setattr(get_settings(), "TIMEZONE", "America/New_York")
        assert local_date(datetime(2024, 3, 15, 2, 0, tzinfo=timezone.utc)) == date(2024, 3, 14)

    def test_utc_zone_keeps_the_date(self, monkeypatch):
        monkeypatch.setattr(get_settings(), "TIMEZONE", "UTC")
        assert local_date(datetime(2024, 3, 14, 23, 59)) == date(2024, 3, 14)
