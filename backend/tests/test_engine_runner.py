"""Tests for startup recovery and the refresh loop."""

import asyncio
from datetime import date

import pytest
from sqlalchemy import select

from core.constants import ChangeKind
from core.events import ChangeEvent
from db.models.schedule_instance import ScheduleInstance
from services.engine_runner import EngineRunner
from services.settings_service import SettingsService


@pytest.fixture
def runner(session_factory, clock, event_bus):
    return EngineRunner(session_factory=session_factory, clock=clock, event_bus=event_bus, interval=3600)


async def wait_for(predicate, attempts: int = 200):
    for _ in range(attempts):
        if predicate():
            return True
        await asyncio.sleep(0.01)
    return False


@pytest.mark.integration
class TestRecovery:

    async def test_recover_backfills_generates_and_reclassifies(
        self, db_session, runner, make_schedule,
    ):
        schedule_id = await make_schedule(send_time="09:00")
        await SettingsService(db_session).advance_last_generated_date(date(2024, 3, 12))
        await db_session.commit()

        result = await runner.recover()

        assert result.missed_dates == [date(2024, 3, 13), date(2024, 3, 14)]
        assert result.generated == 3
        assert result.errors == []

        rows = await db_session.execute(
            select(ScheduleInstance.scheduled_date, ScheduleInstance.status)
            .where(ScheduleInstance.schedule_id == schedule_id)
            .order_by(ScheduleInstance.scheduled_date)
        )
        assert [(d.day, s) for d, s in rows.all()] == [
            (13, "overdue"), (14, "overdue"), (15, "overdue"),
        ]
        assert runner.last_recovery is result

    async def test_recover_never_raises(self, clock, event_bus):
        def broken_factory():
            raise RuntimeError("database unavailable")

        runner = EngineRunner(session_factory=broken_factory, clock=clock, event_bus=event_bus, interval=60)

        result = await runner.recover()

        assert len(result.errors) == 1
        assert "database unavailable" in result.errors[0].error
        assert runner.status()["last_errors"][0]["error"] == "database unavailable"


@pytest.mark.integration
class TestRefreshLoop:

    async def test_tick_generates_today_and_counts(self, db_session, runner, make_schedule):
        await make_schedule(name="Morning", send_time="09:00")
        await make_schedule(name="Afternoon", send_time="14:00")

        counts = await runner.tick()

        assert (counts.pending, counts.overdue, counts.total) == (1, 1, 2)
        assert runner.latest_counts == counts
        assert runner.last_tick_at is not None

    async def test_tick_covers_day_rollover(self, db_session, runner, make_schedule, clock):
        await make_schedule(send_time="23:00")
        await runner.tick()

        clock.advance(days=1)
        counts = await runner.tick()

        assert counts.scheduled_date == date(2024, 3, 16)
        assert counts.pending == 1

    async def test_start_and_stop(self, runner, event_bus):
        await runner.start()
        try:
            assert runner.is_running
            assert event_bus.subscriber_count == 1
            assert await wait_for(lambda: runner.last_tick_at is not None)
        finally:
            await runner.stop()

        assert not runner.is_running
        assert event_bus.subscriber_count == 0

    async def test_change_event_wakes_loop(self, runner, event_bus):
        await runner.start()
        try:
            assert await wait_for(lambda: runner.last_tick_at is not None)
            first_tick = runner.last_tick_at

            await event_bus.publish(ChangeEvent(ChangeKind.INSTANCE_SENT, "i-1"))

            assert await wait_for(lambda: runner.last_tick_at != first_tick)
        finally:
            await runner.stop()

    async def test_status(self, runner):
        status = runner.status()

        assert status["running"] is False
        assert status["interval_seconds"] == 3600
        assert status["counts"] is None
        assert status["last_errors"] == []
