"""Tests for database models: constraints and soft delete."""

from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError

from db.models.email_schedule import EmailSchedule
from db.models.schedule_instance import ScheduleInstance
from services.settings_service import SettingsService


def new_instance(schedule_id, day=date(2024, 3, 15)):
    return ScheduleInstance(
        id=str(uuid4()),
        schedule_id=schedule_id,
        scheduled_date=day,
        scheduled_time="09:00",
        status="pending",
    )


@pytest.mark.integration
class TestEmailScheduleModel:

    async def test_create_schedule(self, db_session):
        schedule = EmailSchedule(
            id=str(uuid4()),
            name="Month end",
            to_emails="finance@example.com",
            subject_template="Closing {{month_name}}",
            frequency_type="monthly",
            frequency_days=[28, 31],
            send_time="08:00",
        )
        db_session.add(schedule)
        await db_session.flush()
        await db_session.refresh(schedule)

        assert schedule.created_at is not None
        assert schedule.frequency_days == [28, 31]
        assert schedule.is_active is True
        assert schedule.is_deleted is False
        assert schedule.language == "en"

    async def test_soft_delete_and_restore(self, db_session, make_schedule):
        schedule = await db_session.get(EmailSchedule, await make_schedule())

        schedule.soft_delete()
        assert schedule.is_deleted is True
        assert schedule.deleted_at is not None

        schedule.restore()
        assert schedule.is_deleted is False
        assert schedule.deleted_at is None


@pytest.mark.integration
class TestScheduleInstanceModel:

    async def test_one_instance_per_schedule_and_date(self, db_session, make_schedule):
        schedule_id = await make_schedule()
        db_session.add(new_instance(schedule_id))
        await db_session.flush()

        db_session.add(new_instance(schedule_id))
        with pytest.raises(IntegrityError):
            await db_session.flush()
        await db_session.rollback()

    async def test_same_date_different_schedules(self, db_session, make_schedule):
        first = await make_schedule(name="First")
        second = await make_schedule(name="Second")

        db_session.add_all([new_instance(first), new_instance(second)])
        await db_session.flush()

    async def test_schedule_must_exist(self, db_session):
        db_session.add(new_instance("no-such-schedule"))
        with pytest.raises(IntegrityError):
            await db_session.flush()
        await db_session.rollback()


@pytest.mark.integration
class TestAppSettings:

    async def test_marker_only_moves_forward(self, db_session):
        settings = SettingsService(db_session)

        assert await settings.advance_last_generated_date(date(2024, 3, 10)) is True
        assert await settings.advance_last_generated_date(date(2024, 3, 8)) is False
        assert await settings.get_last_generated_date() == date(2024, 3, 10)

    async def test_unparseable_marker_is_ignored(self, db_session):
        settings = SettingsService(db_session)
        await settings.set("last_generated_date", "yesterday")

        assert await settings.get_last_generated_date() is None

    async def test_get_default(self, db_session):
        assert await SettingsService(db_session).get("missing", "fallback") == "fallback"


@pytest.mark.unit
class TestMappings:

    def test_instances_link_to_schedules_by_foreign_key_only(self):
        # Services join explicitly; no lazy relationship can fire in an async session
        assert not inspect(EmailSchedule).relationships
        assert not inspect(ScheduleInstance).relationships
        [fk] = ScheduleInstance.__table__.c.schedule_id.foreign_keys
        assert fk.column.table.name == EmailSchedule.__tablename__
