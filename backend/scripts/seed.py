"""Database seed script: creates a demo operator, department settings and sample schedules.

Run: python -m scripts.seed
"""

import asyncio
import sys
import os

# Ensure project root is in path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

SAMPLE_SCHEDULES = [
    {
        "name": "Daily operations summary",
        "description": "Morning summary to the operations team",
        "to_emails": "operations@example.com",
        "subject_template": "Operations summary {{date}} ({{day_name}})",
        "body_template": "<p>Dear team,</p><p>Summary for {{date}}.</p><p>{{user_name}}<br>{{department_name}}</p>",
        "frequency_type": "daily",
        "send_time": "08:30",
        "language": "en",
    },
    {
        "name": "Weekly status (Mon/Wed/Fri)",
        "to_emails": "leads@example.com; pmo@example.com",
        "cc_emails": "director@example.com",
        "subject_template": "Status update, week {{week_number}}",
        "body_template": "<p>Status for the {{week_in_month_ordinal}} week of {{month_name}} {{year}}.</p>",
        "frequency_type": "weekly",
        "frequency_days": [1, 3, 5],
        "send_time": "10:00",
        "language": "en",
    },
    {
        "name": "تقرير نهاية الشهر",
        "to_emails": "finance@example.com",
        "subject_template": "تقرير شهر {{month_name_arabic}} {{year_arabic}}",
        "body_template": "<p dir=\"rtl\">{{department_name_arabic}} - {{date_arabic}}</p>",
        "frequency_type": "monthly",
        "frequency_days": [28, 31],
        "send_time": "13:00",
        "language": "ar",
    },
]


async def seed():
    """Seed the database with demo data."""
    from db.database import init_db
    from db.database import AsyncSessionLocal
    from db.models.email_schedule import EmailSchedule
    from db.models.user import User
    from core.constants import SETTING_DEPARTMENT_NAME, SETTING_DEPARTMENT_NAME_ARABIC
    from services.schedule_service import ScheduleService
    from services.settings_service import SettingsService
    from sqlalchemy import select

    # Initialize DB tables
    await init_db()

    async with AsyncSessionLocal() as db:
        # 1. Demo operator
        user = await db.get(User, "admin")
        if not user:
            user = User(id="admin", display_name="Admin", arabic_name="المسؤول", is_active=True)
            db.add(user)
            await db.flush()
            print(f"[seed] Created operator: {user.display_name} ({user.id})")
        else:
            print(f"[seed] Operator exists: {user.display_name}")

        # 2. Department names used by {{department_name}}
        settings = SettingsService(db)
        if not await settings.get(SETTING_DEPARTMENT_NAME):
            await settings.set(SETTING_DEPARTMENT_NAME, "Operations")
            await settings.set(SETTING_DEPARTMENT_NAME_ARABIC, "العمليات")
            print("[seed] Department settings stored")
        await db.commit()

        # 3. Sample schedules (today's instances are generated on create)
        schedules = ScheduleService(db)
        for definition in SAMPLE_SCHEDULES:
            result = await db.execute(
                select(EmailSchedule).where(EmailSchedule.name == definition["name"])
            )
            if result.scalar_one_or_none():
                print(f"[seed] Schedule exists: {definition['name']}")
                continue
            schedule = await schedules.create_schedule(definition, user.id)
            print(f"[seed] Created schedule: {schedule.name} ({schedule.frequency_type} at {schedule.send_time})")

    print("[seed] Done.")


if __name__ == "__main__":
    asyncio.run(seed())
