"""Settings store and operator directory lookups.

Wraps the host application's key/value ``app_settings`` table and the
``users`` table. Configured values from app.config are the fallback when
a settings row is missing.
"""

from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from core.constants import (
    SETTING_DATE_FORMAT,
    SETTING_DEPARTMENT_NAME,
    SETTING_DEPARTMENT_NAME_ARABIC,
    SETTING_LAST_GENERATED_DATE,
)
from db.models.app_setting import AppSetting
from db.models.user import User
from services.placeholders import PlaceholderContext


class SettingsService:
    """Read/write access to app_settings plus user name lookup."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        row = await self.db.get(AppSetting, key)
        if row is None or row.value is None:
            return default
        return row.value

    async def set(self, key: str, value: Optional[str]) -> None:
        row = await self.db.get(AppSetting, key)
        if row is None:
            self.db.add(AppSetting(key=key, value=value))
        else:
            row.value = value
        await self.db.flush()

    # ─── Generation marker ─────────────────────────────────

    async def get_last_generated_date(self) -> Optional[date]:
        """The latest date generation is known to have completed for."""
        value = await self.get(SETTING_LAST_GENERATED_DATE)
        if not value:
            return None
        try:
            return date.fromisoformat(value)
        except ValueError:
            return None

    async def advance_last_generated_date(self, day: date) -> bool:
        """Move the marker forward to ``day``; never moves it backwards.

        Returns True if the marker changed.
        """
        current = await self.get_last_generated_date()
        if current is not None and current >= day:
            return False
        await self.set(SETTING_LAST_GENERATED_DATE, day.isoformat())
        return True

    # ─── Placeholder context ───────────────────────────────

    async def get_user(self, user_id: Optional[str]) -> Optional[User]:
        if not user_id:
            return None
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def placeholder_context(self, actor: Optional[str]) -> PlaceholderContext:
        """Resolve department and operator names for rendering."""
        settings = get_settings()
        user = await self.get_user(actor)
        display_name = user.display_name if user else ""
        return PlaceholderContext(
            department_name=await self.get(SETTING_DEPARTMENT_NAME, settings.DEPARTMENT_NAME) or "",
            department_name_arabic=await self.get(
                SETTING_DEPARTMENT_NAME_ARABIC, settings.DEPARTMENT_NAME_ARABIC
            ) or "",
            user_name=display_name,
            user_name_arabic=(user.arabic_name if user and user.arabic_name else display_name),
            date_format=await self.get(SETTING_DATE_FORMAT, settings.DATE_FORMAT) or settings.DATE_FORMAT,
        )
