"""FastAPI dependency injection functions."""

from datetime import datetime
from typing import AsyncGenerator, Callable, Optional

from fastapi import Header
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.config import get_settings
from core.events import EventBus, get_event_bus
from core.utils import local_now
from db.database import AsyncSessionLocal

logger = logging.getLogger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a database session for API endpoints.

    Yields an async SQLAlchemy session that is automatically
    committed on success or rolled back on error.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.error(f"Database error: {str(e)}")
            await session.rollback()
            raise
        finally:
            await session.close()


def get_clock() -> Callable[[], datetime]:
    """Wall-clock source for the engine; overridden in tests."""
    return local_now


def get_bus() -> EventBus:
    return get_event_bus()


async def get_actor(x_user_id: Optional[str] = Header(default=None)) -> str:
    """
    Resolve the acting operator from the X-User-ID header.

    Authentication belongs to the host application; requests without
    the header act as the configured DEFAULT_ACTOR.
    """
    return (x_user_id or "").strip() or get_settings().DEFAULT_ACTOR
