"""Base service with soft-delete aware lookups and storage error translation.

All service classes inherit from this. Provides standard reads,
creation, flush/commit with lock translation, and audit logging.
"""

from typing import Any, Generic, Optional, Type, TypeVar
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import TransientStorageError
from db.base import Base
from db.models.audit_log import AuditLog

ModelType = TypeVar("ModelType", bound=Base)

_TRANSIENT_MARKERS = ("database is locked", "database is busy", "database table is locked")


def is_transient(exc: OperationalError) -> bool:
    """True if the driver error means the store was momentarily busy."""
    text = str(getattr(exc, "orig", exc)).lower()
    return any(marker in text for marker in _TRANSIENT_MARKERS)


class BaseService(Generic[ModelType]):
    """Generic service for any SQLAlchemy model.

    Usage:
        class ScheduleService(BaseService[EmailSchedule]):
            def __init__(self, db: AsyncSession):
                super().__init__(EmailSchedule, db)
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    # ─── Read ──────────────────────────────────────────────

    async def get_by_id(
        self,
        id: str,
        include_deleted: bool = False,
    ) -> Optional[ModelType]:
        """Get a single record by ID."""
        query = select(self.model).where(self.model.id == id)
        if not include_deleted and hasattr(self.model, "is_deleted"):
            query = query.where(self.model.is_deleted == False)  # noqa: E712
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    # ─── Create ────────────────────────────────────────────

    async def create(self, data: dict[str, Any]) -> ModelType:
        """Create a new record.

        Args:
            data: Dict of field values

        Returns:
            Created model instance
        """
        if "id" not in data:
            data["id"] = str(uuid4())

        instance = self.model(**data)
        self.db.add(instance)
        await self.flush()
        await self.db.refresh(instance)
        return instance

    # ─── Persistence ───────────────────────────────────────

    async def flush(self) -> None:
        """Flush pending changes, translating lock errors."""
        try:
            await self.db.flush()
        except OperationalError as e:
            if is_transient(e):
                raise TransientStorageError(f"Store is busy: {e.orig}") from e
            raise

    async def commit(self) -> None:
        """Commit the session, translating lock errors."""
        try:
            await self.db.commit()
        except OperationalError as e:
            await self.db.rollback()
            if is_transient(e):
                raise TransientStorageError(f"Store is busy: {e.orig}") from e
            raise

    # ─── Audit ─────────────────────────────────────────────

    async def audit(
        self,
        action: str,
        user_id: Optional[str],
        resource_type: str,
        resource_id: str,
        details: Optional[dict] = None,
    ) -> None:
        """Record an operator action in the audit log."""
        self.db.add(
            AuditLog(
                id=str(uuid4()),
                user_id=user_id,
                resource_type=resource_type,
                resource_id=resource_id,
                action=action,
                details=details or {},
            )
        )
