"""User model: read-only operator directory used for placeholder names."""

from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import RecordModel


class User(RecordModel):
    """Operator known to the host application.

    Attributes:
        id: Unique identifier (UUID string)
        display_name: Name rendered by {{user_name}}
        arabic_name: Name rendered by {{user_name_arabic}}
        is_active: Whether the account is active
    """

    __tablename__ = "users"

    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    arabic_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True)
