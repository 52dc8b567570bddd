"""
Module: stockout_kernel.models.user
Responsibility: ORM persistence for the user store consulted by actor
    resolution.
Architecture position: Kernel > Models.  May import from db/base.py only.

Only active users may act.  ``status`` and ``last_activity_at`` feed the
opt-in "recently online" actor heuristic.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stockout_kernel.db.base import TrackedBase


class UserStatus(str, Enum):
    """Presence status maintained by the login front-end."""

    ONLINE = "online"
    AWAY = "away"
    OFFLINE = "offline"


class User(TrackedBase):
    """A person who can perform stock-out operations."""

    __tablename__ = "users"

    __table_args__ = (
        UniqueConstraint("email", name="uq_user_email"),
        Index("idx_user_status_activity", "status", "last_activity_at"),
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    status: Mapped[UserStatus] = mapped_column(
        String(20),
        default=UserStatus.OFFLINE,
        nullable=False,
    )

    last_activity_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"
