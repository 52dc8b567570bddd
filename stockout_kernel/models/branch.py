"""
Module: stockout_kernel.models.branch
Responsibility: ORM persistence for branches (stock locations).
Architecture position: Kernel > Models.  May import from db/base.py only.

Branches are reference data owned outside the stock-out engine.  The engine
reads them to name branch inventory accounts and to validate transfer
destinations.
"""

from sqlalchemy import Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stockout_kernel.db.base import TrackedBase


class Branch(TrackedBase):
    """A physical store or warehouse holding inventory."""

    __tablename__ = "branches"

    __table_args__ = (
        UniqueConstraint("code", name="uq_branch_code"),
    )

    code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Inactive branches cannot receive transfers
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Branch {self.code}: {self.name}>"
