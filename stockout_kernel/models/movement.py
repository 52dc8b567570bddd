"""
Module: stockout_kernel.models.movement
Responsibility: ORM persistence for inventory movements, the append-only
    audit trail of every physical quantity change.
Architecture position: Kernel > Models.  May import from db/base.py and
    db/types.py only.

Invariants enforced:
    - Append-only (enforced by db/immutability.py).
    - quantity is signed: negative for decrements, positive for increments.
    - Movements written for one stock-out share its reference_number, so
      the signed sum per reference is 0 for a completed transfer and the
      negative stock-out quantity otherwise.

Audit relevance:
    Inbound movements (purchase, transfer_in) carry unit_cost, which is the
    history the weighted-average cost resolver reads.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from stockout_kernel.db.base import TrackedBase, UUIDString
from stockout_kernel.db.types import QUANTITY_TYPE


class InventoryMovement(TrackedBase):
    """One signed quantity change on one inventory record."""

    __tablename__ = "inventory_movements"

    __table_args__ = (
        Index("idx_movement_reference", "reference_number"),
        Index("idx_movement_inventory", "inventory_id"),
        Index(
            "idx_movement_costing",
            "product_id",
            "branch_id",
            "movement_type",
            "movement_date",
        ),
    )

    inventory_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inventory.id"),
        nullable=False,
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    branch_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("branches.id"),
        nullable=False,
    )

    # MovementType value
    movement_type: Mapped[str] = mapped_column(
        String(40),
        nullable=False,
    )

    # Signed
    quantity: Mapped[Decimal] = mapped_column(
        QUANTITY_TYPE,
        nullable=False,
    )

    # Recorded on inbound movements only
    unit_cost: Mapped[Decimal | None] = mapped_column(
        nullable=True,
    )

    reference_number: Mapped[str | None] = mapped_column(
        String(40),
        nullable=True,
    )

    # Owning StockOutTransaction id (no FK: purchases reference other documents)
    reference_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    movement_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    created_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("users.id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<InventoryMovement {self.movement_type} {self.quantity:+}>"
