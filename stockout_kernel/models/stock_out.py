"""
Module: stockout_kernel.models.stock_out
Responsibility: ORM persistence for stock-out transactions, one row per
    stock-removal event.
Architecture position: Kernel > Models.  May import from db/base.py and
    db/types.py only.

Invariants enforced:
    - Append-only: rows are never updated or deleted after insert (enforced
      by db/immutability.py).
    - reference_number is unique (uq_stock_out_reference).
    - quantity > 0 and unit_cost >= 0 (check constraints).
    - total_loss_amount == quantity * unit_cost when financial_impact is
      loss, else 0 (computed by the orchestrator before insert).
    - destination_branch_id is set iff reason is transferred (validated by
      the orchestrator before insert).

Failure modes:
    - IntegrityError on a duplicate reference number.
    - ImmutabilityViolationError on any UPDATE or DELETE.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from stockout_kernel.db.base import TrackedBase, UUIDString
from stockout_kernel.db.types import QUANTITY_TYPE


class StockOutStatus(str, Enum):
    """Approval status.  The engine auto-approves; PENDING and REJECTED
    belong to the manual approval screens."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class StockOutTransaction(TrackedBase):
    """
    A single stock-removal event.

    Contract:
        Written once by the orchestrator together with the source inventory
        decrement and the source InventoryMovement.  Never modified.
    """

    __tablename__ = "stock_out_transactions"

    __table_args__ = (
        UniqueConstraint("reference_number", name="uq_stock_out_reference"),
        CheckConstraint("quantity > 0", name="ck_stock_out_quantity_positive"),
        CheckConstraint("unit_cost >= 0", name="ck_stock_out_unit_cost_non_negative"),
        Index("idx_stock_out_inventory", "inventory_id"),
        Index("idx_stock_out_branch_date", "branch_id", "stock_out_date"),
        Index("idx_stock_out_reason", "stock_out_reason"),
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

    # StockOutReason value
    stock_out_reason: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
    )

    # AdjustmentType value; only for adjustment_correction
    adjustment_type: Mapped[str | None] = mapped_column(
        String(30),
        nullable=True,
    )

    quantity: Mapped[Decimal] = mapped_column(
        QUANTITY_TYPE,
        nullable=False,
    )

    unit_cost: Mapped[Decimal] = mapped_column(
        nullable=False,
    )

    # FinancialImpact value
    financial_impact: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
    )

    total_loss_amount: Mapped[Decimal] = mapped_column(
        default=Decimal("0"),
        nullable=False,
    )

    reference_number: Mapped[str] = mapped_column(
        String(40),
        nullable=False,
    )

    destination_branch_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("branches.id"),
        nullable=True,
    )

    supplier_return_reference: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    status: Mapped[StockOutStatus] = mapped_column(
        String(20),
        default=StockOutStatus.APPROVED,
        nullable=False,
    )

    stock_out_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    created_by_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("users.id"),
        nullable=False,
    )

    approved_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("users.id"),
        nullable=True,
    )

    approved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<StockOutTransaction {self.reference_number}: "
            f"{self.stock_out_reason} x{self.quantity}>"
        )
