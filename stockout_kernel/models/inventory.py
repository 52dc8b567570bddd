"""
Module: stockout_kernel.models.inventory
Responsibility: ORM persistence for per-branch stock levels.
Architecture position: Kernel > Models.  May import from db/base.py and
    db/types.py only.

Invariants enforced:
    - One row per (product, branch) (uq_inventory_product_branch).
    - quantity_available is derived (on_hand - reserved), never stored.

Failure modes:
    - IntegrityError on a second row for the same (product, branch).

Audit relevance:
    Inventory rows are mutable state shared with the sales pipeline.  Every
    change the stock-out engine makes is mirrored by an append-only
    InventoryMovement row.
"""

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockout_kernel.db.base import TrackedBase, UUIDString
from stockout_kernel.db.types import QUANTITY_TYPE

if TYPE_CHECKING:
    from stockout_kernel.models.branch import Branch
    from stockout_kernel.models.product import Product


class InventoryRecord(TrackedBase):
    """
    Stock level of one product at one branch.

    Guarantees:
        - quantity_on_hand and quantity_reserved are Decimal.
        - quantity_available == quantity_on_hand - quantity_reserved.
    """

    __tablename__ = "inventory"

    __table_args__ = (
        UniqueConstraint("product_id", "branch_id", name="uq_inventory_product_branch"),
        Index("idx_inventory_branch", "branch_id"),
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

    quantity_on_hand: Mapped[Decimal] = mapped_column(
        QUANTITY_TYPE,
        default=Decimal("0"),
        nullable=False,
    )

    # Held for open orders; not available for stock-out
    quantity_reserved: Mapped[Decimal] = mapped_column(
        QUANTITY_TYPE,
        default=Decimal("0"),
        nullable=False,
    )

    reorder_level: Mapped[Decimal] = mapped_column(
        QUANTITY_TYPE,
        default=Decimal("0"),
        nullable=False,
    )

    max_stock_level: Mapped[Decimal] = mapped_column(
        QUANTITY_TYPE,
        default=Decimal("0"),
        nullable=False,
    )

    product: Mapped["Product"] = relationship(lazy="joined")

    branch: Mapped["Branch"] = relationship(lazy="joined")

    @property
    def quantity_available(self) -> Decimal:
        """On-hand stock that is not reserved."""
        return (self.quantity_on_hand or Decimal("0")) - (
            self.quantity_reserved or Decimal("0")
        )

    def __repr__(self) -> str:
        return (
            f"<InventoryRecord product={self.product_id} branch={self.branch_id} "
            f"on_hand={self.quantity_on_hand}>"
        )
