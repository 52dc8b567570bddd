"""
Module: stockout_kernel.models.product
Responsibility: ORM persistence for the product catalog entries the engine
    prices and names in ledger memos.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from decimal import Decimal

from sqlalchemy import Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stockout_kernel.db.base import TrackedBase


class Product(TrackedBase):
    """
    Catalog product.

    ``cost`` is the static recorded unit cost.  It is the fallback when no
    inbound movement history exists, and may be absent or zero.
    """

    __tablename__ = "products"

    __table_args__ = (
        UniqueConstraint("sku", name="uq_product_sku"),
    )

    sku: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    cost: Mapped[Decimal | None] = mapped_column(
        nullable=True,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Product {self.sku}: {self.name}>"
