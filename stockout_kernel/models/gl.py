"""
Module: stockout_kernel.models.gl
Responsibility: ORM persistence for general-ledger transactions and their
    line items, written by the journal poster.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - transaction_number is unique (uq_gl_transaction_number).
    - Amounts are non-negative and no line carries both a debit and a credit
      (ck_gl_item_one_side).
    - Once status is POSTED, the transaction and its items are immutable
      (enforced by db/immutability.py).

Failure modes:
    - IntegrityError on a duplicate transaction number or a two-sided line.
    - ImmutabilityViolationError on UPDATE/DELETE of a posted transaction.

Audit relevance:
    reference_number ties a ledger transaction back to the stock-out that
    caused it.
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
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockout_kernel.db.base import TrackedBase, UUIDString
from stockout_kernel.models.account import Account


class GLTransactionStatus(str, Enum):
    """Posting status."""

    DRAFT = "draft"
    POSTED = "posted"


class GLTransactionType(str, Enum):
    """Ledger transaction types.  Stock-outs always post ADJUSTMENT."""

    SALE = "sale"
    PURCHASE = "purchase"
    ADJUSTMENT = "adjustment"


class GLTransaction(TrackedBase):
    """
    Ledger transaction header.

    Guarantees:
        - sum(debit_amount) == sum(credit_amount) == total_amount, checked by
          the journal poster before insert.  is_balanced is a read-side
          convenience, not a write-time guard.
    """

    __tablename__ = "gl_transactions"

    __table_args__ = (
        UniqueConstraint("transaction_number", name="uq_gl_transaction_number"),
        Index("idx_gl_reference", "reference_number"),
        Index("idx_gl_date", "transaction_date"),
    )

    transaction_number: Mapped[str] = mapped_column(
        String(40),
        nullable=False,
    )

    transaction_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    transaction_type: Mapped[GLTransactionType] = mapped_column(
        String(20),
        default=GLTransactionType.ADJUSTMENT,
        nullable=False,
    )

    reference_number: Mapped[str | None] = mapped_column(
        String(40),
        nullable=True,
    )

    total_amount: Mapped[Decimal] = mapped_column(
        nullable=False,
    )

    status: Mapped[GLTransactionStatus] = mapped_column(
        String(10),
        default=GLTransactionStatus.DRAFT,
        nullable=False,
    )

    posted_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("users.id"),
        nullable=True,
    )

    posted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    items: Mapped[list["GLTransactionItem"]] = relationship(
        back_populates="transaction",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="GLTransactionItem.line_seq",
    )

    @property
    def total_debits(self) -> Decimal:
        return sum((item.debit_amount for item in self.items), Decimal("0"))

    @property
    def total_credits(self) -> Decimal:
        return sum((item.credit_amount for item in self.items), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits

    def __repr__(self) -> str:
        return f"<GLTransaction {self.transaction_number}: {self.total_amount}>"


class GLTransactionItem(TrackedBase):
    """One debit or credit line of a ledger transaction."""

    __tablename__ = "gl_transaction_items"

    __table_args__ = (
        CheckConstraint(
            "debit_amount >= 0 AND credit_amount >= 0 "
            "AND (debit_amount = 0 OR credit_amount = 0)",
            name="ck_gl_item_one_side",
        ),
        Index("idx_gl_item_transaction", "gl_transaction_id"),
        Index("idx_gl_item_account", "account_id"),
    )

    gl_transaction_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("gl_transactions.id"),
        nullable=False,
    )

    # Order within the transaction
    line_seq: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    debit_amount: Mapped[Decimal] = mapped_column(
        default=Decimal("0"),
        nullable=False,
    )

    credit_amount: Mapped[Decimal] = mapped_column(
        default=Decimal("0"),
        nullable=False,
    )

    memo: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    transaction: Mapped[GLTransaction] = relationship(back_populates="items")

    account: Mapped[Account] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return (
            f"<GLTransactionItem {self.account_id} "
            f"Dr {self.debit_amount} Cr {self.credit_amount}>"
        )
