"""
Module: stockout_kernel.models.account
Responsibility: ORM persistence for the chart of accounts and the role
    binding table that maps semantic account roles to concrete accounts.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Account.code is unique (uq_account_code).
    - At most one binding per (role, branch) (uq_account_role_binding).
      A binding with branch_id NULL is the generic binding for the role.

Failure modes:
    - IntegrityError on duplicate code or duplicate binding.

Audit relevance:
    Role bindings replace free-text account lookups: the ledger lines a
    stock-out produces depend only on which account a role is bound to.
"""

from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockout_kernel.db.base import TrackedBase, UUIDString


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class Account(TrackedBase):
    """
    Chart of accounts entry.

    Contract:
        Account.code is globally unique.  Name lookups are case-insensitive
        and only consider active accounts.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("code", name="uq_account_code"),
        Index("idx_account_type", "account_type"),
        Index("idx_account_active", "is_active"),
    )

    # Account identifier (human-readable code)
    code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    account_type: Mapped[AccountType] = mapped_column(
        String(20),
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name}>"


class AccountRoleBinding(TrackedBase):
    """
    Binds a semantic account role (e.g. INVENTORY_ASSET, LOSS_EXPIRED) to an
    account, optionally scoped to one branch.

    Resolution order is branch-specific binding first, then the generic
    (branch_id NULL) binding.
    """

    __tablename__ = "account_role_bindings"

    __table_args__ = (
        UniqueConstraint("role", "branch_id", name="uq_account_role_binding"),
        Index("idx_role_binding_role", "role"),
    )

    role: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    branch_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("branches.id"),
        nullable=True,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    account: Mapped[Account] = relationship(lazy="joined")

    def __repr__(self) -> str:
        scope = self.branch_id or "*"
        return f"<AccountRoleBinding {self.role}@{scope} -> {self.account_id}>"
