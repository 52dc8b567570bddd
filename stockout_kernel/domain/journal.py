"""
Journal builder -- pure double-entry planning for stock-outs.

Responsibility:
    Turns a classified stock-out into a balanced JournalPlan: a description
    plus debit/credit lines expressed against account *roles* (not account
    ids).  The journal poster resolves the roles and persists the plan.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.

Posting rules (amount = quantity * unit cost, rounded to currency places):

    Reason / impact              Debit                          Credit
    ---------------------------  -----------------------------  ----------------------------
    any LOSS                     loss role of the reason        INVENTORY_ASSET(source)
    returned_to_supplier         SUPPLIER_RETURNS_PAYABLE       INVENTORY_ASSET(source)
    transferred + destination    INVENTORY_ASSET(destination)   INVENTORY_ASSET(source)

    Anything else needs no entry and build_journal_plan() returns None.

Invariants enforced:
    - Every plan has sum(debit) == sum(credit) == amount.
    - Every line has exactly one non-zero side (when amount > 0).
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from stockout_kernel.db.types import DEFAULT_MONEY_DECIMAL_PLACES, ZERO, round_money
from stockout_kernel.domain.reasons import (
    FinancialImpact,
    StockOutReason,
    reason_label,
    requires_journal_entry,
)
from stockout_kernel.domain.settings import AccountRole
from stockout_kernel.exceptions import UnbalancedEntryError

_LOSS_ROLES: dict[StockOutReason, AccountRole] = {
    StockOutReason.EXPIRED: AccountRole.LOSS_EXPIRED,
    StockOutReason.DAMAGED: AccountRole.LOSS_DAMAGED,
    StockOutReason.LOST_MISSING: AccountRole.LOSS_SHRINKAGE,
    StockOutReason.ADJUSTMENT_CORRECTION: AccountRole.LOSS_SHRINKAGE,
}


@dataclass(frozen=True)
class JournalLineSpec:
    """One planned ledger line against an account role."""

    role: AccountRole
    branch_id: UUID | None
    debit: Decimal
    credit: Decimal
    memo: str


@dataclass(frozen=True)
class JournalPlan:
    """A balanced ledger entry awaiting account resolution."""

    description: str
    amount: Decimal
    lines: tuple[JournalLineSpec, ...]

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits

    def required_roles(self) -> list[tuple[AccountRole, UUID | None]]:
        """(role, branch) pairs the poster must resolve, in line order."""
        return [(line.role, line.branch_id) for line in self.lines]


def loss_role_for(reason: StockOutReason) -> AccountRole:
    """Expense role debited for a loss.

    Raises:
        KeyError: for reasons that are never classified as loss.
    """
    return _LOSS_ROLES[StockOutReason(reason)]


def _format_quantity(quantity: Decimal) -> str:
    return format(quantity.normalize(), "f")


def build_description(
    reason: StockOutReason,
    product_name: str,
    quantity: Decimal,
    notes: str | None = None,
) -> str:
    """``Stock Out - {Label}: {product} - {qty} units`` plus `` ({notes})``."""
    description = (
        f"Stock Out - {reason_label(reason)}: {product_name} - "
        f"{_format_quantity(quantity)} units"
    )
    if notes:
        description += f" ({notes})"
    return description


def build_journal_plan(
    *,
    impact: FinancialImpact,
    reason: StockOutReason,
    amount: Decimal,
    branch_id: UUID,
    product_name: str,
    quantity: Decimal,
    destination_branch_id: UUID | None = None,
    notes: str | None = None,
    supplier_return_reference: str | None = None,
    decimal_places: int = DEFAULT_MONEY_DECIMAL_PLACES,
) -> JournalPlan | None:
    """
    Plan the ledger entry for a stock-out.

    Returns:
        The balanced JournalPlan, or None when the reason needs no entry.

    Raises:
        ValueError: if amount is negative.
        UnbalancedEntryError: if the planned lines do not balance.
    """
    reason = StockOutReason(reason)
    impact = FinancialImpact(impact)
    if not requires_journal_entry(impact, reason, destination_branch_id is not None):
        return None
    if amount < ZERO:
        raise ValueError(f"Journal amount must be non-negative, got {amount}")

    amount = round_money(amount, decimal_places)
    label = reason_label(reason)

    if impact is FinancialImpact.LOSS:
        lines = (
            JournalLineSpec(
                role=loss_role_for(reason),
                branch_id=branch_id,
                debit=amount,
                credit=ZERO,
                memo=f"Inventory loss: {product_name} ({label})",
            ),
            JournalLineSpec(
                role=AccountRole.INVENTORY_ASSET,
                branch_id=branch_id,
                debit=ZERO,
                credit=amount,
                memo=f"Reduction of inventory: {product_name}",
            ),
        )
    elif reason is StockOutReason.RETURNED_TO_SUPPLIER:
        memo = f"Supplier return: {product_name}"
        if supplier_return_reference:
            memo += f" (Ref: {supplier_return_reference})"
        lines = (
            JournalLineSpec(
                role=AccountRole.SUPPLIER_RETURNS_PAYABLE,
                branch_id=branch_id,
                debit=amount,
                credit=ZERO,
                memo=memo,
            ),
            JournalLineSpec(
                role=AccountRole.INVENTORY_ASSET,
                branch_id=branch_id,
                debit=ZERO,
                credit=amount,
                memo=f"Reduction of inventory: {product_name}",
            ),
        )
    else:
        lines = (
            JournalLineSpec(
                role=AccountRole.INVENTORY_ASSET,
                branch_id=destination_branch_id,
                debit=amount,
                credit=ZERO,
                memo=f"Inventory transfer in: {product_name}",
            ),
            JournalLineSpec(
                role=AccountRole.INVENTORY_ASSET,
                branch_id=branch_id,
                debit=ZERO,
                credit=amount,
                memo=f"Inventory transfer out: {product_name}",
            ),
        )

    plan = JournalPlan(
        description=build_description(reason, product_name, quantity, notes),
        amount=amount,
        lines=lines,
    )
    if not plan.is_balanced or plan.total_debits != amount:
        raise UnbalancedEntryError(plan.total_debits, plan.total_credits)
    return plan
