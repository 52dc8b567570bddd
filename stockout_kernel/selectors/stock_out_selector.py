"""
Module: stockout_kernel.selectors.stock_out_selector
Responsibility: Read-only reconciliation queries keyed by stock-out reference
    number.  Every row written for one stock-out (transaction, movements,
    ledger transaction) carries the same reference, so an operator can pull
    the full trail of an event, including a partially applied one.
Architecture position: Kernel > Selectors.  May import from models/ and
    selectors/base.py.

Invariants enforced:
    - Read-only: no mutations performed on any queried data.
    - Movements are ordered by movement_date then id; ledger lines by
      line_seq.

Failure modes:
    - Returns None or an empty list when nothing matches; never raises on
      absence of data.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from stockout_kernel.db.types import ZERO
from stockout_kernel.models.gl import GLTransaction
from stockout_kernel.models.movement import InventoryMovement
from stockout_kernel.models.stock_out import StockOutTransaction
from stockout_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class StockOutDTO:
    """Data transfer object for a stock-out transaction."""

    id: UUID
    reference_number: str
    inventory_id: UUID
    product_id: UUID
    branch_id: UUID
    stock_out_reason: str
    adjustment_type: str | None
    quantity: Decimal
    unit_cost: Decimal
    financial_impact: str
    total_loss_amount: Decimal
    destination_branch_id: UUID | None
    status: str
    stock_out_date: datetime
    created_by_id: UUID
    notes: str | None


@dataclass(frozen=True)
class MovementDTO:
    """Data transfer object for an inventory movement."""

    id: UUID
    inventory_id: UUID
    branch_id: UUID
    movement_type: str
    quantity: Decimal
    unit_cost: Decimal | None
    reference_number: str | None
    movement_date: datetime
    notes: str | None


@dataclass(frozen=True)
class LedgerLineDTO:
    """Data transfer object for a ledger transaction line."""

    id: UUID
    line_seq: int
    account_id: UUID
    account_code: str
    debit_amount: Decimal
    credit_amount: Decimal
    memo: str | None


@dataclass(frozen=True)
class LedgerTransactionDTO:
    """Data transfer object for a ledger transaction and its lines."""

    id: UUID
    transaction_number: str
    transaction_date: datetime
    description: str
    transaction_type: str
    reference_number: str | None
    total_amount: Decimal
    status: str
    lines: list[LedgerLineDTO]

    @property
    def total_debits(self) -> Decimal:
        """Sum of debit amounts."""
        return sum((line.debit_amount for line in self.lines), ZERO)

    @property
    def total_credits(self) -> Decimal:
        """Sum of credit amounts."""
        return sum((line.credit_amount for line in self.lines), ZERO)

    @property
    def is_balanced(self) -> bool:
        """Check if debits equal credits."""
        return self.total_debits == self.total_credits


def _value(field) -> str | None:
    # Enum-typed columns come back as plain strings from the database but as
    # enum members from objects created in this session.
    if field is None:
        return None
    return getattr(field, "value", field)


class StockOutSelector(BaseSelector[StockOutTransaction]):
    """
    Selector for stock-out reconciliation.

    Usage:
        selector = StockOutSelector(session)
        selector.movement_balance("SO-20240101-120000-000001-042")
    """

    def __init__(self, session: Session):
        super().__init__(session)

    # -- conversion --------------------------------------------------------

    def _to_stock_out_dto(self, row: StockOutTransaction) -> StockOutDTO:
        return StockOutDTO(
            id=row.id,
            reference_number=row.reference_number,
            inventory_id=row.inventory_id,
            product_id=row.product_id,
            branch_id=row.branch_id,
            stock_out_reason=_value(row.stock_out_reason),
            adjustment_type=_value(row.adjustment_type),
            quantity=row.quantity,
            unit_cost=row.unit_cost,
            financial_impact=_value(row.financial_impact),
            total_loss_amount=row.total_loss_amount,
            destination_branch_id=row.destination_branch_id,
            status=_value(row.status),
            stock_out_date=row.stock_out_date,
            created_by_id=row.created_by_id,
            notes=row.notes,
        )

    def _to_movement_dto(self, row: InventoryMovement) -> MovementDTO:
        return MovementDTO(
            id=row.id,
            inventory_id=row.inventory_id,
            branch_id=row.branch_id,
            movement_type=_value(row.movement_type),
            quantity=row.quantity,
            unit_cost=row.unit_cost,
            reference_number=row.reference_number,
            movement_date=row.movement_date,
            notes=row.notes,
        )

    def _to_ledger_dto(self, row: GLTransaction) -> LedgerTransactionDTO:
        lines = [
            LedgerLineDTO(
                id=item.id,
                line_seq=item.line_seq,
                account_id=item.account_id,
                account_code=item.account.code,
                debit_amount=item.debit_amount,
                credit_amount=item.credit_amount,
                memo=item.memo,
            )
            for item in sorted(row.items, key=lambda x: x.line_seq)
        ]
        return LedgerTransactionDTO(
            id=row.id,
            transaction_number=row.transaction_number,
            transaction_date=row.transaction_date,
            description=row.description,
            transaction_type=_value(row.transaction_type),
            reference_number=row.reference_number,
            total_amount=row.total_amount,
            status=_value(row.status),
            lines=lines,
        )

    # -- queries -----------------------------------------------------------

    def get_by_reference(self, reference_number: str) -> StockOutDTO | None:
        """The stock-out transaction with this reference, or None."""
        row = self.session.execute(
            select(StockOutTransaction).where(
                StockOutTransaction.reference_number == reference_number
            )
        ).scalar_one_or_none()
        if row is None:
            return None
        return self._to_stock_out_dto(row)

    def movements_for_reference(self, reference_number: str) -> list[MovementDTO]:
        """All inventory movements written for a stock-out."""
        rows = self.session.execute(
            select(InventoryMovement)
            .where(InventoryMovement.reference_number == reference_number)
            .order_by(InventoryMovement.movement_date, InventoryMovement.id)
        ).scalars().all()
        return [self._to_movement_dto(row) for row in rows]

    def movement_balance(self, reference_number: str) -> Decimal:
        """
        Signed sum of movement quantities for a stock-out.

        A completed transfer nets to zero; any other completed stock-out
        nets to minus the quantity removed.
        """
        total = self.session.execute(
            select(func.coalesce(func.sum(InventoryMovement.quantity), 0)).where(
                InventoryMovement.reference_number == reference_number
            )
        ).scalar_one()
        return Decimal(str(total))

    def ledger_for_reference(self, reference_number: str) -> list[LedgerTransactionDTO]:
        """Ledger transactions (with lines) posted for a stock-out."""
        rows = self.session.execute(
            select(GLTransaction)
            .options(selectinload(GLTransaction.items))
            .where(GLTransaction.reference_number == reference_number)
            .order_by(GLTransaction.transaction_number)
        ).scalars().all()
        return [self._to_ledger_dto(row) for row in rows]

    def list_by_reason(
        self,
        stock_out_reason: str,
        branch_id: UUID | None = None,
        limit: int = 100,
    ) -> list[StockOutDTO]:
        """Most recent stock-outs with a reason, optionally for one branch."""
        stmt = select(StockOutTransaction).where(
            StockOutTransaction.stock_out_reason == _value(stock_out_reason)
        )
        if branch_id is not None:
            stmt = stmt.where(StockOutTransaction.branch_id == branch_id)
        rows = self.session.execute(
            stmt.order_by(StockOutTransaction.stock_out_date.desc()).limit(limit)
        ).scalars().all()
        return [self._to_stock_out_dto(row) for row in rows]
