"""
Immutability tests for the stock-out audit trail.

Verifies the ORM listeners in stockout_kernel/db/immutability.py:
- StockOutTransaction and InventoryMovement are append-only from creation
- GLTransaction and its items are immutable once POSTED
- A DRAFT ledger transaction can still be edited and posted
- updated_at alone is not treated as a modification
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from stockout_kernel.domain.dtos import StockOutRequest
from stockout_kernel.exceptions import ImmutabilityViolationError
from stockout_kernel.models.gl import (
    GLTransaction,
    GLTransactionItem,
    GLTransactionStatus,
)
from stockout_kernel.models.movement import InventoryMovement
from stockout_kernel.models.stock_out import StockOutTransaction
from stockout_kernel.services.stock_out_service import StockOutService


@pytest.fixture
def posted(session, seed, deterministic_clock):
    """A committed loss stock-out with its movement and ledger entry."""
    service = StockOutService(session, clock=deterministic_clock)
    return service.process_stock_out(
        StockOutRequest(
            inventory_id=seed.widget_main_inventory_id,
            product_id=seed.widget_id,
            branch_id=seed.main_branch_id,
            stock_out_reason="damaged",
            quantity="2",
        ),
        actor_id=seed.actor_id,
    )


class TestStockOutTransactionAppendOnly:

    def test_update_blocked(self, session, posted):
        row = session.get(StockOutTransaction, posted.stock_out_transaction_id)
        row.quantity = Decimal("1")

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert exc_info.value.entity_type == "StockOutTransaction"
        assert "quantity" in exc_info.value.reason

    def test_status_change_blocked(self, session, posted):
        row = session.get(StockOutTransaction, posted.stock_out_transaction_id)
        row.status = "pending"

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_delete_blocked(self, session, posted):
        row = session.get(StockOutTransaction, posted.stock_out_transaction_id)
        session.delete(row)

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_updated_at_only_is_allowed(self, session, posted):
        row = session.get(StockOutTransaction, posted.stock_out_transaction_id)
        row.updated_at = datetime(2024, 2, 1, tzinfo=timezone.utc)

        session.flush()

    def test_violation_logged(self, session, posted, captured_logs):
        row = session.get(StockOutTransaction, posted.stock_out_transaction_id)
        row.notes = "rewritten"

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

        [event] = [r for r in captured_logs() if r["message"] == "immutability_violation_blocked"]
        assert event["operation"] == "UPDATE"
        assert event["field"] == "notes"


class TestMovementAppendOnly:

    def test_update_blocked(self, session, posted):
        row = session.get(InventoryMovement, posted.inventory_movement_id)
        row.quantity = Decimal("-1")

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_delete_blocked(self, session, posted):
        row = session.get(InventoryMovement, posted.inventory_movement_id)
        session.delete(row)

        with pytest.raises(ImmutabilityViolationError):
            session.flush()


class TestPostedLedgerImmutable:

    def test_header_update_blocked(self, session, posted):
        row = session.get(GLTransaction, posted.gl_transaction_id)
        row.description = "something else"

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_header_delete_blocked(self, session, posted):
        row = session.get(GLTransaction, posted.gl_transaction_id)
        session.delete(row)

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_line_update_blocked(self, session, posted):
        row = session.get(GLTransaction, posted.gl_transaction_id)
        row.items[0].debit_amount = Decimal("1.00")

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert exc_info.value.entity_type == "GLTransactionItem"

    def test_unpost_blocked(self, session, posted):
        row = session.get(GLTransaction, posted.gl_transaction_id)
        row.status = GLTransactionStatus.DRAFT.value

        with pytest.raises(ImmutabilityViolationError):
            session.flush()


class TestDraftLedgerEditable:

    @pytest.fixture
    def draft(self, session, seed, deterministic_clock):
        gl_transaction = GLTransaction(
            transaction_number="GL-20240101-999999",
            transaction_date=deterministic_clock.now(),
            description="Draft entry",
            total_amount=Decimal("10.00"),
            status=GLTransactionStatus.DRAFT.value,
        )
        gl_transaction.items.append(
            GLTransactionItem(
                line_seq=1,
                account_id=seed.accounts["5100"],
                debit_amount=Decimal("10.00"),
                credit_amount=Decimal("0"),
            )
        )
        gl_transaction.items.append(
            GLTransactionItem(
                line_seq=2,
                account_id=seed.accounts["1210"],
                debit_amount=Decimal("0"),
                credit_amount=Decimal("10.00"),
            )
        )
        session.add(gl_transaction)
        session.flush()
        return gl_transaction

    def test_draft_can_change(self, session, draft):
        draft.description = "Corrected draft"
        draft.items[0].memo = "note"

        session.flush()

    def test_posting_transition_allowed(self, session, draft):
        draft.status = GLTransactionStatus.POSTED.value
        draft.description = "Posted with final description"

        session.flush()

    def test_immutable_after_posting(self, session, draft):
        draft.status = GLTransactionStatus.POSTED.value
        session.flush()

        draft.description = "too late"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
