"""
Tests for StockOutSelector read models.
"""

from decimal import Decimal

import pytest

from stockout_kernel.domain.dtos import StockOutRequest
from stockout_kernel.selectors.stock_out_selector import (
    LedgerLineDTO,
    LedgerTransactionDTO,
    StockOutSelector,
)
from stockout_kernel.services.stock_out_service import StockOutService


@pytest.fixture
def selector(session):
    return StockOutSelector(session)


@pytest.fixture
def post(session, seed, deterministic_clock):
    service = StockOutService(session, clock=deterministic_clock)

    def _post(**overrides):
        fields = {
            "inventory_id": seed.widget_main_inventory_id,
            "product_id": seed.widget_id,
            "branch_id": seed.main_branch_id,
            "stock_out_reason": "expired",
            "quantity": "4",
        }
        fields.update(overrides)
        return service.process_stock_out(StockOutRequest(**fields), actor_id=seed.actor_id)

    return _post


class TestGetByReference:

    def test_returns_dto(self, selector, post, seed):
        result = post(notes="past date")

        dto = selector.get_by_reference(result.reference_number)

        assert dto.id == result.stock_out_transaction_id
        assert dto.stock_out_reason == "expired"
        assert dto.financial_impact == "loss"
        assert dto.quantity == Decimal("4")
        assert dto.total_loss_amount == Decimal("200.00")
        assert dto.status == "approved"
        assert dto.created_by_id == seed.actor_id
        assert dto.notes == "past date"

    def test_unknown_reference(self, selector, seed):
        assert selector.get_by_reference("SO-19990101-000000-000001-000") is None


class TestMovements:

    def test_loss_balance_is_negative_quantity(self, selector, post):
        result = post()

        [movement] = selector.movements_for_reference(result.reference_number)
        assert movement.movement_type == "stock_out_expired"
        assert movement.reference_number == result.reference_number
        assert selector.movement_balance(result.reference_number) == Decimal("-4")

    def test_transfer_balance_is_zero(self, selector, post, seed):
        result = post(
            inventory_id=seed.cable_main_inventory_id,
            product_id=seed.cable_id,
            stock_out_reason="transferred",
            destination_branch_id=seed.north_branch_id,
        )

        movements = selector.movements_for_reference(result.reference_number)
        assert len(movements) == 2
        assert selector.movement_balance(result.reference_number) == Decimal("0")

    def test_unknown_reference_balance(self, selector, seed):
        assert selector.movement_balance("SO-missing") == Decimal("0")
        assert selector.movements_for_reference("SO-missing") == []


class TestLedger:

    def test_lines_ordered_and_balanced(self, selector, post):
        result = post()

        [ledger] = selector.ledger_for_reference(result.reference_number)

        assert ledger.transaction_number == "GL-20240101-000001"
        assert [line.line_seq for line in ledger.lines] == [1, 2]
        assert [line.account_code for line in ledger.lines] == ["5100", "1210"]
        assert ledger.total_debits == ledger.total_credits == Decimal("200.00")
        assert ledger.is_balanced

    def test_no_entry_for_clerical_correction(self, selector, post):
        result = post(stock_out_reason="adjustment_correction", adjustment_type="clerical_error")

        assert selector.ledger_for_reference(result.reference_number) == []

    def test_unbalanced_dto_reports_it(self):
        line = LedgerLineDTO(
            id=None,
            line_seq=1,
            account_id=None,
            account_code="5100",
            debit_amount=Decimal("10.00"),
            credit_amount=Decimal("0"),
            memo=None,
        )
        dto = LedgerTransactionDTO(
            id=None,
            transaction_number="GL-20240101-000001",
            transaction_date=None,
            description="",
            transaction_type="adjustment",
            reference_number=None,
            total_amount=Decimal("10.00"),
            status="posted",
            lines=[line],
        )

        assert not dto.is_balanced


class TestListByReason:

    def test_filters_by_reason_and_branch(self, selector, post, seed):
        post()
        post(quantity="1")
        post(stock_out_reason="damaged", quantity="1")
        post(
            inventory_id=seed.widget_north_inventory_id,
            branch_id=seed.north_branch_id,
            quantity="1",
        )

        assert len(selector.list_by_reason("expired")) == 3
        assert len(selector.list_by_reason("expired", branch_id=seed.main_branch_id)) == 2
        assert len(selector.list_by_reason("damaged")) == 1
        assert selector.list_by_reason("lost_missing") == []

    def test_limit(self, selector, post):
        for _ in range(3):
            post(quantity="1")

        assert len(selector.list_by_reason("expired", limit=2)) == 2
