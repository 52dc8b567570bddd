"""
Tests for the journal builder (stockout_kernel.domain.journal).

Covers:
- Posting rules for loss, supplier return and transfer
- No-op for reasons that need no entry
- Balance across arbitrary amounts and quantities
- Description and memo text
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import given
from hypothesis import strategies as st

from stockout_kernel.db.types import round_money
from stockout_kernel.domain.journal import (
    build_description,
    build_journal_plan,
    loss_role_for,
)
from stockout_kernel.domain.reasons import (
    AdjustmentType,
    FinancialImpact,
    StockOutReason,
    classify_impact,
)
from stockout_kernel.domain.settings import AccountRole

SOURCE = uuid4()
DESTINATION = uuid4()


def _plan(reason, amount="500.00", impact=None, **kwargs):
    reason = StockOutReason(reason)
    return build_journal_plan(
        impact=impact or classify_impact(reason),
        reason=reason,
        amount=Decimal(amount),
        branch_id=SOURCE,
        product_name="Widget",
        quantity=Decimal("10"),
        **kwargs,
    )


class TestLossPostings:

    def test_damaged_debits_damaged_loss_credits_inventory(self):
        plan = _plan("damaged")

        debit, credit = plan.lines
        assert debit.role is AccountRole.LOSS_DAMAGED
        assert debit.debit == Decimal("500.00")
        assert debit.credit == Decimal("0")
        assert credit.role is AccountRole.INVENTORY_ASSET
        assert credit.branch_id == SOURCE
        assert credit.credit == Decimal("500.00")
        assert plan.is_balanced

    def test_memos_carry_product_and_label(self):
        plan = _plan("expired")
        assert plan.lines[0].memo == "Inventory loss: Widget (Expired)"
        assert plan.lines[1].memo == "Reduction of inventory: Widget"

    @pytest.mark.parametrize(
        "reason, role",
        [
            (StockOutReason.EXPIRED, AccountRole.LOSS_EXPIRED),
            (StockOutReason.DAMAGED, AccountRole.LOSS_DAMAGED),
            (StockOutReason.LOST_MISSING, AccountRole.LOSS_SHRINKAGE),
            (StockOutReason.ADJUSTMENT_CORRECTION, AccountRole.LOSS_SHRINKAGE),
        ],
    )
    def test_loss_role_per_reason(self, reason, role):
        assert loss_role_for(reason) is role

    def test_missing_stock_adjustment_posts_to_shrinkage(self):
        impact = classify_impact(StockOutReason.ADJUSTMENT_CORRECTION, AdjustmentType.MISSING_STOCK)
        plan = _plan("adjustment_correction", impact=impact)
        assert plan.lines[0].role is AccountRole.LOSS_SHRINKAGE

    def test_no_loss_role_for_transfer(self):
        with pytest.raises(KeyError):
            loss_role_for(StockOutReason.TRANSFERRED)


class TestNeutralPostings:

    def test_supplier_return(self):
        plan = _plan("returned_to_supplier", supplier_return_reference="RMA-77")

        debit, credit = plan.lines
        assert debit.role is AccountRole.SUPPLIER_RETURNS_PAYABLE
        assert credit.role is AccountRole.INVENTORY_ASSET
        assert debit.memo == "Supplier return: Widget (Ref: RMA-77)"
        assert credit.memo == "Reduction of inventory: Widget"
        assert plan.total_debits == plan.total_credits == Decimal("500.00")

    def test_supplier_return_memo_without_reference(self):
        plan = _plan("returned_to_supplier")
        assert plan.lines[0].memo == "Supplier return: Widget"

    def test_transfer_moves_value_between_branches(self):
        plan = _plan("transferred", amount="100.00", destination_branch_id=DESTINATION)

        debit, credit = plan.lines
        assert debit.role is AccountRole.INVENTORY_ASSET
        assert debit.branch_id == DESTINATION
        assert debit.debit == Decimal("100.00")
        assert debit.memo == "Inventory transfer in: Widget"
        assert credit.branch_id == SOURCE
        assert credit.credit == Decimal("100.00")
        assert credit.memo == "Inventory transfer out: Widget"

    def test_transfer_without_destination_is_noop(self):
        assert _plan("transferred") is None

    def test_clerical_correction_is_noop(self):
        impact = classify_impact(StockOutReason.ADJUSTMENT_CORRECTION, AdjustmentType.CLERICAL_ERROR)
        assert _plan("adjustment_correction", impact=impact) is None

    def test_required_roles_in_line_order(self):
        plan = _plan("transferred", destination_branch_id=DESTINATION)
        assert plan.required_roles() == [
            (AccountRole.INVENTORY_ASSET, DESTINATION),
            (AccountRole.INVENTORY_ASSET, SOURCE),
        ]


class TestAmounts:

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            _plan("damaged", amount="-1.00")

    def test_zero_amount_plan_is_balanced(self):
        plan = _plan("damaged", amount="0")
        assert plan.amount == Decimal("0.00")
        assert plan.is_balanced

    def test_amount_rounded_half_up(self):
        plan = _plan("damaged", amount="10.005")
        assert plan.amount == Decimal("10.01")

    def test_custom_decimal_places(self):
        plan = _plan("damaged", amount="10.1234", decimal_places=3)
        assert plan.amount == Decimal("10.123")

    @given(
        quantity=st.decimals(min_value=Decimal("0.0001"), max_value=Decimal("100000"), places=4),
        unit_cost=st.decimals(min_value=Decimal("0"), max_value=Decimal("10000"), places=4),
        reason=st.sampled_from(
            [
                StockOutReason.EXPIRED,
                StockOutReason.DAMAGED,
                StockOutReason.LOST_MISSING,
                StockOutReason.RETURNED_TO_SUPPLIER,
                StockOutReason.TRANSFERRED,
            ]
        ),
    )
    def test_debits_equal_credits_equal_amount(self, quantity, unit_cost, reason):
        amount = round_money(quantity * unit_cost)
        plan = build_journal_plan(
            impact=classify_impact(reason),
            reason=reason,
            amount=amount,
            branch_id=SOURCE,
            product_name="Widget",
            quantity=quantity,
            destination_branch_id=DESTINATION,
        )
        assert plan.total_debits == plan.total_credits == amount
        for line in plan.lines:
            assert line.debit >= 0 and line.credit >= 0
            assert line.debit == 0 or line.credit == 0


class TestDescription:

    def test_without_notes(self):
        assert (
            build_description(StockOutReason.DAMAGED, "Widget", Decimal("10"))
            == "Stock Out - Damaged: Widget - 10 units"
        )

    def test_with_notes(self):
        assert (
            build_description(StockOutReason.EXPIRED, "Milk", Decimal("2.50"), "batch 7")
            == "Stock Out - Expired: Milk - 2.5 units (batch 7)"
        )

    def test_large_quantity_not_in_exponent_form(self):
        assert "100 units" in build_description(StockOutReason.DAMAGED, "Bolt", Decimal("1E+2"))
