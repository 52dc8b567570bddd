"""
Tests for the reason taxonomy (stockout_kernel.domain.reasons).

Covers:
- Financial-impact classification for every reason and sub-type
- Movement type and label per reason
- Whether a ledger entry is required
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from stockout_kernel.domain.reasons import (
    AdjustmentType,
    FinancialImpact,
    MovementType,
    StockOutReason,
    classify_impact,
    movement_type_for,
    reason_label,
    requires_journal_entry,
)


class TestClassifyImpact:
    """Reason -> loss / neutral."""

    @pytest.mark.parametrize(
        "reason",
        [StockOutReason.EXPIRED, StockOutReason.DAMAGED, StockOutReason.LOST_MISSING],
    )
    def test_loss_reasons(self, reason):
        assert classify_impact(reason) is FinancialImpact.LOSS

    @pytest.mark.parametrize(
        "reason",
        [StockOutReason.TRANSFERRED, StockOutReason.RETURNED_TO_SUPPLIER],
    )
    def test_neutral_reasons(self, reason):
        assert classify_impact(reason) is FinancialImpact.NEUTRAL

    def test_clerical_correction_is_neutral(self):
        assert (
            classify_impact(StockOutReason.ADJUSTMENT_CORRECTION, AdjustmentType.CLERICAL_ERROR)
            is FinancialImpact.NEUTRAL
        )

    def test_missing_stock_correction_is_loss(self):
        assert (
            classify_impact(StockOutReason.ADJUSTMENT_CORRECTION, AdjustmentType.MISSING_STOCK)
            is FinancialImpact.LOSS
        )

    def test_correction_without_subtype_is_loss(self):
        assert classify_impact(StockOutReason.ADJUSTMENT_CORRECTION) is FinancialImpact.LOSS

    def test_accepts_raw_strings(self):
        assert classify_impact("adjustment_correction", "clerical_error") is FinancialImpact.NEUTRAL

    def test_unknown_reason_rejected(self):
        with pytest.raises(ValueError):
            classify_impact("stolen_by_aliens")

    @given(
        reason=st.sampled_from(list(StockOutReason)),
        adjustment=st.one_of(st.none(), st.sampled_from(list(AdjustmentType))),
    )
    def test_classification_is_total(self, reason, adjustment):
        """Every (reason, sub-type) pair lands in exactly one category."""
        impact = classify_impact(reason, adjustment)
        assert impact in (FinancialImpact.LOSS, FinancialImpact.NEUTRAL)

        neutral = reason in (StockOutReason.TRANSFERRED, StockOutReason.RETURNED_TO_SUPPLIER) or (
            reason is StockOutReason.ADJUSTMENT_CORRECTION
            and adjustment is AdjustmentType.CLERICAL_ERROR
        )
        assert (impact is FinancialImpact.NEUTRAL) == neutral


class TestMovementTypes:
    def test_every_reason_has_a_stock_out_movement_type(self):
        for reason in StockOutReason:
            assert movement_type_for(reason).value.startswith("stock_out_")

    def test_transfer_source_movement(self):
        assert movement_type_for(StockOutReason.TRANSFERRED) is MovementType.STOCK_OUT_TRANSFERRED

    def test_expired_movement(self):
        assert movement_type_for("expired") is MovementType.STOCK_OUT_EXPIRED


class TestReasonLabel:
    def test_multi_word(self):
        assert reason_label(StockOutReason.RETURNED_TO_SUPPLIER) == "Returned To Supplier"

    def test_single_word(self):
        assert reason_label("damaged") == "Damaged"


class TestRequiresJournalEntry:
    def test_loss_always_posts(self):
        assert requires_journal_entry(FinancialImpact.LOSS, StockOutReason.EXPIRED, False)

    def test_supplier_return_posts(self):
        assert requires_journal_entry(
            FinancialImpact.NEUTRAL, StockOutReason.RETURNED_TO_SUPPLIER, False
        )

    def test_transfer_posts_only_with_destination(self):
        assert requires_journal_entry(FinancialImpact.NEUTRAL, StockOutReason.TRANSFERRED, True)
        assert not requires_journal_entry(
            FinancialImpact.NEUTRAL, StockOutReason.TRANSFERRED, False
        )

    def test_clerical_correction_does_not_post(self):
        assert not requires_journal_entry(
            FinancialImpact.NEUTRAL, StockOutReason.ADJUSTMENT_CORRECTION, False
        )
