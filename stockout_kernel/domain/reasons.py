"""
Reason taxonomy and financial-impact classification.

Responsibility:
    The single place that decides what a stock-out reason means:
    its financial impact (loss or neutral), the movement type written for
    the source decrement, its display label, and whether a ledger entry is
    required.  Every downstream accounting decision goes through here.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.

Invariants enforced:
    - expired, damaged and lost_missing are always LOSS.
    - transferred and returned_to_supplier are always NEUTRAL.
    - adjustment_correction is NEUTRAL iff the sub-type is clerical_error;
      any other (or missing) sub-type is LOSS.
"""

from enum import Enum


class StockOutReason(str, Enum):
    """Why stock is being removed."""

    EXPIRED = "expired"
    DAMAGED = "damaged"
    RETURNED_TO_SUPPLIER = "returned_to_supplier"
    TRANSFERRED = "transferred"
    ADJUSTMENT_CORRECTION = "adjustment_correction"
    LOST_MISSING = "lost_missing"


class AdjustmentType(str, Enum):
    """Sub-type of an adjustment_correction."""

    CLERICAL_ERROR = "clerical_error"
    MISSING_STOCK = "missing_stock"


class FinancialImpact(str, Enum):
    """Whether a stock-out reduces reported profit."""

    LOSS = "loss"
    NEUTRAL = "neutral"


class MovementType(str, Enum):
    """Inventory movement types."""

    PURCHASE = "purchase"
    SALE = "sale"
    TRANSFER_IN = "transfer_in"
    STOCK_OUT_EXPIRED = "stock_out_expired"
    STOCK_OUT_DAMAGED = "stock_out_damaged"
    STOCK_OUT_RETURNED = "stock_out_returned"
    STOCK_OUT_TRANSFERRED = "stock_out_transferred"
    STOCK_OUT_ADJUSTMENT = "stock_out_adjustment"
    STOCK_OUT_LOST = "stock_out_lost"


_NEUTRAL_REASONS = frozenset({
    StockOutReason.TRANSFERRED,
    StockOutReason.RETURNED_TO_SUPPLIER,
})

_SOURCE_MOVEMENT_TYPES: dict[StockOutReason, MovementType] = {
    StockOutReason.EXPIRED: MovementType.STOCK_OUT_EXPIRED,
    StockOutReason.DAMAGED: MovementType.STOCK_OUT_DAMAGED,
    StockOutReason.RETURNED_TO_SUPPLIER: MovementType.STOCK_OUT_RETURNED,
    StockOutReason.TRANSFERRED: MovementType.STOCK_OUT_TRANSFERRED,
    StockOutReason.ADJUSTMENT_CORRECTION: MovementType.STOCK_OUT_ADJUSTMENT,
    StockOutReason.LOST_MISSING: MovementType.STOCK_OUT_LOST,
}


def classify_impact(
    reason: StockOutReason,
    adjustment_type: AdjustmentType | None = None,
) -> FinancialImpact:
    """
    Map a reason (and optional adjustment sub-type) to its financial impact.

    Examples:
        >>> classify_impact(StockOutReason.DAMAGED)
        <FinancialImpact.LOSS: 'loss'>
        >>> classify_impact(StockOutReason.ADJUSTMENT_CORRECTION, AdjustmentType.CLERICAL_ERROR)
        <FinancialImpact.NEUTRAL: 'neutral'>
    """
    reason = StockOutReason(reason)
    if reason in _NEUTRAL_REASONS:
        return FinancialImpact.NEUTRAL
    if reason is StockOutReason.ADJUSTMENT_CORRECTION:
        if adjustment_type is not None and AdjustmentType(adjustment_type) is AdjustmentType.CLERICAL_ERROR:
            return FinancialImpact.NEUTRAL
        return FinancialImpact.LOSS
    return FinancialImpact.LOSS


def movement_type_for(reason: StockOutReason) -> MovementType:
    """Movement type of the source decrement for a reason."""
    return _SOURCE_MOVEMENT_TYPES[StockOutReason(reason)]


def reason_label(reason: StockOutReason) -> str:
    """Display label: ``returned_to_supplier`` -> ``Returned To Supplier``."""
    return " ".join(word.capitalize() for word in StockOutReason(reason).value.split("_"))


def requires_journal_entry(
    impact: FinancialImpact,
    reason: StockOutReason,
    has_destination: bool,
) -> bool:
    """
    Whether a stock-out must be posted to the ledger.

    Loss always posts.  Of the neutral reasons, a supplier return moves value
    into a payable and a transfer moves it between branch inventory accounts;
    a clerical correction has nothing to post.
    """
    if FinancialImpact(impact) is FinancialImpact.LOSS:
        return True
    reason = StockOutReason(reason)
    if reason is StockOutReason.RETURNED_TO_SUPPLIER:
        return True
    return reason is StockOutReason.TRANSFERRED and has_destination
