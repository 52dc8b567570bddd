"""
Request and result objects for the stock-out entry point.

Responsibility:
    ``StockOutRequest`` is what a caller hands to the orchestrator;
    ``StockOutRequest.normalized()`` performs every check that needs no
    database access and returns the typed, canonical form.
    ``StockOutResult`` is the unified response.

Architecture position:
    Kernel > Domain -- pure, immutable value objects.
"""

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any
from uuid import UUID

from stockout_kernel.db.types import QUANTITY_PLACES, ZERO, to_decimal
from stockout_kernel.domain.reasons import AdjustmentType, FinancialImpact, StockOutReason
from stockout_kernel.exceptions import StockOutValidationError


def _as_uuid(value: Any) -> UUID:
    if isinstance(value, UUID):
        return value
    return UUID(str(value))


@dataclass(frozen=True)
class StockOutRequest:
    """
    A request to remove stock from one inventory record.

    Fields arrive as the caller supplies them (ids as ``str`` or ``UUID``,
    quantity as ``Decimal``, ``int`` or numeric ``str``, reason as a string
    or enum).  Floats are rejected for quantity.
    """

    inventory_id: UUID | str | None
    product_id: UUID | str | None
    branch_id: UUID | str | None
    stock_out_reason: StockOutReason | str | None
    quantity: Decimal | int | str | None
    notes: str | None = None
    destination_branch_id: UUID | str | None = None
    supplier_return_reference: str | None = None
    adjustment_type: AdjustmentType | str | None = None

    def normalized(self) -> "StockOutRequest":
        """
        Validate the request and return it with typed fields.

        Postconditions:
            ids are UUID, stock_out_reason is a StockOutReason,
            adjustment_type is an AdjustmentType or None, quantity is a
            positive Decimal, blank notes/references are None.

        Raises:
            StockOutValidationError: listing every problem found.
        """
        errors: list[str] = []
        values: dict[str, Any] = {}

        for name in ("inventory_id", "product_id", "branch_id"):
            raw = getattr(self, name)
            if raw is None or str(raw).strip() == "":
                errors.append(f"{name} is required")
                continue
            try:
                values[name] = _as_uuid(raw)
            except ValueError:
                errors.append(f"{name} is not a valid id: {raw!r}")

        reason = None
        if self.stock_out_reason is None or str(self.stock_out_reason).strip() == "":
            errors.append("stock_out_reason is required")
        else:
            try:
                reason = StockOutReason(self.stock_out_reason)
                values["stock_out_reason"] = reason
            except ValueError:
                errors.append(f"Unknown stock_out_reason: {self.stock_out_reason!r}")

        if self.quantity is None:
            errors.append("quantity is required")
        else:
            try:
                quantity = to_decimal(self.quantity)
            except ValueError as exc:
                errors.append(f"quantity: {exc}")
            else:
                if not quantity.is_finite() or quantity <= ZERO:
                    errors.append("Quantity must be greater than 0")
                elif quantity.normalize().as_tuple().exponent < -QUANTITY_PLACES:
                    errors.append(f"Quantity allows at most {QUANTITY_PLACES} decimal places")
                else:
                    values["quantity"] = quantity

        destination = self.destination_branch_id
        if destination is not None and str(destination).strip() == "":
            destination = None
        if reason is StockOutReason.TRANSFERRED:
            if destination is None:
                errors.append("Destination branch is required for transfers")
            else:
                try:
                    values["destination_branch_id"] = _as_uuid(destination)
                except ValueError:
                    errors.append(f"destination_branch_id is not a valid id: {destination!r}")
        elif destination is not None and reason is not None:
            errors.append("destination_branch_id is only allowed for transfers")

        if self.adjustment_type is not None and str(self.adjustment_type).strip() != "":
            try:
                values["adjustment_type"] = AdjustmentType(self.adjustment_type)
            except ValueError:
                errors.append(f"Unknown adjustment_type: {self.adjustment_type!r}")
        else:
            values["adjustment_type"] = None

        if errors:
            raise StockOutValidationError(errors)

        values.setdefault("destination_branch_id", None)
        values["notes"] = (self.notes or "").strip() or None
        values["supplier_return_reference"] = (
            (self.supplier_return_reference or "").strip() or None
        )
        return replace(self, **values)


@dataclass(frozen=True)
class StockOutResult:
    """
    Outcome of a successful stock-out.

    ``gl_transaction_id`` is None when no ledger entry was required (or the
    amount was zero and zero-amount entries are not posted).
    ``destination_movement_id`` is set for transfers only.
    """

    stock_out_transaction_id: UUID
    reference_number: str
    inventory_movement_id: UUID
    financial_impact: FinancialImpact
    loss_amount: Decimal
    unit_cost: Decimal
    gl_transaction_id: UUID | None = None
    destination_movement_id: UUID | None = None
