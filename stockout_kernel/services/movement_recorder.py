"""
MovementRecorder -- append-only inventory movement rows.

Responsibility:
    Writes one InventoryMovement per physical quantity change: the signed
    decrement of the source for every stock-out and the increment of the
    destination for transfers.  Both carry the stock-out reference number
    and transaction id so all movements of one event can be reconciled.

Architecture position:
    Kernel > Services.  Flushes only.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stockout_kernel.domain.clock import Clock, SystemClock
from stockout_kernel.domain.reasons import MovementType, StockOutReason, movement_type_for
from stockout_kernel.exceptions import StoreError
from stockout_kernel.logging_config import get_logger
from stockout_kernel.models.movement import InventoryMovement
from stockout_kernel.models.stock_out import StockOutTransaction
from stockout_kernel.services.base import BaseService

logger = get_logger("services.movement_recorder")


class MovementRecorder(BaseService):
    """Creates InventoryMovement rows for stock-outs."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def _write(self, movement: InventoryMovement) -> InventoryMovement:
        try:
            self.session.add(movement)
            self.session.flush()
        except SQLAlchemyError as exc:
            raise StoreError("create inventory movement", str(exc)) from exc
        logger.info(
            "movement_recorded",
            extra={
                "movement_id": str(movement.id),
                "movement_type": movement.movement_type,
                "quantity": str(movement.quantity),
                "reference_number": movement.reference_number,
            },
        )
        return movement

    def record_source(
        self,
        transaction: StockOutTransaction,
        movement_date: datetime | None = None,
    ) -> InventoryMovement:
        """Negative movement on the source inventory record."""
        return self._write(
            InventoryMovement(
                inventory_id=transaction.inventory_id,
                product_id=transaction.product_id,
                branch_id=transaction.branch_id,
                movement_type=movement_type_for(
                    StockOutReason(transaction.stock_out_reason)
                ).value,
                quantity=-transaction.quantity,
                reference_number=transaction.reference_number,
                reference_id=transaction.id,
                movement_date=movement_date or self._clock.now(),
                notes=transaction.notes,
                created_by_id=transaction.created_by_id,
            )
        )

    def record_destination(
        self,
        transaction: StockOutTransaction,
        destination_inventory_id: UUID,
        source_branch_name: str,
        unit_cost: Decimal | None = None,
        movement_date: datetime | None = None,
    ) -> InventoryMovement:
        """Positive transfer_in movement on the destination record.

        The unit cost is kept so later costing at the destination sees it.
        """
        return self._write(
            InventoryMovement(
                inventory_id=destination_inventory_id,
                product_id=transaction.product_id,
                branch_id=transaction.destination_branch_id,
                movement_type=MovementType.TRANSFER_IN.value,
                quantity=transaction.quantity,
                unit_cost=unit_cost,
                reference_number=transaction.reference_number,
                reference_id=transaction.id,
                movement_date=movement_date or self._clock.now(),
                notes=f"Transferred from {source_branch_name}",
                created_by_id=transaction.created_by_id,
            )
        )
