"""
TransferMirror -- the destination half of an inter-branch transfer.

Responsibility:
    Adds the transferred quantity to the destination branch's inventory row
    (creating it when the product was never stocked there) and records the
    matching transfer_in movement, so the movements of one transfer sum to
    zero.

Architecture position:
    Kernel > Services.  Flushes only.
"""

from decimal import Decimal

from sqlalchemy.orm import Session

from stockout_kernel.logging_config import get_logger
from stockout_kernel.models.branch import Branch
from stockout_kernel.models.movement import InventoryMovement
from stockout_kernel.models.stock_out import StockOutTransaction
from stockout_kernel.services.base import BaseService
from stockout_kernel.services.inventory_mutator import InventoryMutator
from stockout_kernel.services.movement_recorder import MovementRecorder

logger = get_logger("services.transfer_mirror")


class TransferMirror(BaseService):
    """Mirrors a transfer stock-out into the destination branch."""

    def __init__(
        self,
        session: Session,
        mutator: InventoryMutator,
        recorder: MovementRecorder,
    ):
        super().__init__(session)
        self._mutator = mutator
        self._recorder = recorder

    def mirror(
        self,
        transaction: StockOutTransaction,
        unit_cost: Decimal | None = None,
    ) -> InventoryMovement:
        """
        Increment the destination and record its movement.

        Raises:
            ValueError: if the transaction has no destination branch.
        """
        if transaction.destination_branch_id is None:
            raise ValueError(
                f"Stock-out {transaction.reference_number} has no destination branch"
            )

        source_branch = self.session.get(Branch, transaction.branch_id)
        source_name = source_branch.name if source_branch is not None else str(transaction.branch_id)

        destination = self._mutator.increment_or_create(
            transaction.product_id,
            transaction.destination_branch_id,
            transaction.quantity,
        )
        movement = self._recorder.record_destination(
            transaction,
            destination_inventory_id=destination.id,
            source_branch_name=source_name,
            unit_cost=unit_cost,
        )
        logger.info(
            "transfer_mirrored",
            extra={
                "reference_number": transaction.reference_number,
                "destination_branch_id": str(transaction.destination_branch_id),
                "destination_inventory_id": str(destination.id),
                "quantity": str(transaction.quantity),
            },
        )
        return movement
