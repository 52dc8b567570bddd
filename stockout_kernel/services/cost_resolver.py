"""
CostResolver -- per-unit cost of stock leaving a branch.

Responsibility:
    Prices the quantity removed by a stock-out.  Read-only.

Architecture position:
    Kernel > Services.  Called by StockOutService before any write.

Algorithm:
    1. Weighted average of the most recent inbound movements (configured
       types, default purchase and transfer_in) for the product at the
       branch that carry a unit cost, newest first, up to the configured
       lookback:  sum(qty * cost) / sum(qty).
    2. Otherwise the product's static recorded cost.
    3. Otherwise zero, logged as ``zero_unit_cost``.  A zero cost is a known
       degenerate case and never blocks the stock-out.

Failure modes:
    - StoreError wrapping any SQLAlchemy error.
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stockout_kernel.db.types import ZERO, round_money
from stockout_kernel.domain.settings import CostingSettings
from stockout_kernel.exceptions import StoreError
from stockout_kernel.logging_config import get_logger
from stockout_kernel.models.movement import InventoryMovement
from stockout_kernel.models.product import Product
from stockout_kernel.services.base import BaseService

logger = get_logger("services.cost_resolver")

UNIT_COST_DECIMAL_PLACES = 4


@dataclass(frozen=True)
class CostResolution:
    """Unit cost and where it came from
    (``weighted_average``, ``product_cost`` or ``none``)."""

    unit_cost: Decimal
    source: str
    sample_size: int = 0


class CostResolver(BaseService):
    """Resolves unit cost for (product, branch)."""

    def __init__(self, session: Session, settings: CostingSettings | None = None):
        super().__init__(session)
        self._settings = settings or CostingSettings()

    def resolve(self, product_id: UUID, branch_id: UUID) -> CostResolution:
        """
        Unit cost for a product at a branch.

        Postconditions:
            unit_cost >= 0.
        """
        try:
            resolution = self._weighted_average(product_id, branch_id)
            if resolution is None:
                resolution = self._product_cost(product_id)
        except SQLAlchemyError as exc:
            raise StoreError("resolve unit cost", str(exc)) from exc

        if resolution.unit_cost == ZERO:
            logger.warning(
                "zero_unit_cost",
                extra={
                    "product_id": str(product_id),
                    "branch_id": str(branch_id),
                },
            )
        else:
            logger.info(
                "unit_cost_resolved",
                extra={
                    "product_id": str(product_id),
                    "branch_id": str(branch_id),
                    "unit_cost": str(resolution.unit_cost),
                    "cost_source": resolution.source,
                    "sample_size": resolution.sample_size,
                },
            )
        return resolution

    def _weighted_average(self, product_id: UUID, branch_id: UUID) -> CostResolution | None:
        rows = self.session.execute(
            select(InventoryMovement.quantity, InventoryMovement.unit_cost)
            .where(
                InventoryMovement.product_id == product_id,
                InventoryMovement.branch_id == branch_id,
                InventoryMovement.movement_type.in_(self._settings.inbound_movement_types),
                InventoryMovement.unit_cost.is_not(None),
                InventoryMovement.quantity > 0,
            )
            .order_by(InventoryMovement.movement_date.desc())
            .limit(self._settings.lookback_movements)
        ).all()

        total_quantity = sum((qty for qty, _ in rows), ZERO)
        if total_quantity <= ZERO:
            return None
        total_value = sum((qty * cost for qty, cost in rows), ZERO)
        if total_value <= ZERO:
            return None
        return CostResolution(
            unit_cost=round_money(total_value / total_quantity, UNIT_COST_DECIMAL_PLACES),
            source="weighted_average",
            sample_size=len(rows),
        )

    def _product_cost(self, product_id: UUID) -> CostResolution:
        product = self.session.get(Product, product_id)
        if product is None or product.cost is None or product.cost <= ZERO:
            return CostResolution(unit_cost=ZERO, source="none")
        return CostResolution(unit_cost=Decimal(product.cost), source="product_cost")
