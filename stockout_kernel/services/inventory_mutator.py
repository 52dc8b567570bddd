"""
Inventory mutation -- decrementing the source and filling the destination.

Responsibility:
    Changes ``inventory.quantity_on_hand``.  Decrements go through one
    ``InventoryDecrementer`` interface with interchangeable strategies:

    StoredProcedureDecrementer  calls decrease_inventory_quantity() on the
                                server; atomic, serialized by the database.
    ConditionalUpdateDecrementer
                                UPDATE ... WHERE on_hand - reserved >= qty;
                                atomic compare-and-decrement, any dialect.
    ReadModifyWriteDecrementer  read, subtract (floored at 0), write.  NOT
                                atomic: two concurrent callers can both read
                                the same quantity and one update is lost.
    FallbackDecrementer         tries a primary strategy and switches to a
                                fallback on CapabilityUnavailableError.

Architecture position:
    Kernel > Services.  Flushes only; the orchestrator owns commits.

Failure modes:
    - InventoryNotFoundError: the row vanished.
    - InsufficientStockError: the atomic strategies refuse to go below the
      available quantity.
    - CapabilityUnavailableError: the procedure is not installed.
    - StoreError: any other database failure (original error as __cause__).
"""

from abc import abstractmethod
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select, text, update
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from stockout_kernel.db.engine import savepoint
from stockout_kernel.db.procedures import (
    DECREMENT_PROCEDURE,
    INSUFFICIENT_STOCK_SQLSTATE,
    is_missing_function,
    sqlstate_of,
)
from stockout_kernel.db.types import ZERO
from stockout_kernel.domain.settings import (
    DecrementStrategy,
    FallbackStrategy,
    InventorySettings,
)
from stockout_kernel.exceptions import (
    CapabilityUnavailableError,
    InsufficientStockError,
    InventoryNotFoundError,
    StoreError,
)
from stockout_kernel.logging_config import get_logger
from stockout_kernel.models.inventory import InventoryRecord
from stockout_kernel.services.base import BaseService

logger = get_logger("services.inventory_mutator")

_NOT_FOUND_SQLSTATE = "P0002"


def _expire_cached(session: Session, inventory_id: UUID) -> None:
    """Drop the identity-map copy of a row changed behind the ORM's back."""
    key = session.identity_key(InventoryRecord, inventory_id)
    cached = session.identity_map.get(key)
    if cached is not None:
        session.expire(cached)


class InventoryDecrementer(BaseService):
    """Decrements the on-hand quantity of one inventory record."""

    name: str = "abstract"

    @abstractmethod
    def decrement(self, inventory_id: UUID, quantity: Decimal) -> Decimal:
        """
        Remove ``quantity`` from the record's on-hand stock.

        Returns:
            The on-hand quantity after the decrement.
        """
        ...


class StoredProcedureDecrementer(InventoryDecrementer):
    """Atomic server-side decrement via decrease_inventory_quantity()."""

    name = "procedure"

    def decrement(self, inventory_id: UUID, quantity: Decimal) -> Decimal:
        self.session.flush()
        try:
            with savepoint(self.session):
                remaining = self.session.execute(
                    text(f"SELECT {DECREMENT_PROCEDURE}(:inventory_id, :quantity)"),
                    {"inventory_id": str(inventory_id), "quantity": str(quantity)},
                ).scalar_one()
        except DBAPIError as exc:
            if is_missing_function(exc):
                raise CapabilityUnavailableError(DECREMENT_PROCEDURE, str(exc.orig)) from exc
            state = sqlstate_of(exc)
            if state == INSUFFICIENT_STOCK_SQLSTATE:
                available = _available(self.session, inventory_id)
                raise InsufficientStockError(str(inventory_id), quantity, available) from exc
            if state == _NOT_FOUND_SQLSTATE:
                raise InventoryNotFoundError(str(inventory_id)) from exc
            raise StoreError("decrement inventory", str(exc.orig)) from exc

        _expire_cached(self.session, inventory_id)
        return Decimal(remaining)


class ConditionalUpdateDecrementer(InventoryDecrementer):
    """Single guarded UPDATE; zero rows updated means the guard failed."""

    name = "conditional"

    def decrement(self, inventory_id: UUID, quantity: Decimal) -> Decimal:
        try:
            self.session.flush()
            result = self.session.execute(
                update(InventoryRecord)
                .where(
                    InventoryRecord.id == inventory_id,
                    InventoryRecord.quantity_on_hand - InventoryRecord.quantity_reserved
                    >= quantity,
                )
                .values(
                    quantity_on_hand=InventoryRecord.quantity_on_hand - quantity,
                    updated_at=func.now(),
                )
                .execution_options(synchronize_session=False)
            )
            _expire_cached(self.session, inventory_id)
            if result.rowcount == 0:
                record = self.session.get(InventoryRecord, inventory_id)
                if record is None:
                    raise InventoryNotFoundError(str(inventory_id))
                raise InsufficientStockError(
                    str(inventory_id), quantity, record.quantity_available
                )
            return self.session.execute(
                select(InventoryRecord.quantity_on_hand).where(InventoryRecord.id == inventory_id)
            ).scalar_one()
        except SQLAlchemyError as exc:
            raise StoreError("decrement inventory", str(exc)) from exc


class ReadModifyWriteDecrementer(InventoryDecrementer):
    """
    Read the current quantity, subtract, write it back.

    Not atomic.  The read goes through the session identity map: while the
    caller still holds a row loaded earlier in this session, that stale copy
    is what gets decremented and written back.  A row no longer referenced
    is re-read from the database.
    """

    name = "read_modify_write"

    def decrement(self, inventory_id: UUID, quantity: Decimal) -> Decimal:
        try:
            record = self.session.get(InventoryRecord, inventory_id)
            if record is None:
                raise InventoryNotFoundError(str(inventory_id))
            new_quantity = max(record.quantity_on_hand - quantity, ZERO)
            record.quantity_on_hand = new_quantity
            self.session.flush()
        except SQLAlchemyError as exc:
            raise StoreError("decrement inventory", str(exc)) from exc
        return new_quantity


class FallbackDecrementer(InventoryDecrementer):
    """
    Primary strategy with a fallback for an unavailable capability.

    Once the primary reports CapabilityUnavailableError this instance stops
    probing it.
    """

    def __init__(
        self,
        primary: InventoryDecrementer,
        fallback: InventoryDecrementer | None,
    ):
        super().__init__(primary.session)
        self.primary = primary
        self.fallback = fallback
        self._primary_unavailable = False
        self.name = f"{primary.name}>{fallback.name if fallback else 'none'}"

    def decrement(self, inventory_id: UUID, quantity: Decimal) -> Decimal:
        if not self._primary_unavailable:
            try:
                return self.primary.decrement(inventory_id, quantity)
            except CapabilityUnavailableError as exc:
                self._primary_unavailable = True
                logger.warning(
                    "decrement_capability_unavailable",
                    extra={
                        "capability": exc.capability,
                        "fallback": self.fallback.name if self.fallback else None,
                    },
                )
                if self.fallback is None:
                    raise
        if self.fallback is None:
            raise CapabilityUnavailableError(DECREMENT_PROCEDURE)
        return self.fallback.decrement(inventory_id, quantity)


def _available(session: Session, inventory_id: UUID) -> Decimal:
    _expire_cached(session, inventory_id)
    record = session.get(InventoryRecord, inventory_id)
    return record.quantity_available if record is not None else ZERO


_STRATEGIES: dict[str, type[InventoryDecrementer]] = {
    DecrementStrategy.PROCEDURE.value: StoredProcedureDecrementer,
    DecrementStrategy.CONDITIONAL.value: ConditionalUpdateDecrementer,
    DecrementStrategy.READ_MODIFY_WRITE.value: ReadModifyWriteDecrementer,
}


def build_decrementer(session: Session, settings: InventorySettings | None = None) -> InventoryDecrementer:
    """Decrementer for the configured strategy and fallback."""
    settings = settings or InventorySettings()
    strategy = DecrementStrategy(settings.decrement_strategy)
    primary = _STRATEGIES[strategy.value](session)
    if strategy is not DecrementStrategy.PROCEDURE:
        return primary
    fallback_strategy = FallbackStrategy(settings.fallback_strategy)
    fallback = (
        None
        if fallback_strategy is FallbackStrategy.NONE
        else _STRATEGIES[fallback_strategy.value](session)
    )
    return FallbackDecrementer(primary, fallback)


class InventoryMutator(BaseService):
    """Decrements the source and increments (or creates) the destination."""

    def __init__(self, session: Session, decrementer: InventoryDecrementer | None = None):
        super().__init__(session)
        self.decrementer = decrementer or build_decrementer(session)

    def decrement(self, inventory_id: UUID, quantity: Decimal) -> Decimal:
        """Decrement via the configured strategy; returns the new on-hand."""
        remaining = self.decrementer.decrement(inventory_id, quantity)
        logger.info(
            "inventory_decremented",
            extra={
                "inventory_id": str(inventory_id),
                "quantity": str(quantity),
                "remaining": str(remaining),
                "strategy": self.decrementer.name,
            },
        )
        return remaining

    def _locked_record(self, product_id: UUID, branch_id: UUID) -> InventoryRecord | None:
        return self.session.execute(
            select(InventoryRecord)
            .where(
                InventoryRecord.product_id == product_id,
                InventoryRecord.branch_id == branch_id,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def increment_or_create(
        self,
        product_id: UUID,
        branch_id: UUID,
        quantity: Decimal,
    ) -> InventoryRecord:
        """
        Add stock to (product, branch), creating the row when missing.

        A new row starts with nothing reserved and zero reorder/max levels.
        """
        try:
            record = self._locked_record(product_id, branch_id)
            if record is None:
                try:
                    with savepoint(self.session):
                        record = InventoryRecord(
                            product_id=product_id,
                            branch_id=branch_id,
                            quantity_on_hand=quantity,
                            quantity_reserved=ZERO,
                            reorder_level=ZERO,
                            max_stock_level=ZERO,
                        )
                        self.session.add(record)
                        self.session.flush()
                    created = True
                except IntegrityError:
                    if self.session.get_bind().dialect.name != "postgresql":
                        raise
                    record = self._locked_record(product_id, branch_id)
                    if record is None:
                        raise
                    created = False
            else:
                created = False

            if not created:
                record.quantity_on_hand = (record.quantity_on_hand or ZERO) + quantity
                self.session.flush()
        except SQLAlchemyError as exc:
            raise StoreError("increment destination inventory", str(exc)) from exc

        logger.info(
            "inventory_incremented",
            extra={
                "inventory_id": str(record.id),
                "product_id": str(product_id),
                "branch_id": str(branch_id),
                "quantity": str(quantity),
                "row_created": created,
            },
        )
        return record
