"""
StockOutService -- the stock-out orchestrator.

Responsibility:
    Validates a StockOutRequest, prices and classifies it, and sequences the
    writes: stock-out transaction, source decrement, source movement, ledger
    posting, transfer mirror.  Returns a StockOutResult or raises a typed
    StockOutError.

Architecture position:
    Kernel > Services.  The only service that commits or rolls back.  All
    collaborators flush within the transaction opened here.

Transaction boundaries (StockOutSettings.posting.mode):

    STAGED (default)
        unit 1  transaction + decrement + source movement   -> commit
        unit 2  journal posting                              -> commit
        unit 3  transfer mirror                              -> commit
        A failure rolls back its own unit only.  A failure in unit 2 or 3
        leaves the earlier units committed and the raised error has
        partially_applied=True plus the ids of the committed rows.

    ATOMIC
        units 1-3 share one transaction.  Any failure rolls everything back
        and the raised error has partially_applied=False.

Invariants enforced:
    - Nothing is written before pre-flight validation passes (fields,
      quantity > 0, inventory exists and matches, quantity <= available,
      transfer destination valid).
    - total_loss_amount == round(quantity * unit_cost) for LOSS, else 0.
    - A journal entry is never posted unbalanced or with a missing account.

Failure modes:
    - StockOutValidationError, InventoryNotFoundError, InsufficientStockError,
      NotAuthenticatedError: rejected, nothing written.
    - AccountNotFoundError: ledger account missing (partial in STAGED).
    - TransferMirrorError: destination not updated (partial in STAGED).
    - StoreError: database failure, original error as __cause__.
"""

from collections.abc import Callable
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stockout_kernel.db.types import ZERO, round_money
from stockout_kernel.domain.clock import Clock, SystemClock
from stockout_kernel.domain.dtos import StockOutRequest, StockOutResult
from stockout_kernel.domain.journal import build_journal_plan
from stockout_kernel.domain.reasons import FinancialImpact, StockOutReason, classify_impact
from stockout_kernel.domain.references import ReferenceGenerator
from stockout_kernel.domain.settings import PostingMode, StockOutSettings
from stockout_kernel.exceptions import (
    InsufficientStockError,
    InventoryNotFoundError,
    StockOutError,
    StockOutValidationError,
    StoreError,
    TransferMirrorError,
)
from stockout_kernel.logging_config import LogContext, get_logger
from stockout_kernel.models.branch import Branch
from stockout_kernel.models.inventory import InventoryRecord
from stockout_kernel.models.product import Product
from stockout_kernel.models.stock_out import StockOutStatus, StockOutTransaction
from stockout_kernel.services.account_resolver import AccountResolver
from stockout_kernel.services.actor_resolver import ActorResolver
from stockout_kernel.services.cost_resolver import CostResolver
from stockout_kernel.services.inventory_mutator import (
    InventoryDecrementer,
    InventoryMutator,
    build_decrementer,
)
from stockout_kernel.services.journal_poster import JournalPoster
from stockout_kernel.services.movement_recorder import MovementRecorder
from stockout_kernel.services.transfer_mirror import TransferMirror

logger = get_logger("services.stock_out")

# Shared across service instances so references stay unique per process
_DEFAULT_REFERENCES = ReferenceGenerator()


class StockOutService:
    """
    Orchestrates one stock-out per process_stock_out() call.

    Usage:
        service = StockOutService(session, settings, ActorResolver.default())
        result = service.process_stock_out(request, actor_id=user_id)
    """

    def __init__(
        self,
        session: Session,
        settings: StockOutSettings | None = None,
        actor_resolver: ActorResolver | None = None,
        clock: Clock | None = None,
        reference_generator: ReferenceGenerator | None = None,
        decrementer_factory: Callable[[Session], InventoryDecrementer] | None = None,
    ):
        self.session = session
        self.settings = settings or StockOutSettings()
        self._actors = actor_resolver or ActorResolver.default()
        self._clock = clock or SystemClock()
        self._references = reference_generator or (
            ReferenceGenerator(self._clock) if clock is not None else _DEFAULT_REFERENCES
        )

        decrementer = (
            decrementer_factory(session)
            if decrementer_factory is not None
            else build_decrementer(session, self.settings.inventory)
        )
        self._costs = CostResolver(session, self.settings.costing)
        self._accounts = AccountResolver(session, self.settings.accounts)
        self._mutator = InventoryMutator(session, decrementer)
        self._movements = MovementRecorder(session, self._clock)
        self._journal = JournalPoster(session, self._accounts, self._clock)
        self._transfers = TransferMirror(session, self._mutator, self._movements)

    @property
    def atomic(self) -> bool:
        return PostingMode(self.settings.posting.mode) is PostingMode.ATOMIC

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def process_stock_out(
        self,
        request: StockOutRequest,
        actor_id: UUID | str | None = None,
    ) -> StockOutResult:
        """
        Process one stock-out request.

        Args:
            request: What to remove, from where, and why.
            actor_id: Acting user; resolved through the ActorResolver
                strategies when omitted.

        Returns:
            StockOutResult with the ids written.

        Raises:
            StockOutError subclasses (see module docstring).
        """
        with LogContext.bind(
            correlation_id=str(uuid4()),
            inventory_id=request.inventory_id,
        ):
            try:
                return self._process(request, actor_id)
            except StockOutError as exc:
                logger.warning(
                    "stock_out_failed",
                    extra={
                        "error_code": exc.code,
                        "partially_applied": exc.partially_applied,
                        "error": str(exc),
                    },
                )
                raise

    def _process(self, request: StockOutRequest, actor_id: UUID | str | None) -> StockOutResult:
        req = request.normalized()
        reason = StockOutReason(req.stock_out_reason)
        logger.info(
            "stock_out_started",
            extra={
                "stock_out_reason": reason.value,
                "quantity": str(req.quantity),
                "branch_id": str(req.branch_id),
            },
        )

        try:
            actor = self._actors.resolve(self.session, actor_id)
            product, source_branch = self._preflight(req)
            cost = self._costs.resolve(req.product_id, req.branch_id)
        except StockOutError:
            self.session.rollback()
            raise

        impact = classify_impact(reason, req.adjustment_type)
        places = self.settings.posting.currency_decimal_places
        gross_amount = round_money(req.quantity * cost.unit_cost, places)
        loss_amount = gross_amount if impact is FinancialImpact.LOSS else ZERO
        reference = self._references.next_stock_out_reference()

        with LogContext.bind(reference_number=reference, actor_id=actor):
            # Unit 1: transaction + decrement + source movement
            transaction, movement = self._run_unit(
                "create stock out transaction",
                lambda: self._write_stock_out(req, actor, cost.unit_cost, impact, loss_amount, reference),
            )
            state = {
                "stock_out_transaction_id": str(transaction.id),
                "reference_number": reference,
                "inventory_movement_id": str(movement.id),
            }

            # Unit 2: ledger
            gl_transaction_id = None
            plan = build_journal_plan(
                impact=impact,
                reason=reason,
                amount=gross_amount,
                branch_id=req.branch_id,
                product_name=product.name,
                quantity=req.quantity,
                destination_branch_id=req.destination_branch_id,
                notes=req.notes,
                supplier_return_reference=req.supplier_return_reference,
                decimal_places=places,
            )
            if plan is not None and plan.amount == ZERO and not self.settings.posting.post_zero_amount_entries:
                logger.info("zero_amount_entry_skipped", extra={"stock_out_reason": reason.value})
                plan = None
            if plan is not None:
                gl_transaction = self._run_unit(
                    "create journal entry",
                    lambda: self._journal.post(plan, reference_number=reference, actor_id=actor),
                    state=state,
                )
                gl_transaction_id = gl_transaction.id
                state["gl_transaction_id"] = str(gl_transaction_id)

            # Unit 3: transfer mirror
            destination_movement_id = None
            if reason is StockOutReason.TRANSFERRED and req.destination_branch_id is not None:
                destination_movement = self._run_unit(
                    "mirror transfer",
                    lambda: self._mirror(transaction, cost.unit_cost),
                    state=state,
                )
                destination_movement_id = destination_movement.id

            if self.atomic:
                self._commit("commit stock out")

            logger.info(
                "stock_out_completed",
                extra={
                    "stock_out_transaction_id": str(transaction.id),
                    "gl_transaction_id": str(gl_transaction_id) if gl_transaction_id else None,
                    "financial_impact": impact.value,
                    "loss_amount": str(loss_amount),
                    "unit_cost": str(cost.unit_cost),
                    "source_branch": source_branch.name,
                },
            )

        return StockOutResult(
            stock_out_transaction_id=transaction.id,
            reference_number=reference,
            inventory_movement_id=movement.id,
            financial_impact=impact,
            loss_amount=loss_amount,
            unit_cost=cost.unit_cost,
            gl_transaction_id=gl_transaction_id,
            destination_movement_id=destination_movement_id,
        )

    # ------------------------------------------------------------------
    # Pre-flight
    # ------------------------------------------------------------------

    def _preflight(self, req: StockOutRequest) -> tuple[Product, Branch]:
        """Every check that must pass before the first write."""
        try:
            record = self.session.get(InventoryRecord, req.inventory_id, populate_existing=True)
            if record is None:
                raise InventoryNotFoundError(str(req.inventory_id))

            errors: list[str] = []
            if record.product_id != req.product_id:
                errors.append("Inventory record does not belong to the given product")
            if record.branch_id != req.branch_id:
                errors.append("Inventory record does not belong to the given branch")

            if req.destination_branch_id is not None:
                if req.destination_branch_id == req.branch_id:
                    errors.append("Destination branch must differ from the source branch")
                else:
                    destination = self.session.get(Branch, req.destination_branch_id)
                    if destination is None:
                        errors.append(f"Destination branch not found: {req.destination_branch_id}")
                    elif not destination.is_active:
                        errors.append(f"Destination branch is inactive: {destination.name}")
            if errors:
                raise StockOutValidationError(errors)

            available = record.quantity_available
            if req.quantity > available:
                raise InsufficientStockError(str(req.inventory_id), req.quantity, available)

            product = record.product
            source_branch = record.branch
        except SQLAlchemyError as exc:
            raise StoreError("load inventory record", str(exc)) from exc
        return product, source_branch

    # ------------------------------------------------------------------
    # Units of work
    # ------------------------------------------------------------------

    def _write_stock_out(
        self,
        req: StockOutRequest,
        actor: UUID,
        unit_cost: Decimal,
        impact: FinancialImpact,
        loss_amount: Decimal,
        reference: str,
    ):
        now = self._clock.now()
        transaction = StockOutTransaction(
            inventory_id=req.inventory_id,
            product_id=req.product_id,
            branch_id=req.branch_id,
            stock_out_reason=StockOutReason(req.stock_out_reason).value,
            adjustment_type=req.adjustment_type.value if req.adjustment_type else None,
            quantity=req.quantity,
            unit_cost=unit_cost,
            financial_impact=impact.value,
            total_loss_amount=loss_amount,
            reference_number=reference,
            destination_branch_id=req.destination_branch_id,
            supplier_return_reference=req.supplier_return_reference,
            notes=req.notes,
            status=StockOutStatus.APPROVED.value,
            stock_out_date=now,
            created_by_id=actor,
            approved_by_id=actor,
            approved_at=now,
        )
        try:
            self.session.add(transaction)
            self.session.flush()
        except SQLAlchemyError as exc:
            raise StoreError("create stock out transaction", str(exc)) from exc

        self._mutator.decrement(req.inventory_id, req.quantity)
        movement = self._movements.record_source(transaction, movement_date=now)
        return transaction, movement

    def _mirror(self, transaction: StockOutTransaction, unit_cost: Decimal):
        try:
            return self._transfers.mirror(transaction, unit_cost)
        except (StockOutError, SQLAlchemyError) as exc:
            raise TransferMirrorError(str(transaction.destination_branch_id), str(exc)) from exc

    def _run_unit(self, operation: str, work: Callable, state: dict | None = None):
        """
        Run one unit of work.

        STAGED commits it on success.  On failure the session is rolled
        back; in STAGED mode that undoes only this unit, so errors from a
        later unit are marked partially applied.
        """
        try:
            result = work()
        except StockOutError as exc:
            self.session.rollback()
            raise self._with_state(exc, state)
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise self._with_state(StoreError(operation, str(exc)), state) from exc

        if not self.atomic:
            self._commit(operation, state)
        return result

    def _commit(self, operation: str, state: dict | None = None) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise self._with_state(StoreError(operation, str(exc)), state) from exc

    def _with_state(self, exc: StockOutError, state: dict | None) -> StockOutError:
        if state is None or self.atomic:
            return exc
        return exc.with_partial_state(partially_applied=True, **state)
