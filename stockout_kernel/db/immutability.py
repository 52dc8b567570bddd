"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

Stock-out transactions and inventory movements are the audit trail of every
unit that left the shelf for a non-sale reason.  Ledger transactions, once
posted, are the accounting record of the same events.  None of these rows may
be edited after the fact: a mistake is corrected by a new stock-out or a new
ledger entry, never by rewriting history.

SQLAlchemy fires mapper events before UPDATE/DELETE statements reach the
database.  The listeners registered here inspect the pending change and raise
ImmutabilityViolationError, which aborts the flush:

    session.flush()
         |
         v
    [before_update] --> _check_*_update() --> ImmutabilityViolationError
         |
    [before_delete] --> _check_*_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

Bulk ``update()``/``delete()`` statements bypass mapper events and are not
covered.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity               | When Immutable                 | Why
---------------------|--------------------------------|------------------------------
StockOutTransaction  | ALWAYS (from creation)         | Append-only stock-out log
InventoryMovement    | ALWAYS (from creation)         | Append-only movement trail
GLTransaction        | After status = POSTED          | Posted = finalized ledger
GLTransactionItem    | When parent is POSTED          | Lines are part of the entry

updated_at is ignored when looking for changes: it is maintained by the ORM,
not by callers.

===============================================================================
USAGE
===============================================================================

    from stockout_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
    # ... forbidden operation ...
    register_immutability_listeners()
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from stockout_kernel.exceptions import ImmutabilityViolationError
from stockout_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_FIELDS = frozenset({"updated_at"})


def _changed_field(target) -> str | None:
    """Name of the first caller-modified column attribute, if any."""
    insp = inspect(target)
    for attr in insp.mapper.column_attrs:
        if attr.key in _AUDIT_FIELDS:
            continue
        if insp.attrs[attr.key].history.has_changes():
            return attr.key
    return None


def _block(entity_type: str, target, operation: str, reason: str, field: str | None = None):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
            "field": field,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


# -----------------------------------------------------------------------------
# Append-only entities
# -----------------------------------------------------------------------------


def _check_append_only_update(mapper, connection, target):
    field = _changed_field(target)
    if field is None:
        return
    entity_type = type(target).__name__
    _block(
        entity_type,
        target,
        "UPDATE",
        f"Cannot modify field '{field}' on append-only {entity_type}",
        field,
    )


def _check_append_only_delete(mapper, connection, target):
    entity_type = type(target).__name__
    _block(entity_type, target, "DELETE", f"Cannot delete append-only {entity_type}")


# -----------------------------------------------------------------------------
# Ledger entities
# -----------------------------------------------------------------------------


def _is_posted(status) -> bool:
    from stockout_kernel.models.gl import GLTransactionStatus

    return status == GLTransactionStatus.POSTED


def _gl_was_posted_before(target) -> bool:
    """
    True when the transaction was already posted before this flush.

    The DRAFT -> POSTED transition itself is allowed.
    """
    status_history = get_history(target, "status")
    if status_history.deleted:
        return _is_posted(status_history.deleted[0])
    if not status_history.added:
        return _is_posted(target.status)
    return False


def _check_gl_transaction_update(mapper, connection, target):
    if not _gl_was_posted_before(target):
        return
    field = _changed_field(target)
    if field is None:
        return
    _block(
        "GLTransaction",
        target,
        "UPDATE",
        f"Cannot modify field '{field}' on posted ledger transaction",
        field,
    )


def _check_gl_transaction_delete(mapper, connection, target):
    if _is_posted(target.status):
        _block("GLTransaction", target, "DELETE", "Cannot delete posted ledger transaction")


def _parent_posted(target) -> bool:
    parent = target.transaction
    return parent is not None and _is_posted(parent.status)


def _check_gl_item_update(mapper, connection, target):
    if not _parent_posted(target):
        return
    field = _changed_field(target)
    if field is None:
        return
    _block(
        "GLTransactionItem",
        target,
        "UPDATE",
        f"Cannot modify field '{field}' on a line of a posted ledger transaction",
        field,
    )


def _check_gl_item_delete(mapper, connection, target):
    if _parent_posted(target):
        _block(
            "GLTransactionItem",
            target,
            "DELETE",
            "Cannot delete a line of a posted ledger transaction",
        )


# -----------------------------------------------------------------------------
# Registration
# -----------------------------------------------------------------------------


def _listeners():
    from stockout_kernel.models.gl import GLTransaction, GLTransactionItem
    from stockout_kernel.models.movement import InventoryMovement
    from stockout_kernel.models.stock_out import StockOutTransaction

    return [
        (StockOutTransaction, "before_update", _check_append_only_update),
        (StockOutTransaction, "before_delete", _check_append_only_delete),
        (InventoryMovement, "before_update", _check_append_only_update),
        (InventoryMovement, "before_delete", _check_append_only_delete),
        (GLTransaction, "before_update", _check_gl_transaction_update),
        (GLTransaction, "before_delete", _check_gl_transaction_delete),
        (GLTransactionItem, "before_update", _check_gl_item_update),
        (GLTransactionItem, "before_delete", _check_gl_item_delete),
    ]


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Call after the models are importable and before any database writes.
    Registering twice is a no-op.
    """
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests that must write forbidden changes.
    """
    for target, event_name, listener_fn in _listeners():
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
