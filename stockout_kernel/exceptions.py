"""
Typed Exception Hierarchy for the Stock-Out Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A stock-out can fail before anything is written (bad request, not enough
stock, nobody logged in) or after stock has already left the shelf (the
ledger could not be posted).  Callers must be able to tell these apart
without parsing messages:

    try:
        result = service.process_stock_out(request)
    except InsufficientStockError as e:
        show_form_error(f"Only {e.available} left")
    except StockOutError as e:
        if e.partially_applied:
            warn("Stock was removed but accounting was not posted", e.code)
        else:
            show_form_error(e.code)

Every exception has:
  1. A class-level ``code`` (machine-readable, API-safe)
  2. Structured attributes (not just a message string)
  3. A ``partially_applied`` flag: True when committed rows exist

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    StockOutError (base)
    |
    +-- RequestRejectedError            nothing was written
    |   +-- StockOutValidationError
    |   +-- InventoryNotFoundError
    |   +-- InsufficientStockError
    |   +-- NotAuthenticatedError
    |
    +-- PostingError
    |   +-- AccountNotFoundError         dependency missing
    |   +-- UnbalancedEntryError
    |
    +-- TransferMirrorError
    |
    +-- StoreError
    |   +-- CapabilityUnavailableError
    |
    +-- ImmutabilityViolationError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Request         | VALIDATION_FAILED           | Missing/invalid field for the reason
                | INVENTORY_NOT_FOUND         | Source inventory record doesn't exist
                | INSUFFICIENT_STOCK          | quantity > quantity_available
                | NOT_AUTHENTICATED           | No actor could be resolved
----------------|-----------------------------|-----------------------------------------
Posting         | ACCOUNT_NOT_FOUND           | Required ledger account missing
                | UNBALANCED_ENTRY            | Debits != Credits
----------------|-----------------------------|-----------------------------------------
Transfer        | TRANSFER_INCOMPLETE         | Destination mirror failed
----------------|-----------------------------|-----------------------------------------
Store           | STORE_ERROR                 | Underlying read/write failure
                | CAPABILITY_UNAVAILABLE      | Server-side procedure not installed
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | UPDATE/DELETE of an append-only row
----------------|-----------------------------|-----------------------------------------
Config          | CONFIGURATION_ERROR         | Invalid configuration set
"""

from decimal import Decimal


class StockOutError(Exception):
    """
    Base exception for all stock-out kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "STOCK_OUT_ERROR"
    partially_applied: bool = False

    # Ids of rows already committed when partially_applied is True
    stock_out_transaction_id: str | None = None
    reference_number: str | None = None
    inventory_movement_id: str | None = None
    gl_transaction_id: str | None = None

    def with_partial_state(
        self,
        *,
        stock_out_transaction_id: str | None,
        reference_number: str | None,
        inventory_movement_id: str | None,
        partially_applied: bool,
        gl_transaction_id: str | None = None,
    ) -> "StockOutError":
        """Attach the ids of rows written before the failure and return self."""
        self.stock_out_transaction_id = stock_out_transaction_id
        self.reference_number = reference_number
        self.inventory_movement_id = inventory_movement_id
        self.gl_transaction_id = gl_transaction_id
        self.partially_applied = partially_applied
        return self


# Rejected requests: raised before any write


class RequestRejectedError(StockOutError):
    """Base exception for requests refused before any row was written."""

    code: str = "REQUEST_REJECTED"


class StockOutValidationError(RequestRejectedError):
    """Request is missing a field or carries an invalid value."""

    code: str = "VALIDATION_FAILED"

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(f"Validation failed: {'; '.join(self.errors)}")


class InventoryNotFoundError(RequestRejectedError):
    """Source inventory record does not exist."""

    code: str = "INVENTORY_NOT_FOUND"

    def __init__(self, inventory_id: str):
        self.inventory_id = inventory_id
        super().__init__(f"Inventory record not found: {inventory_id}")


class InsufficientStockError(RequestRejectedError):
    """Requested quantity exceeds the available quantity."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, inventory_id: str, requested: Decimal, available: Decimal):
        self.inventory_id = inventory_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock. Available: {available}, Requested: {requested}"
        )


class NotAuthenticatedError(RequestRejectedError):
    """No actor could be resolved for the operation."""

    code: str = "NOT_AUTHENTICATED"

    def __init__(self, attempted: list[str] | None = None):
        self.attempted = list(attempted or [])
        super().__init__(
            "User not authenticated. Please log in to perform stock out operations."
        )


# Posting-related exceptions


class PostingError(StockOutError):
    """Base exception for ledger posting errors."""

    code: str = "POSTING_ERROR"


class AccountNotFoundError(PostingError):
    """
    A ledger account required for the journal entry could not be resolved.

    When raised from a staged stock-out, the stock-out transaction and its
    movement are already committed.  The ids of those rows are attached so
    an operator can create the missing account and post a correcting entry.
    """

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, role: str, branch_id: str | None = None):
        self.role = role
        self.branch_id = branch_id
        scope = f" for branch {branch_id}" if branch_id else ""
        super().__init__(f"No ledger account bound to role {role}{scope}")


class UnbalancedEntryError(PostingError):
    """Journal lines do not balance."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, debits: Decimal, credits: Decimal):
        self.debits = debits
        self.credits = credits
        super().__init__(f"Entry is unbalanced: debits={debits}, credits={credits}")


# Transfer-related exceptions


class TransferMirrorError(StockOutError):
    """Destination side of a transfer could not be written."""

    code: str = "TRANSFER_INCOMPLETE"

    def __init__(self, destination_branch_id: str, reason: str):
        self.destination_branch_id = destination_branch_id
        self.reason = reason
        super().__init__(
            f"Transfer to branch {destination_branch_id} incomplete: {reason}"
        )


# Store-related exceptions


class StoreError(StockOutError):
    """An underlying read or write failed.  The original error is the cause."""

    code: str = "STORE_ERROR"

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"Failed to {operation}: {message}")


class CapabilityUnavailableError(StoreError):
    """The store does not expose a server-side capability (e.g. a procedure)."""

    code: str = "CAPABILITY_UNAVAILABLE"

    def __init__(self, capability: str, message: str = ""):
        self.capability = capability
        super().__init__(f"call {capability}", message or "capability unavailable")


# Immutability exceptions


class ImmutabilityViolationError(StockOutError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Configuration exceptions


class ConfigurationError(StockOutError):
    """Configuration set failed validation."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"Invalid configuration at {key}: {message}")
