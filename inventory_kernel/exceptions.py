"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the ledger (REST handlers, JSON-RPC tools, batch jobs) translate
errors into their own response shapes.  They must be able to do that by type
and by a stable code, never by parsing message strings:

    try:
        orchestrator.consume(actor, item_id, 4)
    except InsufficientStockError as e:
        return {"error": e.code, "requested": e.requested, "available": e.available}
    except ConflictError as e:
        if e.retryable:
            schedule_retry()

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- NotFoundError
    |   +-- ItemNotFoundError
    |   +-- BatchNotFoundError
    |   +-- EventNotFoundError
    |
    +-- InvalidArgumentError
    |   +-- InvalidQuantityError
    |   +-- EventItemMismatchError
    |   +-- BatchItemMismatchError
    |   +-- BatchNotOpenError
    |   +-- BatchQuantityExceededError
    |   +-- InvalidWasteReasonError
    |   +-- InvalidUnitPriceError
    |
    +-- InsufficientStockError
    +-- NoOpenBatchesError
    |
    +-- AuthorizationError
    |   +-- MutationNotPermittedError
    |
    +-- ConflictError
    |   +-- OptimisticLockError
    |   +-- LockTimeoutError        (retryable)
    |   +-- RetryExhaustedError
    |
    +-- ImmutabilityViolationError
    |
    +-- InternalError
        +-- PersistenceError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
NotFound        | ITEM_NOT_FOUND              | Item ID doesn't exist
                | BATCH_NOT_FOUND             | Batch ID doesn't exist
                | EVENT_NOT_FOUND             | Event ID doesn't exist
----------------|-----------------------------|-----------------------------------------
InvalidArgument | INVALID_QUANTITY            | Quantity <= 0 (or < 0 for counts)
                | EVENT_ITEM_MISMATCH         | Item belongs to another event
                | BATCH_ITEM_MISMATCH         | Batch belongs to another item
                | BATCH_NOT_OPEN              | Batch is closed
                | BATCH_QUANTITY_EXCEEDED     | Waste exceeds the targeted batch
                | INVALID_WASTE_REASON        | Unknown waste reason code
                | INVALID_UNIT_PRICE          | Negative or non-numeric price
----------------|-----------------------------|-----------------------------------------
Stock           | INSUFFICIENT_STOCK          | Request exceeds total or open batches
                | NO_OPEN_BATCHES             | Batch-tracked item, nothing open
----------------|-----------------------------|-----------------------------------------
Authorization   | MUTATION_NOT_PERMITTED      | Actor role below EDITOR
----------------|-----------------------------|-----------------------------------------
Conflict        | OPTIMISTIC_LOCK_CONFLICT    | Item version changed underneath us
                | LOCK_TIMEOUT                | Lock wait timeout / deadlock (retry)
                | RETRY_EXHAUSTED             | Retries used up on a transient error
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Log rewritten, batch reopened/grown
----------------|-----------------------------|-----------------------------------------
Internal      | PERSISTENCE_ERROR           | Any other database failure

===============================================================================
DESIGN DECISIONS
===============================================================================

1. ``code`` is a class attribute so it is available without instantiation.
2. ``retryable`` is a class attribute.  Only transient persistence failures
   set it; every other error needs different input to succeed.
3. All context lives in attributes so the structured log formatter can emit
   it (see logging_config.StructuredFormatter).
"""


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"
    retryable: bool = False


# Lookup failures


class NotFoundError(InventoryKernelError):
    """Base exception for missing entities."""

    code: str = "NOT_FOUND"


class ItemNotFoundError(NotFoundError):
    """Item with given ID was not found."""

    code: str = "ITEM_NOT_FOUND"

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item not found: {item_id}")


class BatchNotFoundError(NotFoundError):
    """Batch with given ID was not found."""

    code: str = "BATCH_NOT_FOUND"

    def __init__(self, batch_id: str):
        self.batch_id = batch_id
        super().__init__(f"Batch not found: {batch_id}")


class EventNotFoundError(NotFoundError):
    """Event with given ID was not found."""

    code: str = "EVENT_NOT_FOUND"

    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"Event not found: {event_id}")


# Argument validation


class InvalidArgumentError(InventoryKernelError):
    """Base exception for rejected input."""

    code: str = "INVALID_ARGUMENT"


class InvalidQuantityError(InvalidArgumentError):
    """Quantity is outside the accepted range for the operation."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, field: str, value: int, reason: str = "must be positive"):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field} {value}: {reason}")


class EventItemMismatchError(InvalidArgumentError):
    """Item does not belong to the event named by the caller."""

    code: str = "EVENT_ITEM_MISMATCH"

    def __init__(self, item_id: str, event_id: str, actual_event_id: str):
        self.item_id = item_id
        self.event_id = event_id
        self.actual_event_id = actual_event_id
        super().__init__(
            f"Item {item_id} does not belong to event {event_id}"
        )


class BatchItemMismatchError(InvalidArgumentError):
    """Batch belongs to a different item."""

    code: str = "BATCH_ITEM_MISMATCH"

    def __init__(self, batch_id: str, item_id: str):
        self.batch_id = batch_id
        self.item_id = item_id
        super().__init__(f"Batch {batch_id} does not belong to item {item_id}")


class BatchNotOpenError(InvalidArgumentError):
    """Batch is closed and cannot be drawn from."""

    code: str = "BATCH_NOT_OPEN"

    def __init__(self, batch_id: str):
        self.batch_id = batch_id
        super().__init__(f"Batch {batch_id} is closed")


class BatchQuantityExceededError(InvalidArgumentError):
    """Requested quantity exceeds what remains in the targeted batch."""

    code: str = "BATCH_QUANTITY_EXCEEDED"

    def __init__(self, batch_id: str, requested: int, available: int):
        self.batch_id = batch_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Quantity ({requested}) exceeds available batch quantity "
            f"({available}) in batch {batch_id}"
        )


class InvalidWasteReasonError(InvalidArgumentError):
    """Waste reason is not one of the enumerated codes."""

    code: str = "INVALID_WASTE_REASON"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid waste reason: {reason}")


class InvalidUnitPriceError(InvalidArgumentError):
    """Unit price is negative or not a number."""

    code: str = "INVALID_UNIT_PRICE"

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid unit price: {value!r}")


# Stock availability


class InsufficientStockError(InventoryKernelError):
    """
    Requested quantity exceeds what is available.

    ``basis`` names what the request was checked against: ``item_total``
    for the denormalized item quantity, ``open_batches`` for the sum of
    open batch quantities.
    """

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, item_id: str, requested: int, available: int, basis: str):
        self.item_id = item_id
        self.requested = requested
        self.available = available
        self.basis = basis
        super().__init__(
            f"Requested quantity ({requested}) exceeds available "
            f"{basis.replace('_', ' ')} quantity ({available}) for item {item_id}"
        )


class NoOpenBatchesError(InventoryKernelError):
    """Item is batch-tracked but has no open batch to draw from."""

    code: str = "NO_OPEN_BATCHES"

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"No open batches available for item {item_id}")


# Authorization


class AuthorizationError(InventoryKernelError):
    """Base exception for denied actors."""

    code: str = "AUTHORIZATION_ERROR"


class MutationNotPermittedError(AuthorizationError):
    """Actor's role does not allow stock mutation."""

    code: str = "MUTATION_NOT_PERMITTED"

    def __init__(self, actor_id: str, role: str, required: str):
        self.actor_id = actor_id
        self.role = role
        self.required = required
        super().__init__(
            f"Actor {actor_id} with role {role} cannot mutate stock "
            f"(requires {required} or above)"
        )


# Concurrency


class ConflictError(InventoryKernelError):
    """Base exception for concurrent mutation conflicts."""

    code: str = "CONFLICT"


class OptimisticLockError(ConflictError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"
    retryable: bool = True

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


class LockTimeoutError(ConflictError):
    """Row lock could not be acquired (timeout, deadlock or serialization failure)."""

    code: str = "LOCK_TIMEOUT"
    retryable: bool = True

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Lock not acquired: {detail}")


class RetryExhaustedError(ConflictError):
    """A transient conflict persisted through every retry attempt."""

    code: str = "RETRY_EXHAUSTED"

    def __init__(self, operation: str, attempts: int, last_code: str):
        self.operation = operation
        self.attempts = attempts
        self.last_code = last_code
        super().__init__(
            f"Operation {operation} failed after {attempts} attempt(s): {last_code}"
        )


# History protection


class ImmutabilityViolationError(InventoryKernelError):
    """
    Attempted to modify or delete an immutable record.

    Waste and audit logs are immutable from creation.  Batches may only
    shrink; a closed batch never reopens.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Persistence


class InternalError(InventoryKernelError):
    """Base exception for failures that are not the caller's fault."""

    code: str = "INTERNAL_ERROR"


class PersistenceError(InternalError):
    """The backing store rejected or failed an operation."""

    code: str = "PERSISTENCE_ERROR"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Persistence failure during {operation}: {detail}")
