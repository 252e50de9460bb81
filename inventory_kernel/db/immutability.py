"""
ORM-Level History Protection for the batch ledger.

===============================================================================
WHY THIS EXISTS
===============================================================================

The ledger answers "which lots did this quantity come from?" long after the
stock is gone.  That only works if history cannot be rewritten:

  - Waste and audit logs are append-only.
  - A batch's initial quantity is fixed at receipt.
  - A batch's remaining quantity only goes down.
  - A closed batch stays closed.
  - Batches are never deleted; closed ones are the record.

Stock only enters through ``receive`` (a new batch), never by growing an
existing one.

===============================================================================
HOW IT WORKS
===============================================================================

SQLAlchemy fires mapper events before UPDATE/DELETE statements reach the
database:

    session.flush()
         |
         v
    [before_update] --> _check_*() --> ImmutabilityViolationError
    [before_delete] --> _check_*() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

A failed check aborts the flush; the caller's unit of work rolls back.

Bulk ``update()`` statements bypass mapper events.  Services never issue
them against these tables.

===============================================================================
USAGE
===============================================================================

    from inventory_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # idempotent, called by init_engine_*

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event
from sqlalchemy.orm.attributes import get_history

from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _block(entity_type: str, entity_id, operation: str, reason: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
            "reason": reason,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _check_waste_log_update(mapper, connection, target):
    """Waste logs are immutable from creation, cost impact included."""
    _block("WasteLog", target.id, "UPDATE", "Waste logs cannot be modified")


def _check_waste_log_delete(mapper, connection, target):
    _block("WasteLog", target.id, "DELETE", "Waste logs cannot be deleted")


def _check_audit_log_update(mapper, connection, target):
    _block("AuditLog", target.id, "UPDATE", "Audit logs cannot be modified")


def _check_audit_log_delete(mapper, connection, target):
    _block("AuditLog", target.id, "DELETE", "Audit logs cannot be deleted")


def _check_batch_update(mapper, connection, target):
    """
    Allow a batch to shrink and close, nothing else on the stock fields.

    Attribute history:
        - history.deleted = value loaded from the database
        - history.added = value about to be written
    """
    initial = get_history(target, "initial_quantity")
    if initial.deleted and initial.added and initial.deleted[0] != initial.added[0]:
        _block(
            "ItemBatch",
            target.id,
            "UPDATE",
            "initial_quantity is immutable",
        )

    quantity = get_history(target, "quantity")
    if quantity.deleted and quantity.added:
        old, new = quantity.deleted[0], quantity.added[0]
        if new > old:
            _block(
                "ItemBatch",
                target.id,
                "UPDATE",
                f"quantity may only decrease ({old} -> {new})",
            )

    is_open = get_history(target, "is_open")
    if is_open.deleted and is_open.added:
        if not is_open.deleted[0] and is_open.added[0]:
            _block(
                "ItemBatch",
                target.id,
                "UPDATE",
                "a closed batch cannot be reopened",
            )


def _check_batch_delete(mapper, connection, target):
    _block("ItemBatch", target.id, "DELETE", "Batches are history and cannot be deleted")


def _listeners():
    from inventory_kernel.models.audit_log import AuditLog
    from inventory_kernel.models.batch import ItemBatch
    from inventory_kernel.models.waste_log import WasteLog

    return (
        (WasteLog, "before_update", _check_waste_log_update),
        (WasteLog, "before_delete", _check_waste_log_delete),
        (AuditLog, "before_update", _check_audit_log_update),
        (AuditLog, "before_delete", _check_audit_log_delete),
        (ItemBatch, "before_update", _check_batch_update),
        (ItemBatch, "before_delete", _check_batch_delete),
    )


def register_immutability_listeners():
    """
    Register all history protection listeners.

    Safe to call more than once; already-registered listeners are skipped.
    """
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove history protection listeners.

    WARNING: Only use this in tests that need to corrupt state on purpose
    (for example, to prove the drift check finds it).
    """
    for target, event_name, listener_fn in _listeners():
        _safe_remove_listener(target, event_name, listener_fn)


def immutability_listeners_registered() -> bool:
    return all(
        event.contains(target, event_name, listener_fn)
        for target, event_name, listener_fn in _listeners()
    )
