"""
Unit of work -- transaction scope, database error translation and retry.

Responsibility:
    Runs one ledger operation in its own transaction, converts database
    driver failures into the kernel's typed exceptions, and re-runs the
    whole transaction when the failure is transient.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.  Used by
    StockOrchestrator; services themselves stay flush-only.

Invariants enforced:
    - Every attempt is a fresh transaction: on a retryable failure the
      previous attempt is rolled back in full before the next begins, so a
      plan is always rebuilt from freshly locked rows.
    - Domain errors (InventoryKernelError) pass through untranslated and
      are never retried unless their ``retryable`` flag is set.

Translation:
    OperationalError (lock_not_available 55P03, deadlock 40P01,
    serialization failure 40001, "database is locked") -> LockTimeoutError
    StaleDataError                                       -> OptimisticLockError
    any other SQLAlchemyError                             -> PersistenceError
"""

from __future__ import annotations

import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import TypeVar

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from inventory_kernel.db.engine import session_scope
from inventory_kernel.exceptions import (
    InventoryKernelError,
    LockTimeoutError,
    OptimisticLockError,
    PersistenceError,
    RetryExhaustedError,
)
from inventory_kernel.logging_config import get_logger

logger = get_logger("services.unit_of_work")

T = TypeVar("T")

# PostgreSQL SQLSTATEs that mean "try again"
TRANSIENT_SQLSTATES = frozenset({"55P03", "40P01", "40001"})
_TRANSIENT_MARKERS = (
    "lock timeout",
    "lock_timeout",
    "deadlock",
    "could not serialize",
    "database is locked",
)


def _sqlstate(exc: OperationalError) -> str | None:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_transient(exc: OperationalError) -> bool:
    if _sqlstate(exc) in TRANSIENT_SQLSTATES:
        return True
    text = str(exc).lower()
    return any(marker in text for marker in _TRANSIENT_MARKERS)


def translate_db_error(exc: Exception, operation: str) -> InventoryKernelError:
    """Map a database exception onto the kernel hierarchy."""
    if isinstance(exc, StaleDataError):
        return OptimisticLockError("Item", str(exc))
    if isinstance(exc, OperationalError) and is_transient(exc):
        return LockTimeoutError(str(getattr(exc, "orig", exc)))
    return PersistenceError(operation, str(exc))


@contextmanager
def translate_db_errors(operation: str) -> Generator[None, None, None]:
    """Re-raise SQLAlchemy failures inside the block as kernel exceptions."""
    try:
        yield
    except InventoryKernelError:
        raise
    except (StaleDataError, SQLAlchemyError) as exc:
        translated = translate_db_error(exc, operation)
        logger.warning(
            "database_error_translated",
            extra={
                "operation": operation,
                "db_error": type(exc).__name__,
                "error_code": translated.code,
                "retryable": translated.retryable,
            },
        )
        raise translated from exc


def run_in_transaction(
    operation: str,
    work: Callable[[Session], T],
    *,
    session_factory: Callable[[], Session] | None = None,
    lock_timeout_ms: int | None = None,
    max_retries: int = 3,
    backoff_seconds: float = 0.05,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run ``work(session)`` in a committed transaction, retrying transient failures.

    Attempts ``max_retries + 1`` times in total, sleeping
    ``backoff_seconds * attempt`` between attempts.

    Raises:
        RetryExhaustedError: every attempt failed with a retryable error.
        InventoryKernelError: any non-retryable failure, unchanged.
    """
    attempts = max_retries + 1
    last: InventoryKernelError | None = None

    for attempt in range(1, attempts + 1):
        try:
            with translate_db_errors(operation):
                with session_scope(session_factory, lock_timeout_ms=lock_timeout_ms) as session:
                    return work(session)
        except InventoryKernelError as exc:
            if not exc.retryable:
                raise
            last = exc
            if attempt < attempts:
                logger.warning(
                    "unit_of_work_retry",
                    extra={
                        "operation": operation,
                        "attempt": attempt,
                        "max_attempts": attempts,
                        "error_code": exc.code,
                    },
                )
                sleep(backoff_seconds * attempt)

    logger.error(
        "unit_of_work_retries_exhausted",
        extra={"operation": operation, "attempts": attempts, "error_code": last.code},
    )
    raise RetryExhaustedError(operation, attempts, last.code) from last
