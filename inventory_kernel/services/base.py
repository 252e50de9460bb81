"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor for every write-side service: a
    SQLAlchemy ``Session`` owned by the caller and a ``Clock`` for
    timestamps.  Services persist with ``session.flush()``, never
    ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's
      transaction and never commit or roll back themselves.  The caller
      (StockOrchestrator, or a test holding a session) owns the unit of
      work, so a plan and its writes are atomic.

Failure modes:
    - A subclass that commits on its own breaks the no-partial-application
      guarantee of consume and waste.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base
from inventory_kernel.domain.clock import Clock, SystemClock

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and uses
        ``session.flush()`` to persist changes within the active
        transaction.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide listing or reporting queries; those belong in
          ``inventory_kernel/selectors/``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        """
        Args:
            session: SQLAlchemy session for database operations.
            clock: Time source for stamps.  Defaults to SystemClock.
        """
        self.session = session
        self.clock = clock or SystemClock()
