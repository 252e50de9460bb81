"""
StockOrchestrator -- the kernel's entry point for stock mutations.

The orchestrator ties together:
- Authorization: the actor's role must allow mutation (EDITOR or above)
- Unit of work: one transaction per operation, committed or rolled back whole
- Retry: transient lock failures re-run the operation from scratch
- Services: BatchLedgerService, ConsumptionService, WasteService, AuditService

Callers (HTTP handlers, JSON-RPC tools, scripts) hand it an ActorContext and
get back immutable DTOs, never ORM entities.

Usage:
    orchestrator = StockOrchestrator(clock=SystemClock(), settings=load_settings())
    batch = orchestrator.receive(actor, item_id, 10, expiration_date=date(2025, 6, 1))
    result = orchestrator.consume(actor, item_id, 4)
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import date, datetime
from typing import TypeVar
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from inventory_kernel.config import LedgerSettings
from inventory_kernel.db.engine import get_session_factory
from inventory_kernel.domain.access import MUTATION_ROLE, ActorContext
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import (
    AuditRecord,
    BatchRecord,
    ConsumptionResult,
    WasteResult,
)
from inventory_kernel.exceptions import MutationNotPermittedError
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.waste_log import WasteReason
from inventory_kernel.services.audit_service import AuditService
from inventory_kernel.services.batch_ledger import BatchLedgerService
from inventory_kernel.services.consumption_service import ConsumptionService
from inventory_kernel.services.unit_of_work import run_in_transaction
from inventory_kernel.services.waste_service import WasteService

logger = get_logger("services.orchestrator")

T = TypeVar("T")


class StockOrchestrator:
    """
    Runs receive, consume, record_waste and record_audit as units of work.

    Each public mutation:
    1. Checks the actor may mutate stock
    2. Binds correlation, actor, item and event ids to the log context
    3. Runs the service call in its own transaction
    4. Retries the whole transaction on a retryable conflict
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        clock: Clock | None = None,
        settings: LedgerSettings | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            session_factory: Opens sessions for each unit of work.  Defaults
                to the module-level factory from db.engine.
            clock: Time source.  Defaults to SystemClock.
            settings: Lock timeout and retry policy.
            sleep: Backoff sleeper, injectable for tests.
        """
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._settings = settings or LedgerSettings()
        self._sleep = sleep

    def _factory(self) -> Callable[[], Session]:
        return self._session_factory or get_session_factory()

    def _authorize(self, actor: ActorContext, operation: str) -> None:
        if not actor.can_mutate:
            logger.warning(
                "mutation_not_permitted",
                extra={
                    "operation": operation,
                    "actor_id": str(actor.actor_id),
                    "role": actor.role.name,
                },
            )
            raise MutationNotPermittedError(
                str(actor.actor_id), actor.role.name, MUTATION_ROLE.name
            )

    def _run(
        self,
        operation: str,
        actor: ActorContext,
        item_id: UUID,
        event_id: UUID | None,
        work: Callable[[Session], T],
    ) -> T:
        self._authorize(actor, operation)
        with LogContext.bind(
            correlation_id=str(uuid4()),
            actor_id=actor.actor_id,
            item_id=item_id,
            event_id=event_id,
        ):
            return run_in_transaction(
                operation,
                work,
                session_factory=self._factory(),
                lock_timeout_ms=self._settings.lock_timeout_ms,
                max_retries=self._settings.max_retries,
                backoff_seconds=self._settings.retry_backoff_seconds,
                sleep=self._sleep,
            )

    # -- mutations ---------------------------------------------------------

    def receive(
        self,
        actor: ActorContext,
        item_id: UUID,
        quantity: int,
        *,
        lot_number: str | None = None,
        expiration_date: date | None = None,
        received_at: datetime | None = None,
        manufactured_at: datetime | None = None,
        notes: str | None = None,
        event_id: UUID | None = None,
    ) -> BatchRecord:
        def work(session: Session) -> BatchRecord:
            batch = BatchLedgerService(session, self._clock).receive(
                item_id,
                quantity,
                lot_number=lot_number,
                expiration_date=expiration_date,
                received_at=received_at,
                manufactured_at=manufactured_at,
                notes=notes,
                event_id=event_id,
            )
            return BatchRecord.from_model(batch)

        return self._run("receive", actor, item_id, event_id, work)

    def consume(
        self,
        actor: ActorContext,
        item_id: UUID,
        quantity: int,
        *,
        event_id: UUID | None = None,
    ) -> ConsumptionResult:
        def work(session: Session) -> ConsumptionResult:
            return ConsumptionService(session, self._clock).consume(
                item_id, quantity, event_id=event_id
            )

        return self._run("consume", actor, item_id, event_id, work)

    def record_waste(
        self,
        actor: ActorContext,
        item_id: UUID,
        quantity: int,
        reason: str | WasteReason,
        *,
        batch_id: UUID | None = None,
        notes: str | None = None,
        event_id: UUID | None = None,
    ) -> WasteResult:
        def work(session: Session) -> WasteResult:
            return WasteService(session, self._clock).record_waste(
                item_id,
                quantity,
                reason,
                batch_id=batch_id,
                notes=notes,
                actor_id=actor.actor_id,
                event_id=event_id,
            )

        return self._run("record_waste", actor, item_id, event_id, work)

    def record_audit(
        self,
        actor: ActorContext,
        item_id: UUID,
        actual_quantity: int,
        expected_quantity: int,
        *,
        notes: str | None = None,
        context_id: str | None = None,
        event_id: UUID | None = None,
    ) -> AuditRecord:
        def work(session: Session) -> AuditRecord:
            return AuditService(session, self._clock).record_audit(
                item_id,
                actual_quantity,
                expected_quantity,
                notes=notes,
                context_id=context_id,
                actor_id=actor.actor_id,
                event_id=event_id,
            )

        with LogContext.bind(context_id=context_id):
            return self._run("record_audit", actor, item_id, event_id, work)

    # -- reads -------------------------------------------------------------

    def list_open_batches(
        self,
        item_id: UUID,
        *,
        event_id: UUID | None = None,
    ) -> list[BatchRecord]:
        """Open batches in FEFO order.  Any role may read."""

        def work(session: Session) -> list[BatchRecord]:
            batches = BatchLedgerService(session, self._clock).list_open_batches(
                item_id, event_id
            )
            return [BatchRecord.from_model(b) for b in batches]

        return run_in_transaction(
            "list_open_batches",
            work,
            session_factory=self._factory(),
            max_retries=0,
        )
