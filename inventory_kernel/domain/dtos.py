"""
DTOs -- Immutable results returned across the kernel boundary.

Responsibility:
    Defines what services, selectors and the orchestrator hand back to
    callers: batch, waste and audit records, consumption lines, pages and
    the aggregate reports.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    ``from_model()`` class methods are boundary converters invoked only
    from services and selectors, never from engine code.

Invariants enforced:
    - Callers never receive live ORM entities from the orchestrator, so a
      returned record cannot be mutated into a later transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Generic, TypeVar
from uuid import UUID

if TYPE_CHECKING:
    from inventory_kernel.models.audit_log import AuditLog
    from inventory_kernel.models.batch import ItemBatch
    from inventory_kernel.models.waste_log import WasteLog

T = TypeVar("T")


@dataclass(frozen=True)
class BatchRecord:
    """A batch as persisted."""

    id: UUID
    item_id: UUID
    lot_number: str | None
    quantity: int
    initial_quantity: int
    expiration_date: date | None
    received_at: datetime
    manufactured_at: datetime | None
    is_open: bool
    notes: str | None
    created_at: datetime

    @classmethod
    def from_model(cls, batch: ItemBatch) -> BatchRecord:
        return cls(
            id=batch.id,
            item_id=batch.item_id,
            lot_number=batch.lot_number,
            quantity=batch.quantity,
            initial_quantity=batch.initial_quantity,
            expiration_date=batch.expiration_date,
            received_at=batch.received_at,
            manufactured_at=batch.manufactured_at,
            is_open=batch.is_open,
            notes=batch.notes,
            created_at=batch.created_at,
        )


@dataclass(frozen=True)
class ConsumptionLine:
    """What one batch gave up to a consume or waste."""

    batch_id: UUID
    consumed: int
    remaining_quantity: int
    is_open: bool
    expiration_date: date | None = None


@dataclass(frozen=True)
class ConsumptionResult:
    """
    Outcome of a consume.

    ``lines`` is empty for an unbatched item, whose counter was decremented
    directly.
    """

    item_id: UUID
    total_consumed: int
    item_quantity: int
    lines: tuple[ConsumptionLine, ...] = ()


@dataclass(frozen=True)
class WasteRecord:
    """A waste log as persisted."""

    id: UUID
    item_id: UUID
    batch_id: UUID | None
    quantity: int
    reason: str
    notes: str | None
    cost_impact: Decimal | None
    created_by: UUID | None
    timestamp: datetime

    @classmethod
    def from_model(cls, log: WasteLog) -> WasteRecord:
        return cls(
            id=log.id,
            item_id=log.item_id,
            batch_id=log.batch_id,
            quantity=log.quantity,
            reason=log.reason,
            notes=log.notes,
            cost_impact=log.cost_impact,
            created_by=log.created_by,
            timestamp=log.timestamp,
        )


@dataclass(frozen=True)
class WasteResult:
    """Outcome of a record_waste: the log plus the batches it drew from."""

    log: WasteRecord
    item_quantity: int
    lines: tuple[ConsumptionLine, ...] = ()


@dataclass(frozen=True)
class AuditRecord:
    """An audit log as persisted."""

    id: UUID
    item_id: UUID
    event_id: UUID
    actual_quantity: int
    expected_quantity: int
    discrepancy: int
    notes: str | None
    context_id: str | None
    created_by: UUID | None
    timestamp: datetime

    @classmethod
    def from_model(cls, log: AuditLog) -> AuditRecord:
        return cls(
            id=log.id,
            item_id=log.item_id,
            event_id=log.event_id,
            actual_quantity=log.actual_quantity,
            expected_quantity=log.expected_quantity,
            discrepancy=log.discrepancy,
            notes=log.notes,
            context_id=log.context_id,
            created_by=log.created_by,
            timestamp=log.timestamp,
        )


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a listing, newest first."""

    items: tuple[T, ...]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.total == 0:
            return 0
        return -(-self.total // self.limit)


@dataclass(frozen=True)
class ReasonBreakdown:
    reason: str
    count: int
    quantity: int
    cost: Decimal


@dataclass(frozen=True)
class ItemWasteTotal:
    item_id: UUID
    name: str
    sku: str
    quantity: int
    cost: Decimal


@dataclass(frozen=True)
class WasteSummary:
    """Waste totals for an event over an optional window."""

    total_quantity: int
    total_cost: Decimal
    log_count: int
    by_reason: tuple[ReasonBreakdown, ...]
    top_items: tuple[ItemWasteTotal, ...]


@dataclass(frozen=True)
class AuditStats:
    """Audit activity for an event as of a given moment."""

    total_audits: int
    audits_last_30_days: int
    items_with_discrepancy: int
    average_abs_discrepancy: Decimal
    recent: tuple[AuditRecord, ...]


@dataclass(frozen=True)
class ConservationReport:
    """
    Item total compared to the sum of its open batches.

    Unbatched items are conserved by definition: the counter is the only
    source of truth.
    """

    item_id: UUID
    stock_mode: str
    item_quantity: int
    open_batch_quantity: int
    open_batch_count: int

    @property
    def drift(self) -> int:
        if self.stock_mode != "batched":
            return 0
        return self.item_quantity - self.open_batch_quantity

    @property
    def is_conserved(self) -> bool:
        return self.drift == 0
