"""
Stock -- Immutable snapshots of an item's stock position.

Responsibility:
    Carries the item's tracking mode and the open batches the allocation
    engine plans against, detached from the ORM.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Produced by services (from locked ORM rows) and consumed by
    inventory_engines.fefo.

Invariants enforced:
    - A BatchSnapshot always has quantity > 0 (only open batches are
      snapshotted).
    - UnbatchedStock and BatchedStock are distinct types, so consumption
      dispatches on the tag rather than on ``len(batches) == 0``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from uuid import UUID


class StockMode(str, Enum):
    """How an item's quantity is tracked."""

    # Plain counter, no batches ever received
    UNBATCHED = "unbatched"
    # quantity == sum(open batch quantity)
    BATCHED = "batched"


@dataclass(frozen=True)
class BatchSnapshot:
    """One open batch as seen at plan time."""

    batch_id: UUID
    quantity: int
    expiration_date: date | None
    received_at: datetime
    created_at: datetime
    lot_number: str | None = None

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValueError(
                f"Open batch {self.batch_id} must have positive quantity, "
                f"got {self.quantity}"
            )


@dataclass(frozen=True)
class UnbatchedStock:
    """Stock of an item that has never received a batch."""

    item_id: UUID
    quantity: int

    @property
    def mode(self) -> StockMode:
        return StockMode.UNBATCHED


@dataclass(frozen=True)
class BatchedStock:
    """Stock of a batch-tracked item with its open batches."""

    item_id: UUID
    quantity: int
    batches: tuple[BatchSnapshot, ...]

    @property
    def mode(self) -> StockMode:
        return StockMode.BATCHED

    @property
    def open_quantity(self) -> int:
        return sum(b.quantity for b in self.batches)


Stock = UnbatchedStock | BatchedStock
