"""
BatchLedgerService -- receipts, row locking and plan application.

Responsibility:
    Owns every write to item batches and to the item total.  Receives new
    batches, takes the row locks a mutation needs, snapshots stock for the
    FEFO engine, and applies a validated plan.

Architecture position:
    Kernel > Services -- imperative shell, flush only.
    Consumption and waste services call into this service; they never
    touch batch rows directly.

Invariants enforced:
    - Conservation: for a BATCHED item, item.quantity == sum(open batch
      quantity) after every flush this service performs.
    - Lock order: the item row first, then its open batches in FEFO order.
      Every mutating path goes through lock_item before lock_open_batches,
      so two writers on one item queue on the item row.
    - A plan is applied only after it has been fully validated; a failed
      validation leaves no writes behind.
    - Opening balance: the first receipt on an UNBATCHED item with a
      non-zero counter converts that counter into an OPENING-BALANCE batch.

Failure modes:
    - ItemNotFoundError, EventItemMismatchError on lookup.
    - InvalidQuantityError for a non-positive receipt.
    - LockTimeoutError (via the unit of work) when a row lock is not granted
      within the configured timeout.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import select

from inventory_engines.fefo import DrawPlan
from inventory_kernel.domain.dtos import ConsumptionLine
from inventory_kernel.domain.stock import (
    BatchedStock,
    BatchSnapshot,
    Stock,
    StockMode,
    UnbatchedStock,
)
from inventory_kernel.exceptions import (
    EventItemMismatchError,
    InvalidQuantityError,
    ItemNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.batch import ItemBatch, fefo_order_by
from inventory_kernel.models.item import Item
from inventory_kernel.services.base import BaseService

logger = get_logger("services.batch_ledger")

OPENING_BALANCE_LOT = "OPENING-BALANCE"


def snapshot_batch(batch: ItemBatch) -> BatchSnapshot:
    return BatchSnapshot(
        batch_id=batch.id,
        quantity=batch.quantity,
        expiration_date=batch.expiration_date,
        received_at=batch.received_at,
        created_at=batch.created_at,
        lot_number=batch.lot_number,
    )


def _require_positive_int(field: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidQuantityError(field, value, "must be a positive integer")


class BatchLedgerService(BaseService[ItemBatch]):
    """
    Write side of the batch ledger.

    Contract:
        All methods run inside the caller's transaction and flush only.
    """

    # -- lookup and locking ------------------------------------------------

    def _check_event(self, item: Item, event_id: UUID | None) -> None:
        if event_id is not None and item.event_id != event_id:
            logger.warning(
                "event_item_mismatch",
                extra={
                    "item_id": str(item.id),
                    "event_id": str(event_id),
                    "actual_event_id": str(item.event_id),
                },
            )
            raise EventItemMismatchError(str(item.id), str(event_id), str(item.event_id))

    def get_item(self, item_id: UUID, event_id: UUID | None = None) -> Item:
        """Load an item without locking it."""
        item = self.session.get(Item, item_id)
        if item is None:
            raise ItemNotFoundError(str(item_id))
        self._check_event(item, event_id)
        return item

    def lock_item(self, item_id: UUID, event_id: UUID | None = None) -> Item:
        """
        Load and lock the item row (SELECT ... FOR UPDATE).

        ``populate_existing`` refreshes any copy already in the identity map
        so the caller plans against the committed row it now holds.
        """
        item = self.session.execute(
            select(Item)
            .where(Item.id == item_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if item is None:
            raise ItemNotFoundError(str(item_id))
        self._check_event(item, event_id)
        return item

    def lock_open_batches(self, item_id: UUID) -> list[ItemBatch]:
        """Lock the item's open batches in FEFO order.  Call after lock_item."""
        return list(
            self.session.execute(
                select(ItemBatch)
                .where(ItemBatch.item_id == item_id, ItemBatch.is_open.is_(True))
                .order_by(*fefo_order_by())
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalars()
        )

    def lock_batch(self, batch_id: UUID) -> ItemBatch | None:
        return self.session.execute(
            select(ItemBatch)
            .where(ItemBatch.id == batch_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def list_open_batches(self, item_id: UUID, event_id: UUID | None = None) -> list[ItemBatch]:
        """
        Open batches of an item in the order every consuming operation uses:
        expiration ascending (undated last), received_at, created_at.
        """
        self.get_item(item_id, event_id)
        return list(
            self.session.execute(
                select(ItemBatch)
                .where(ItemBatch.item_id == item_id, ItemBatch.is_open.is_(True))
                .order_by(*fefo_order_by())
            ).scalars()
        )

    def stock_of(self, item: Item, batches: Sequence[ItemBatch] = ()) -> Stock:
        """Snapshot an item (and its locked open batches) for the FEFO engine."""
        if item.mode is StockMode.UNBATCHED:
            return UnbatchedStock(item_id=item.id, quantity=item.quantity)
        return BatchedStock(
            item_id=item.id,
            quantity=item.quantity,
            batches=tuple(snapshot_batch(b) for b in batches),
        )

    # -- receipts ----------------------------------------------------------

    def receive(
        self,
        item_id: UUID,
        quantity: int,
        lot_number: str | None = None,
        expiration_date: date | None = None,
        received_at: datetime | None = None,
        manufactured_at: datetime | None = None,
        notes: str | None = None,
        event_id: UUID | None = None,
    ) -> ItemBatch:
        """
        Receive a new batch and add it to the item total.

        Preconditions:
            - quantity is a positive integer.

        Postconditions:
            - A new open batch with quantity == initial_quantity exists.
            - item.quantity has grown by ``quantity``.
            - The item is BATCHED.

        Raises:
            InvalidQuantityError: quantity <= 0.
            ItemNotFoundError: item does not exist.
            EventItemMismatchError: item belongs to another event.
        """
        _require_positive_int("quantity", quantity)

        item = self.lock_item(item_id, event_id)
        now = self.clock.now()

        logger.info(
            "receive_started",
            extra={
                "item_id": str(item.id),
                "quantity": quantity,
                "lot_number": lot_number,
                "expiration_date": expiration_date,
            },
        )

        if item.mode is StockMode.UNBATCHED:
            self._start_batch_tracking(item, now)

        batch = ItemBatch(
            item_id=item.id,
            lot_number=lot_number,
            quantity=quantity,
            initial_quantity=quantity,
            expiration_date=expiration_date,
            received_at=received_at or now,
            manufactured_at=manufactured_at,
            is_open=True,
            notes=notes,
            created_at=now,
        )
        self.session.add(batch)
        item.quantity += quantity
        item.updated_at = now
        self.session.flush()

        logger.info(
            "receive_completed",
            extra={
                "item_id": str(item.id),
                "batch_id": str(batch.id),
                "quantity": quantity,
                "item_quantity": item.quantity,
            },
        )
        return batch

    def _start_batch_tracking(self, item: Item, now: datetime) -> None:
        """Switch an item to BATCHED, carrying any counter into an opening batch."""
        if item.quantity > 0:
            opening = ItemBatch(
                item_id=item.id,
                lot_number=OPENING_BALANCE_LOT,
                quantity=item.quantity,
                initial_quantity=item.quantity,
                expiration_date=None,
                received_at=item.created_at,
                is_open=True,
                notes="Converted from the unbatched counter on first receipt",
                created_at=now,
            )
            self.session.add(opening)
            logger.info(
                "opening_balance_batch_created",
                extra={"item_id": str(item.id), "quantity": item.quantity},
            )
        item.stock_mode = StockMode.BATCHED.value

    # -- plan application --------------------------------------------------

    def apply_plan(
        self,
        item: Item,
        plan: DrawPlan,
        batches: Sequence[ItemBatch] = (),
    ) -> tuple[ConsumptionLine, ...]:
        """
        Write a validated plan: shrink each planned batch, close the ones
        that reach zero, and take the requested amount off the item total.

        ``batches`` must be the locked rows the plan was built from.
        """
        by_id = {b.id: b for b in batches}
        lines: list[ConsumptionLine] = []

        for draw in plan.draws:
            batch = by_id[draw.batch_id]
            batch.quantity -= draw.take
            batch.is_open = batch.quantity > 0
            lines.append(
                ConsumptionLine(
                    batch_id=batch.id,
                    consumed=draw.take,
                    remaining_quantity=batch.quantity,
                    is_open=batch.is_open,
                    expiration_date=batch.expiration_date,
                )
            )
            if not batch.is_open:
                logger.info(
                    "batch_closed",
                    extra={"item_id": str(item.id), "batch_id": str(batch.id)},
                )

        item.quantity -= plan.requested
        item.updated_at = self.clock.now()
        self.session.flush()
        return tuple(lines)
