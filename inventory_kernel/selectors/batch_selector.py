"""
Module: inventory_kernel.selectors.batch_selector
Responsibility: Read-only batch queries: batch history per item, single
    batch lookup, and open batches nearing expiration across an event.
Architecture position: Kernel > Selectors.

Closed batches stay in the table as history; ``list_batches`` can include
them, every other query sees open batches only.
"""

from datetime import date, timedelta
from uuid import UUID

from sqlalchemy import select

from inventory_kernel.domain.dtos import BatchRecord
from inventory_kernel.exceptions import BatchNotFoundError, InvalidArgumentError
from inventory_kernel.models.batch import ItemBatch, fefo_order_by
from inventory_kernel.models.item import Item
from inventory_kernel.selectors.base import BaseSelector


class BatchSelector(BaseSelector[ItemBatch]):
    """Batch history and expiry queries."""

    def list_batches(self, item_id: UUID, include_closed: bool = False) -> list[BatchRecord]:
        """
        Batches of an item.

        Open batches come back in FEFO order.  With ``include_closed`` the
        full history is returned in receipt order.
        """
        stmt = select(ItemBatch).where(ItemBatch.item_id == item_id)
        if include_closed:
            stmt = stmt.order_by(ItemBatch.received_at, ItemBatch.created_at, ItemBatch.id)
        else:
            stmt = stmt.where(ItemBatch.is_open.is_(True)).order_by(*fefo_order_by())
        return [BatchRecord.from_model(b) for b in self.session.execute(stmt).scalars()]

    def get_batch(self, batch_id: UUID) -> BatchRecord:
        batch = self.session.get(ItemBatch, batch_id)
        if batch is None:
            raise BatchNotFoundError(str(batch_id))
        return BatchRecord.from_model(batch)

    def expiring_batches(
        self,
        event_id: UUID,
        within_days: int,
        as_of: date,
    ) -> list[BatchRecord]:
        """
        Open batches in the event expiring on or before ``as_of + within_days``.

        Already-expired open batches are included.  Undated batches never
        expire and are excluded.
        """
        if within_days < 0:
            raise InvalidArgumentError("within_days cannot be negative")
        threshold = as_of + timedelta(days=within_days)
        stmt = (
            select(ItemBatch)
            .join(Item, Item.id == ItemBatch.item_id)
            .where(
                Item.event_id == event_id,
                ItemBatch.is_open.is_(True),
                ItemBatch.expiration_date.is_not(None),
                ItemBatch.expiration_date <= threshold,
            )
            .order_by(ItemBatch.expiration_date, ItemBatch.received_at, ItemBatch.id)
        )
        return [BatchRecord.from_model(b) for b in self.session.execute(stmt).scalars()]
