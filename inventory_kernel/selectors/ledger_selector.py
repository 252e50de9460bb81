"""
Module: inventory_kernel.selectors.ledger_selector
Responsibility: Read-only conservation checks.  Compares each batch-tracked
    item's denormalized total with the sum of its open batches.
Architecture position: Kernel > Selectors.

Invariants verified:
    - Conservation: item.quantity == sum(open batch quantity) for every
      BATCHED item.  Mutating services maintain it; this selector detects
      drift caused by anything that bypassed them (manual SQL, restores).

Failure modes:
    - ItemNotFoundError from check_conservation for an unknown item.
"""

from uuid import UUID

from sqlalchemy import and_, func, select

from inventory_kernel.domain.dtos import ConservationReport
from inventory_kernel.domain.stock import StockMode
from inventory_kernel.exceptions import ItemNotFoundError
from inventory_kernel.models.batch import ItemBatch
from inventory_kernel.models.item import Item
from inventory_kernel.selectors.base import BaseSelector


class LedgerSelector(BaseSelector[Item]):
    """Conservation reports per item and per event."""

    def _reports(self, *criteria) -> list[ConservationReport]:
        open_sum = func.coalesce(func.sum(ItemBatch.quantity), 0).label("open_quantity")
        open_count = func.count(ItemBatch.id).label("open_count")
        stmt = (
            select(Item.id, Item.stock_mode, Item.quantity, open_sum, open_count)
            .outerjoin(
                ItemBatch,
                and_(ItemBatch.item_id == Item.id, ItemBatch.is_open.is_(True)),
            )
            .where(*criteria)
            .group_by(Item.id, Item.stock_mode, Item.quantity)
            .order_by(Item.id)
        )
        return [
            ConservationReport(
                item_id=row.id,
                stock_mode=row.stock_mode,
                item_quantity=row.quantity,
                open_batch_quantity=int(row.open_quantity),
                open_batch_count=row.open_count,
            )
            for row in self.session.execute(stmt)
        ]

    def check_conservation(self, item_id: UUID) -> ConservationReport:
        reports = self._reports(Item.id == item_id)
        if not reports:
            raise ItemNotFoundError(str(item_id))
        return reports[0]

    def find_drift(self, event_id: UUID) -> list[ConservationReport]:
        """Batch-tracked items in the event whose total disagrees with their batches."""
        return [
            report
            for report in self._reports(
                Item.event_id == event_id,
                Item.stock_mode == StockMode.BATCHED.value,
            )
            if not report.is_conserved
        ]
