"""
Module: inventory_kernel.selectors.waste_selector
Responsibility: Read-only waste reporting: filtered, paged waste logs and an
    event-level summary (totals, per-reason breakdown, most wasted items).
Architecture position: Kernel > Selectors.

Cost totals sum the frozen ``cost_impact`` of each log.  Logs recorded
while the item had no price contribute quantity but no cost.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, func, select

from inventory_kernel.domain.dtos import (
    ItemWasteTotal,
    Page,
    ReasonBreakdown,
    WasteRecord,
    WasteSummary,
)
from inventory_kernel.models.item import Item
from inventory_kernel.models.waste_log import WasteLog, WasteReason
from inventory_kernel.selectors.base import DEFAULT_PAGE_SIZE, BaseSelector, clamp_page

TOP_ITEMS_LIMIT = 10


def _decimal(value) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


class WasteSelector(BaseSelector[WasteLog]):
    """Waste log listing and summaries for one event."""

    def _filtered(
        self,
        stmt: Select,
        event_id: UUID,
        item_id: UUID | None = None,
        batch_id: UUID | None = None,
        reason: str | WasteReason | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> Select:
        stmt = stmt.join(Item, Item.id == WasteLog.item_id).where(Item.event_id == event_id)
        if item_id is not None:
            stmt = stmt.where(WasteLog.item_id == item_id)
        if batch_id is not None:
            stmt = stmt.where(WasteLog.batch_id == batch_id)
        if reason is not None:
            stmt = stmt.where(WasteLog.reason == WasteReason(reason).value)
        if start is not None:
            stmt = stmt.where(WasteLog.timestamp >= start)
        if end is not None:
            stmt = stmt.where(WasteLog.timestamp <= end)
        return stmt

    def list_logs(
        self,
        event_id: UUID,
        item_id: UUID | None = None,
        batch_id: UUID | None = None,
        reason: str | WasteReason | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Page[WasteRecord]:
        """Waste logs for an event, newest first, ``limit`` capped at 100."""
        page, limit = clamp_page(page, limit)
        filters = dict(
            event_id=event_id,
            item_id=item_id,
            batch_id=batch_id,
            reason=reason,
            start=start,
            end=end,
        )

        total = self.session.execute(
            self._filtered(select(func.count(WasteLog.id)), **filters)
        ).scalar_one()

        rows = self.session.execute(
            self._filtered(select(WasteLog), **filters)
            .order_by(WasteLog.timestamp.desc(), WasteLog.id)
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars()

        return Page(
            items=tuple(WasteRecord.from_model(r) for r in rows),
            total=total,
            page=page,
            limit=limit,
        )

    def summary(
        self,
        event_id: UUID,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> WasteSummary:
        """Totals, per-reason breakdown and the ten most wasted items."""
        filters = dict(event_id=event_id, start=start, end=end)

        count, quantity, cost = self.session.execute(
            self._filtered(
                select(
                    func.count(WasteLog.id),
                    func.coalesce(func.sum(WasteLog.quantity), 0),
                    func.sum(WasteLog.cost_impact),
                ),
                **filters,
            )
        ).one()

        by_reason = tuple(
            ReasonBreakdown(
                reason=row.reason,
                count=row.count,
                quantity=int(row.quantity),
                cost=_decimal(row.cost),
            )
            for row in self.session.execute(
                self._filtered(
                    select(
                        WasteLog.reason.label("reason"),
                        func.count(WasteLog.id).label("count"),
                        func.sum(WasteLog.quantity).label("quantity"),
                        func.sum(WasteLog.cost_impact).label("cost"),
                    ),
                    **filters,
                )
                .group_by(WasteLog.reason)
                .order_by(func.sum(WasteLog.quantity).desc(), WasteLog.reason)
            )
        )

        top_items = tuple(
            ItemWasteTotal(
                item_id=row.item_id,
                name=row.name,
                sku=row.sku,
                quantity=int(row.quantity),
                cost=_decimal(row.cost),
            )
            for row in self.session.execute(
                self._filtered(
                    select(
                        WasteLog.item_id.label("item_id"),
                        Item.name.label("name"),
                        Item.sku.label("sku"),
                        func.sum(WasteLog.quantity).label("quantity"),
                        func.sum(WasteLog.cost_impact).label("cost"),
                    ),
                    **filters,
                )
                .group_by(WasteLog.item_id, Item.name, Item.sku)
                .order_by(func.sum(WasteLog.quantity).desc(), Item.name)
                .limit(TOP_ITEMS_LIMIT)
            )
        )

        return WasteSummary(
            total_quantity=int(quantity),
            total_cost=_decimal(cost),
            log_count=count,
            by_reason=by_reason,
            top_items=top_items,
        )
