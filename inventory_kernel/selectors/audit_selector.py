"""
Module: inventory_kernel.selectors.audit_selector
Responsibility: Read-only audit reporting: filtered, paged audit logs and
    event-level statistics over a trailing 30-day window.
Architecture position: Kernel > Selectors.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, func, select

from inventory_kernel.db.types import round_money
from inventory_kernel.domain.dtos import AuditRecord, AuditStats, Page
from inventory_kernel.models.audit_log import AuditLog
from inventory_kernel.selectors.base import DEFAULT_PAGE_SIZE, BaseSelector, clamp_page

STATS_WINDOW = timedelta(days=30)
RECENT_AUDITS_LIMIT = 5


class AuditSelector(BaseSelector[AuditLog]):
    """Audit log listing and statistics for one event."""

    def _filtered(
        self,
        stmt: Select,
        event_id: UUID,
        item_id: UUID | None = None,
        context_id: str | None = None,
    ) -> Select:
        stmt = stmt.where(AuditLog.event_id == event_id)
        if item_id is not None:
            stmt = stmt.where(AuditLog.item_id == item_id)
        if context_id is not None:
            stmt = stmt.where(AuditLog.context_id == context_id)
        return stmt

    def list_logs(
        self,
        event_id: UUID,
        item_id: UUID | None = None,
        context_id: str | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Page[AuditRecord]:
        page, limit = clamp_page(page, limit)

        total = self.session.execute(
            self._filtered(select(func.count(AuditLog.id)), event_id, item_id, context_id)
        ).scalar_one()
        rows = self.session.execute(
            self._filtered(select(AuditLog), event_id, item_id, context_id)
            .order_by(AuditLog.timestamp.desc(), AuditLog.id)
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars()

        return Page(
            items=tuple(AuditRecord.from_model(r) for r in rows),
            total=total,
            page=page,
            limit=limit,
        )

    def stats(self, event_id: UUID, as_of: datetime) -> AuditStats:
        """
        Audit activity for an event.

        The window is the 30 days ending at ``as_of``.  Items with a
        discrepancy are counted once however many times they were off.
        The average absolute discrepancy covers audits in the window,
        rounded to two places.
        """
        since = as_of - STATS_WINDOW

        total = self.session.execute(
            select(func.count(AuditLog.id)).where(AuditLog.event_id == event_id)
        ).scalar_one()

        recent_discrepancies = list(
            self.session.execute(
                select(AuditLog.discrepancy).where(
                    AuditLog.event_id == event_id,
                    AuditLog.timestamp >= since,
                )
            ).scalars()
        )

        items_off = self.session.execute(
            select(func.count(func.distinct(AuditLog.item_id))).where(
                AuditLog.event_id == event_id,
                AuditLog.timestamp >= since,
                AuditLog.discrepancy != 0,
            )
        ).scalar_one()

        if recent_discrepancies:
            average = round_money(
                Decimal(sum(abs(d) for d in recent_discrepancies))
                / Decimal(len(recent_discrepancies))
            )
        else:
            average = Decimal("0.00")

        recent = self.session.execute(
            select(AuditLog)
            .where(AuditLog.event_id == event_id)
            .order_by(AuditLog.timestamp.desc(), AuditLog.id)
            .limit(RECENT_AUDITS_LIMIT)
        ).scalars()

        return AuditStats(
            total_audits=total,
            audits_last_30_days=len(recent_discrepancies),
            items_with_discrepancy=items_off,
            average_abs_discrepancy=average,
            recent=tuple(AuditRecord.from_model(r) for r in recent),
        )
