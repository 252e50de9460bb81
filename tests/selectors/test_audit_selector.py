"""Tests for AuditSelector listing and 30-day statistics."""

from datetime import timedelta
from decimal import Decimal

import pytest

from inventory_kernel.selectors.audit_selector import AuditSelector
from inventory_kernel.services.audit_service import AuditService


@pytest.fixture
def audits(session, deterministic_clock):
    return AuditService(session, deterministic_clock)


@pytest.fixture
def selector(session):
    return AuditSelector(session)


class TestStats:
    def test_window_statistics(self, audits, selector, deterministic_clock, event, make_item):
        now = deterministic_clock.now()
        chairs = make_item(name="Chairs", quantity=10)
        tables = make_item(name="Tables", quantity=4)

        deterministic_clock.set_time(now - timedelta(days=40))
        audits.record_audit(chairs.id, 5, 10)
        deterministic_clock.set_time(now - timedelta(days=10))
        audits.record_audit(chairs.id, 8, 10)
        deterministic_clock.set_time(now - timedelta(days=1))
        audits.record_audit(tables.id, 7, 4)
        deterministic_clock.set_time(now)
        latest = audits.record_audit(chairs.id, 10, 10)

        stats = selector.stats(event.id, as_of=now)

        assert stats.total_audits == 4
        assert stats.audits_last_30_days == 3
        assert stats.items_with_discrepancy == 2
        # (2 + 3 + 0) / 3
        assert stats.average_abs_discrepancy == Decimal("1.67")
        assert stats.recent[0].id == latest.id
        assert len(stats.recent) == 4

    def test_no_audits(self, selector, event, deterministic_clock):
        stats = selector.stats(event.id, as_of=deterministic_clock.now())
        assert stats.total_audits == 0
        assert stats.average_abs_discrepancy == Decimal("0.00")
        assert stats.recent == ()

    def test_recent_capped_at_five(self, audits, selector, deterministic_clock, event, make_item):
        item = make_item(quantity=1)
        for _ in range(7):
            deterministic_clock.advance(60)
            audits.record_audit(item.id, 1, 1)
        stats = selector.stats(event.id, as_of=deterministic_clock.now())
        assert len(stats.recent) == 5
        assert stats.items_with_discrepancy == 0


class TestListLogs:
    def test_filter_by_context(self, audits, selector, event, make_item):
        item = make_item(quantity=3)
        audits.record_audit(item.id, 3, 3, context_id="walk-1")
        audits.record_audit(item.id, 2, 3, context_id="walk-2")

        page = selector.list_logs(event.id, context_id="walk-2")

        assert page.total == 1
        assert page.items[0].discrepancy == -1

    def test_filter_by_item(self, audits, selector, event, make_item):
        a = make_item(quantity=1)
        b = make_item(quantity=1)
        audits.record_audit(a.id, 1, 1)
        audits.record_audit(b.id, 1, 1)
        assert selector.list_logs(event.id, item_id=a.id).total == 1
        assert selector.list_logs(event.id).total == 2
