"""Tests for WasteSelector listing and summaries."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from inventory_kernel.selectors.waste_selector import WasteSelector
from inventory_kernel.services.batch_ledger import BatchLedgerService
from inventory_kernel.services.waste_service import WasteService


@pytest.fixture
def waste(session, deterministic_clock):
    return WasteService(session, deterministic_clock)


@pytest.fixture
def selector(session):
    return WasteSelector(session)


class TestListLogs:
    def test_pagination_newest_first(self, waste, selector, deterministic_clock, event, make_item):
        item = make_item(quantity=30)
        for _ in range(25):
            deterministic_clock.advance(60)
            waste.record_waste(item.id, 1, "overproduction")

        first = selector.list_logs(event.id, limit=10)
        second = selector.list_logs(event.id, page=2, limit=10)
        last = selector.list_logs(event.id, page=3, limit=10)

        assert first.total == 25
        assert first.total_pages == 3
        assert len(first.items) == 10
        assert len(last.items) == 5
        assert first.items[0].timestamp > first.items[-1].timestamp
        assert first.items[-1].timestamp > second.items[0].timestamp
        assert not {r.id for r in first.items} & {r.id for r in second.items}

    def test_limit_clamped(self, selector, event):
        page = selector.list_logs(event.id, page=0, limit=500)
        assert page.page == 1
        assert page.limit == 100
        assert page.total == 0
        assert page.total_pages == 0

    def test_filters(self, waste, selector, session, deterministic_clock, event, make_item):
        ledger = BatchLedgerService(session, deterministic_clock)
        cups = make_item(name="Cups")
        batch = ledger.receive(cups.id, 10, expiration_date=date(2025, 6, 1))
        ice = make_item(name="Ice", quantity=10)

        waste.record_waste(cups.id, 1, "damage", batch_id=batch.id)
        deterministic_clock.advance(3600)
        waste.record_waste(cups.id, 2, "spoilage")
        deterministic_clock.advance(3600)
        waste.record_waste(ice.id, 3, "spoilage")

        assert selector.list_logs(event.id, item_id=cups.id).total == 2
        assert selector.list_logs(event.id, batch_id=batch.id).total == 1
        assert selector.list_logs(event.id, reason="spoilage").total == 2
        start = deterministic_clock.now() - timedelta(minutes=30)
        assert [r.item_id for r in selector.list_logs(event.id, start=start).items] == [ice.id]
        end = deterministic_clock.now() - timedelta(minutes=30)
        assert selector.list_logs(event.id, end=end).total == 2


class TestSummary:
    def test_totals_breakdown_and_top_items(self, waste, selector, event, make_item):
        priced = make_item(name="Wine", quantity=10, unit_price="2.50")
        unpriced = make_item(name="Napkins", quantity=10)

        waste.record_waste(priced.id, 3, "spoilage")
        waste.record_waste(priced.id, 1, "damage")
        waste.record_waste(unpriced.id, 5, "spoilage")

        summary = selector.summary(event.id)

        assert summary.log_count == 3
        assert summary.total_quantity == 9
        assert summary.total_cost == Decimal("10.00")

        by_reason = {r.reason: r for r in summary.by_reason}
        assert by_reason["spoilage"].count == 2
        assert by_reason["spoilage"].quantity == 8
        assert by_reason["spoilage"].cost == Decimal("7.50")
        assert by_reason["damage"].cost == Decimal("2.50")

        assert [(t.name, t.quantity) for t in summary.top_items] == [("Napkins", 5), ("Wine", 4)]
        assert summary.top_items[0].cost == Decimal("0")

    def test_empty_event(self, selector, event):
        summary = selector.summary(event.id)
        assert summary.log_count == 0
        assert summary.total_quantity == 0
        assert summary.total_cost == Decimal("0")
        assert summary.by_reason == ()
        assert summary.top_items == ()
