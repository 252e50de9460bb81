"""Tests for LedgerSelector conservation checks."""

from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy import text

from inventory_kernel.exceptions import ItemNotFoundError
from inventory_kernel.selectors.ledger_selector import LedgerSelector
from inventory_kernel.services.batch_ledger import BatchLedgerService
from inventory_kernel.services.consumption_service import ConsumptionService
from inventory_kernel.services.waste_service import WasteService


@pytest.fixture
def ledger(session, deterministic_clock):
    return BatchLedgerService(session, deterministic_clock)


@pytest.fixture
def selector(session):
    return LedgerSelector(session)


class TestConservation:
    def test_conserved_after_ledger_operations(
        self, selector, ledger, session, deterministic_clock, make_item
    ):
        item = make_item(quantity=4)
        ledger.receive(item.id, 6, expiration_date=date(2025, 6, 1))
        ledger.receive(item.id, 3, expiration_date=date(2025, 7, 1))
        ConsumptionService(session, deterministic_clock).consume(item.id, 7)
        WasteService(session, deterministic_clock).record_waste(item.id, 2, "spoilage")

        report = selector.check_conservation(item.id)

        assert report.stock_mode == "batched"
        assert report.item_quantity == 4
        assert report.open_batch_quantity == 4
        assert report.is_conserved

    def test_unbatched_always_conserved(self, selector, make_item):
        item = make_item(quantity=9)
        report = selector.check_conservation(item.id)
        assert report.open_batch_count == 0
        assert report.drift == 0
        assert report.is_conserved

    def test_unknown_item(self, selector):
        with pytest.raises(ItemNotFoundError):
            selector.check_conservation(uuid4())


class TestFindDrift:
    def test_reports_only_drifted_items(self, selector, ledger, session, event, make_item):
        good = make_item(name="Good")
        bad = make_item(name="Bad")
        make_item(name="Counter", quantity=3)
        ledger.receive(good.id, 5)
        ledger.receive(bad.id, 5)

        session.execute(
            text("UPDATE items SET quantity = 7 WHERE id = :id"), {"id": str(bad.id)}
        )

        drifted = selector.find_drift(event.id)

        assert [r.item_id for r in drifted] == [bad.id]
        assert drifted[0].drift == 2

    def test_no_drift(self, selector, event):
        assert selector.find_drift(event.id) == []
