"""Tests for BatchSelector: history, lookup and expiry queries."""

from datetime import date
from uuid import uuid4

import pytest

from inventory_kernel.exceptions import BatchNotFoundError, InvalidArgumentError
from inventory_kernel.selectors.batch_selector import BatchSelector
from inventory_kernel.services.batch_ledger import BatchLedgerService
from inventory_kernel.services.consumption_service import ConsumptionService
from inventory_kernel.services.event_service import EventService


@pytest.fixture
def ledger(session, deterministic_clock):
    return BatchLedgerService(session, deterministic_clock)


@pytest.fixture
def selector(session):
    return BatchSelector(session)


class TestListBatches:
    def test_open_only_in_fefo_order(self, selector, ledger, session, deterministic_clock, make_item):
        item = make_item()
        late = ledger.receive(item.id, 2, lot_number="LATE", expiration_date=date(2025, 9, 1))
        soon = ledger.receive(item.id, 2, lot_number="SOON", expiration_date=date(2025, 6, 1))
        undated = ledger.receive(item.id, 2, lot_number="NONE")

        assert [b.id for b in selector.list_batches(item.id)] == [soon.id, late.id, undated.id]

        ConsumptionService(session, deterministic_clock).consume(item.id, 2)
        assert [b.id for b in selector.list_batches(item.id)] == [late.id, undated.id]

    def test_include_closed_in_receipt_order(
        self, selector, ledger, session, deterministic_clock, make_item
    ):
        item = make_item()
        first = ledger.receive(item.id, 1, expiration_date=date(2025, 9, 1))
        deterministic_clock.advance(60)
        second = ledger.receive(item.id, 1, expiration_date=date(2025, 6, 1))
        ConsumptionService(session, deterministic_clock).consume(item.id, 1)

        history = selector.list_batches(item.id, include_closed=True)

        assert [b.id for b in history] == [first.id, second.id]
        assert [b.is_open for b in history] == [True, False]

    def test_get_batch(self, selector, ledger, make_item):
        item = make_item()
        batch = ledger.receive(item.id, 3, lot_number="L-7")
        record = selector.get_batch(batch.id)
        assert record.lot_number == "L-7"
        assert record.initial_quantity == 3

    def test_get_unknown_batch(self, selector):
        with pytest.raises(BatchNotFoundError):
            selector.get_batch(uuid4())

    def test_open_order_matches_ledger(self, selector, ledger, deterministic_clock, make_item):
        item = make_item()
        ledger.receive(item.id, 1, expiration_date=date(2025, 6, 1))
        deterministic_clock.advance(60)
        ledger.receive(item.id, 1)
        ledger.receive(item.id, 1, expiration_date=date(2025, 6, 1))
        deterministic_clock.advance(60)
        ledger.receive(item.id, 1, expiration_date=date(2025, 5, 1))

        from_selector = [b.id for b in selector.list_batches(item.id)]
        from_ledger = [b.id for b in ledger.list_open_batches(item.id)]

        assert len(from_selector) == 4
        assert from_selector == from_ledger


class TestExpiringBatches:
    def test_window(self, selector, ledger, session, deterministic_clock, event, make_item):
        item = make_item()
        expired = ledger.receive(item.id, 1, lot_number="EXPIRED", expiration_date=date(2025, 5, 1))
        edge = ledger.receive(item.id, 1, lot_number="EDGE", expiration_date=date(2025, 6, 1))
        ledger.receive(item.id, 1, lot_number="LATER", expiration_date=date(2025, 7, 1))
        ledger.receive(item.id, 1, lot_number="UNDATED")

        other_event = EventService(session, deterministic_clock).create_event("Other")
        other_item = make_item(event_id=other_event.id)
        ledger.receive(other_item.id, 1, expiration_date=date(2025, 5, 2))

        result = selector.expiring_batches(event.id, within_days=7, as_of=date(2025, 5, 25))

        assert [b.id for b in result] == [expired.id, edge.id]

    def test_closed_batches_excluded(self, selector, ledger, session, deterministic_clock, event, make_item):
        item = make_item()
        ledger.receive(item.id, 1, expiration_date=date(2025, 5, 1))
        ConsumptionService(session, deterministic_clock).consume(item.id, 1)

        assert selector.expiring_batches(event.id, 30, as_of=date(2025, 5, 1)) == []

    def test_negative_window(self, selector, event):
        with pytest.raises(InvalidArgumentError):
            selector.expiring_batches(event.id, -1, as_of=date(2025, 5, 1))
