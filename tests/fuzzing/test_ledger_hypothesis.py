"""
Hypothesis-based property tests for the batch ledger.

Properties checked:
- Allocation: a FEFO plan either covers the request exactly or is refused;
  no draw exceeds its batch, draws follow FEFO order, and only the last
  draw may leave stock behind.
- Conservation: after any sequence of receive / consume / waste, accepted
  or rejected, a batch-tracked item's total equals the sum of its open
  batches and matches a simple counter model.
"""

from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from inventory_engines.fefo import build_draw_plan, fefo_sort_key
from inventory_kernel.domain.stock import BatchedStock, BatchSnapshot
from inventory_kernel.exceptions import InsufficientStockError
from inventory_kernel.selectors.ledger_selector import LedgerSelector
from inventory_kernel.services.batch_ledger import BatchLedgerService
from inventory_kernel.services.consumption_service import ConsumptionService
from inventory_kernel.services.waste_service import WasteService

T0 = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)

expirations = st.one_of(
    st.none(),
    st.dates(min_value=date(2025, 1, 1), max_value=date(2025, 3, 31)),
)


@st.composite
def batch_snapshots(draw):
    return BatchSnapshot(
        batch_id=uuid4(),
        quantity=draw(st.integers(min_value=1, max_value=50)),
        expiration_date=draw(expirations),
        received_at=T0 + timedelta(minutes=draw(st.integers(min_value=0, max_value=5))),
        created_at=T0 + timedelta(seconds=draw(st.integers(min_value=0, max_value=5))),
    )


ledger_ops = st.lists(
    st.tuples(
        st.sampled_from(["receive", "consume", "waste"]),
        st.integers(min_value=1, max_value=30),
        expirations,
    ),
    min_size=1,
    max_size=15,
)


class TestAllocationProperties:
    """The pure FEFO engine never over- or under-allocates."""

    @given(
        batches=st.lists(batch_snapshots(), min_size=1, max_size=8),
        quantity=st.integers(min_value=1, max_value=400),
    )
    @settings(max_examples=200)
    def test_plan_covers_request_or_refuses(self, batches, quantity):
        total = sum(b.quantity for b in batches)
        stock = BatchedStock(item_id=uuid4(), quantity=total, batches=tuple(batches))

        if quantity > total:
            with pytest.raises(InsufficientStockError):
                build_draw_plan(stock=stock, quantity=quantity)
            return

        plan = build_draw_plan(stock=stock, quantity=quantity)
        by_id = {b.batch_id: b for b in batches}

        assert sum(d.take for d in plan.draws) == quantity
        for d in plan.draws:
            assert 0 < d.take <= by_id[d.batch_id].quantity
            assert d.remaining_after == by_id[d.batch_id].quantity - d.take
        # Every draw except the last empties its batch
        assert all(d.closes_batch for d in plan.draws[:-1])

        keys = [fefo_sort_key(by_id[d.batch_id]) for d in plan.draws]
        assert keys == sorted(keys)
        # Nothing later in FEFO order was touched before an earlier batch
        untouched = [b for b in batches if b.batch_id not in {d.batch_id for d in plan.draws}]
        if untouched and plan.draws:
            last_key = keys[-1]
            assert all(fefo_sort_key(b) >= last_key for b in untouched)


class TestConservationProperties:
    """Random operation sequences keep the item total and batches in step."""

    @given(opening=st.integers(min_value=0, max_value=10), ops=ledger_ops)
    @settings(
        max_examples=50,
        deadline=None,
        suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
    )
    def test_total_matches_open_batches(self, session, deterministic_clock, make_item, opening, ops):
        item = make_item(quantity=opening)
        ledger = BatchLedgerService(session, deterministic_clock)
        consumption = ConsumptionService(session, deterministic_clock)
        waste = WasteService(session, deterministic_clock)
        selector = LedgerSelector(session)
        expected = opening

        for op, quantity, expiration_date in ops:
            deterministic_clock.advance(1)
            if op == "receive":
                ledger.receive(item.id, quantity, expiration_date=expiration_date)
                expected += quantity
            elif quantity > expected:
                with pytest.raises(InsufficientStockError):
                    if op == "consume":
                        consumption.consume(item.id, quantity)
                    else:
                        waste.record_waste(item.id, quantity, "spoilage")
            else:
                if op == "consume":
                    consumption.consume(item.id, quantity)
                else:
                    waste.record_waste(item.id, quantity, "spoilage")
                expected -= quantity

            report = selector.check_conservation(item.id)
            assert report.item_quantity == expected
            assert report.is_conserved
            for batch in ledger.list_open_batches(item.id):
                assert 0 < batch.quantity <= batch.initial_quantity
