"""
Database-level invariant tests.

Raw SQL bypasses the ORM listeners and the services, so these tests prove
the CHECK constraints hold the line on their own.  They run on SQLite and
PostgreSQL alike.
"""

from datetime import date

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from inventory_kernel.services.batch_ledger import BatchLedgerService


@pytest.fixture
def received(session, deterministic_clock, make_item):
    item = make_item()
    batch = BatchLedgerService(session, deterministic_clock).receive(
        item.id, 5, expiration_date=date(2025, 6, 1)
    )
    return item, batch


class TestItemConstraints:
    def test_negative_quantity(self, session, received):
        item, _ = received
        with pytest.raises(IntegrityError):
            session.execute(
                text("UPDATE items SET quantity = -1 WHERE id = :id"), {"id": str(item.id)}
            )


class TestBatchConstraints:
    def test_quantity_above_initial(self, session, received):
        _, batch = received
        with pytest.raises(IntegrityError):
            session.execute(
                text("UPDATE item_batches SET quantity = 6 WHERE id = :id"),
                {"id": str(batch.id)},
            )

    def test_negative_quantity(self, session, received):
        _, batch = received
        with pytest.raises(IntegrityError):
            session.execute(
                text("UPDATE item_batches SET quantity = -1, is_open = false WHERE id = :id"),
                {"id": str(batch.id)},
            )

    def test_empty_batch_cannot_be_open(self, session, received):
        _, batch = received
        with pytest.raises(IntegrityError):
            session.execute(
                text("UPDATE item_batches SET quantity = 0 WHERE id = :id"),
                {"id": str(batch.id)},
            )

    def test_open_flag_follows_quantity(self, session, received):
        _, batch = received
        with pytest.raises(IntegrityError):
            session.execute(
                text("UPDATE item_batches SET is_open = false WHERE id = :id"),
                {"id": str(batch.id)},
            )

    def test_closing_at_zero_accepted(self, session, received):
        _, batch = received
        session.execute(
            text("UPDATE item_batches SET quantity = 0, is_open = false WHERE id = :id"),
            {"id": str(batch.id)},
        )


class TestLogConstraints:
    def test_unknown_waste_reason(self, session, received):
        item, _ = received
        with pytest.raises(IntegrityError):
            session.execute(
                text(
                    "INSERT INTO waste_logs (id, item_id, quantity, reason, timestamp) "
                    "VALUES (:id, :item_id, 1, 'theft', '2024-06-01 09:00:00')"
                ),
                {"id": "00000000-0000-0000-0000-000000000001", "item_id": str(item.id)},
            )

    def test_zero_waste_quantity(self, session, received):
        item, _ = received
        with pytest.raises(IntegrityError):
            session.execute(
                text(
                    "INSERT INTO waste_logs (id, item_id, quantity, reason, timestamp) "
                    "VALUES (:id, :item_id, 0, 'damage', '2024-06-01 09:00:00')"
                ),
                {"id": "00000000-0000-0000-0000-000000000002", "item_id": str(item.id)},
            )

    def test_audit_discrepancy_must_match(self, session, received):
        item, _ = received
        with pytest.raises(IntegrityError):
            session.execute(
                text(
                    "INSERT INTO audit_logs (id, item_id, event_id, actual_quantity, "
                    "expected_quantity, discrepancy, timestamp) "
                    "VALUES (:id, :item_id, :event_id, 7, 10, 3, '2024-06-01 09:00:00')"
                ),
                {
                    "id": "00000000-0000-0000-0000-000000000003",
                    "item_id": str(item.id),
                    "event_id": str(item.event_id),
                },
            )
