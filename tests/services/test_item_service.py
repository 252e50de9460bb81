"""Tests for event and item registration and unit price handling."""

from decimal import Decimal
from uuid import uuid4

import pytest

from inventory_kernel.domain.stock import StockMode
from inventory_kernel.exceptions import (
    EventNotFoundError,
    InvalidArgumentError,
    InvalidQuantityError,
    InvalidUnitPriceError,
)
from inventory_kernel.services.event_service import EventService
from inventory_kernel.services.item_service import ItemService, normalize_unit_price


class TestNormalizeUnitPrice:
    @pytest.mark.parametrize("value", [None, "", "   ", 0, "0", Decimal("0.00")])
    def test_no_price(self, value):
        assert normalize_unit_price(value) is None

    @pytest.mark.parametrize(
        "value, expected",
        [("2.50", Decimal("2.50")), (3, Decimal("3")), (Decimal("0.125"), Decimal("0.125"))],
    )
    def test_valid(self, value, expected):
        assert normalize_unit_price(value) == expected

    @pytest.mark.parametrize("value", ["-1", -0.5, "abc", "NaN", "Infinity", True])
    def test_invalid(self, value):
        with pytest.raises(InvalidUnitPriceError):
            normalize_unit_price(value)


class TestEventService:
    def test_create_and_get(self, session, deterministic_clock):
        service = EventService(session, deterministic_clock)
        event = service.create_event("  Winter Market ")
        assert event.name == "Winter Market"
        assert service.get_event(event.id) is event

    def test_blank_name(self, session, deterministic_clock):
        with pytest.raises(InvalidArgumentError):
            EventService(session, deterministic_clock).create_event("  ")

    def test_unknown_event(self, session, deterministic_clock):
        with pytest.raises(EventNotFoundError):
            EventService(session, deterministic_clock).get_event(uuid4())

    def test_create_logs_event_created(self, session, deterministic_clock, captured_logs):
        event = EventService(session, deterministic_clock).create_event("Harvest Fair")

        created = [r for r in captured_logs() if r["message"] == "event_created"]
        assert len(created) == 1
        assert created[0]["event_id"] == str(event.id)
        assert created[0]["event_name"] == "Harvest Fair"


class TestRegisterItem:
    def test_new_item_is_unbatched(self, make_item):
        item = make_item(quantity=5, unit_price="1.20")
        assert item.mode is StockMode.UNBATCHED
        assert item.quantity == 5
        assert item.unit_price == Decimal("1.20")
        assert item.version == 1

    def test_unknown_event(self, session, deterministic_clock):
        with pytest.raises(EventNotFoundError):
            ItemService(session, deterministic_clock).register_item(uuid4(), "Cola", "C-1")

    @pytest.mark.parametrize("name, sku", [("", "C-1"), ("Cola", " ")])
    def test_name_and_sku_required(self, session, deterministic_clock, event, name, sku):
        with pytest.raises(InvalidArgumentError):
            ItemService(session, deterministic_clock).register_item(event.id, name, sku)

    def test_negative_opening_quantity(self, make_item):
        with pytest.raises(InvalidQuantityError):
            make_item(quantity=-1)

    def test_sku_not_unique(self, make_item):
        a = make_item(sku="DUP")
        b = make_item(sku="DUP")
        assert a.id != b.id


class TestUpdateUnitPrice:
    def test_updates_price(self, session, deterministic_clock, make_item):
        item = make_item(unit_price="1.00")
        ItemService(session, deterministic_clock).update_unit_price(item.id, "1.75")
        assert item.unit_price == Decimal("1.75")

    def test_clears_price(self, session, deterministic_clock, make_item):
        item = make_item(unit_price="1.00")
        ItemService(session, deterministic_clock).update_unit_price(item.id, None)
        assert item.unit_price is None

    def test_rejects_negative(self, session, deterministic_clock, make_item):
        item = make_item(unit_price="1.00")
        with pytest.raises(InvalidUnitPriceError):
            ItemService(session, deterministic_clock).update_unit_price(item.id, "-2")
        assert item.unit_price == Decimal("1.00")
