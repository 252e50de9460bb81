"""
ItemService -- item registration and pricing.

Responsibility:
    Registers items under an event with an opening counter, and maintains
    the unit price that waste cost impact is computed from.

Architecture position:
    Kernel > Services -- imperative shell, flush only.

Invariants enforced:
    - A newly registered item is UNBATCHED; its quantity is a plain
      counter until the first receipt.
    - Unit price is either None or a non-negative Decimal.  Zero and blank
      mean "no price".
    - Changing the price never rewrites existing waste logs.

Failure modes:
    - EventNotFoundError if the owning event does not exist.
    - InvalidQuantityError for a negative opening quantity.
    - InvalidUnitPriceError for a negative or non-numeric price.
"""

from decimal import Decimal, InvalidOperation
from uuid import UUID

from inventory_kernel.domain.stock import StockMode
from inventory_kernel.exceptions import (
    InvalidArgumentError,
    InvalidQuantityError,
    InvalidUnitPriceError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.item import Item
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.batch_ledger import BatchLedgerService
from inventory_kernel.services.event_service import EventService

logger = get_logger("services.item")


def normalize_unit_price(value) -> Decimal | None:
    """
    Parse a unit price.

    ``None``, ``""`` and zero mean "no price" and return None.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    if isinstance(value, bool):
        raise InvalidUnitPriceError(value)
    try:
        price = Decimal(str(value))
    except InvalidOperation:
        raise InvalidUnitPriceError(value) from None
    if not price.is_finite() or price < 0:
        raise InvalidUnitPriceError(value)
    if price == 0:
        return None
    return price


class ItemService(BaseService[Item]):
    """Registers items and manages their prices."""

    def register_item(
        self,
        event_id: UUID,
        name: str,
        sku: str,
        quantity: int = 0,
        unit_of_measure: str = "each",
        unit_price=None,
    ) -> Item:
        """
        Register an item under an event.

        Args:
            event_id: Owning event.
            name: Display name.
            sku: Stock keeping unit, not unique.
            quantity: Opening counter (>= 0).
            unit_of_measure: Free-form unit label.
            unit_price: Optional price per unit.

        Returns:
            The flushed Item, UNBATCHED.
        """
        EventService(self.session, self.clock).get_event(event_id)

        name = (name or "").strip()
        sku = (sku or "").strip()
        if not name:
            raise InvalidArgumentError("Item name is required")
        if not sku:
            raise InvalidArgumentError("Item SKU is required")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise InvalidQuantityError("quantity", quantity, "must be a non-negative integer")

        now = self.clock.now()
        item = Item(
            event_id=event_id,
            name=name,
            sku=sku,
            quantity=quantity,
            unit_of_measure=(unit_of_measure or "each").strip(),
            unit_price=normalize_unit_price(unit_price),
            stock_mode=StockMode.UNBATCHED.value,
            created_at=now,
            updated_at=now,
        )
        self.session.add(item)
        self.session.flush()

        logger.info(
            "item_registered",
            extra={
                "item_id": str(item.id),
                "event_id": str(event_id),
                "sku": sku,
                "quantity": quantity,
            },
        )
        return item

    def update_unit_price(
        self,
        item_id: UUID,
        unit_price,
        event_id: UUID | None = None,
    ) -> Item:
        """Set the price used by future waste cost impact."""
        price = normalize_unit_price(unit_price)
        item = BatchLedgerService(self.session, self.clock).lock_item(item_id, event_id)
        previous = item.unit_price
        item.unit_price = price
        item.updated_at = self.clock.now()
        self.session.flush()

        logger.info(
            "unit_price_updated",
            extra={
                "item_id": str(item.id),
                "previous": previous,
                "unit_price": price,
            },
        )
        return item
