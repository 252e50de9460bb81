"""
Module: inventory_kernel.db.types
Responsibility: Money helpers used for unit prices and waste cost impact.
Architecture position: Kernel > DB.  May be imported by models/, services/
    and selectors/.  MUST NOT import from any of those layers.

CRITICAL: No floats for money.  Prices arrive as Decimal (or str) and cost
impact is computed as ``quantity * unit_price`` with Decimal arithmetic.
"""

from decimal import ROUND_HALF_UP, Decimal

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """Round a decimal value to the given number of places (half up)."""
    quantizer = Decimal(10) ** -decimal_places
    return value.quantize(quantizer, rounding=rounding)


def cost_impact(quantity: int, unit_price: Decimal | None) -> Decimal | None:
    """
    Cost of ``quantity`` units at ``unit_price``.

    Returns None when the item has no price.  The result is not rounded so
    it matches ``quantity * unit_price`` exactly at column precision.
    """
    if unit_price is None:
        return None
    return Decimal(quantity) * Decimal(unit_price)
