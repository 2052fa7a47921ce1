"""Decimal helpers shared by pricing code."""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def quantize_money(amount) -> Decimal:
    """Round to cents, half up."""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount) -> int:
    """Minor units for providers that take integer amounts."""
    return int(quantize_money(amount) * 100)


QUANTITY_STEP = Decimal("0.001")


def fits_quantity_scale(quantity: Decimal) -> bool:
    """True when ``quantity`` has at most three decimal places, the scale quantities are stored at."""
    return quantity == quantity.quantize(QUANTITY_STEP)
