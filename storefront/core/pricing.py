"""
Storefront — Order pricing

All money is Decimal, rounded half-up at the cent.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from storefront.core.config import get_settings

settings = get_settings()

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def round2(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal


def compute_totals(subtotal: Decimal) -> Totals:
    """Tax on the subtotal, flat shipping below the free-shipping threshold."""
    subtotal = round2(subtotal)
    tax = round2(subtotal * settings.TAX_RATE)
    shipping = ZERO if subtotal >= settings.FREE_SHIPPING_THRESHOLD else round2(settings.FLAT_SHIPPING_RATE)
    return Totals(subtotal=subtotal, tax=tax, shipping=shipping, total=subtotal + tax + shipping)
