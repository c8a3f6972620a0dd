"""Integer-cent arithmetic helpers"""

from decimal import Decimal, ROUND_HALF_UP


def round_cents(amount: Decimal) -> int:
    """Round a fractional cent amount to whole cents, half away from zero"""
    return int(Decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def line_total_cents(quantity: Decimal, unit_price_cents: int) -> int:
    return round_cents(Decimal(quantity) * Decimal(unit_price_cents))


def tax_cents(subtotal_cents: int, tax_rate_percent: Decimal) -> int:
    return round_cents(Decimal(subtotal_cents) * Decimal(tax_rate_percent) / Decimal(100))
