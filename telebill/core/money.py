"""Helpers for amounts held in integer minor currency units."""

from decimal import ROUND_HALF_UP, Decimal

CURRENCY_SYMBOLS = {"USD": "$", "INR": "₹", "EUR": "€"}


def round_minor(value: Decimal | int | float | str) -> int:
    """Round a fractional minor-unit amount to a whole unit, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_amount(minor_units: int, currency: str = "USD") -> str:
    """Format minor units for display, e.g. 1234 -> ``$12.34``."""
    major = (Decimal(minor_units) / 100).quantize(Decimal("0.01"))
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    if symbol is None:
        return f"{major:,.2f} {currency.upper()}"
    return f"{symbol}{major:,.2f}"
