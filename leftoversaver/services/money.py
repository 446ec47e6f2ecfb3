"""
LeftoverSaver — Currency formatting
"""
from decimal import Decimal

from babel.numbers import format_currency


def money(amount_cents: int | None, currency: str = "USD", locale: str = "en-US") -> str:
    """
    Format an integer amount of minor units for display.

    >>> money(0)
    '$0.00'
    >>> money(12345, "EUR", "de-DE")
    '123,45\\xa0€'
    """
    amount = Decimal(amount_cents or 0) / Decimal(100)
    return format_currency(amount, currency, locale=locale.replace("-", "_"))
