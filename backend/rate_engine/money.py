"""
rate_engine/money.py

Currency precision and rounding helpers.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict

DEFAULT_CURRENCY = "INR"

# Minor-unit precision used for guest-facing nightly prices.
# Rupee tariffs are quoted in whole rupees.
CURRENCY_DECIMALS: Dict[str, int] = {
    "INR": 0,
    "JPY": 0,
    "KRW": 0,
    "LKR": 0,
    "NPR": 0,
    "USD": 2,
    "EUR": 2,
    "GBP": 2,
    "AED": 2,
    "SGD": 2,
    "THB": 2,
}

ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """Convert ints, floats and strings to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def currency_exponent(currency: str) -> int:
    return CURRENCY_DECIMALS.get(currency.upper(), 2)


def round_price(amount: Decimal, currency: str) -> Decimal:
    """
    Round to the currency's minor unit using round-half-up.

    Args:
        amount: Unrounded price
        currency: ISO 4217 code

    Returns:
        Rounded Decimal, e.g. 1209.5 INR -> 1210
    """
    exponent = currency_exponent(currency)
    quantum = Decimal(1).scaleb(-exponent)
    return to_decimal(amount).quantize(quantum, rounding=ROUND_HALF_UP)


__all__ = [
    "DEFAULT_CURRENCY",
    "CURRENCY_DECIMALS",
    "ZERO",
    "to_decimal",
    "currency_exponent",
    "round_price",
]
