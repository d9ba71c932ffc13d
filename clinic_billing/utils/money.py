"""
Stripe amount conversion.

Stripe reports amounts as integers in the currency's smallest unit (cents for
USD). Payments are stored in major units, so the conversion happens exactly
once, when the webhook is ingested, and always through Decimal.
"""
from decimal import Decimal
from typing import Optional

DEFAULT_CURRENCY = "USD"

# Currencies Stripe treats as having no minor unit
# https://docs.stripe.com/currencies#zero-decimal
ZERO_DECIMAL_CURRENCIES = frozenset({
    "BIF", "CLP", "DJF", "GNF", "JPY", "KMF", "KRW", "MGA",
    "PYG", "RWF", "UGX", "VND", "VUV", "XAF", "XOF", "XPF",
})

_TWO_PLACES = Decimal("0.01")


def normalize_currency(currency: Optional[str]) -> str:
    """Upper-case ISO code, defaulting to USD when Stripe omits it."""
    if not currency or not currency.strip():
        return DEFAULT_CURRENCY
    return currency.strip().upper()


def to_major_units(amount: Optional[int], currency: Optional[str]) -> Decimal:
    """
    Convert a Stripe minor-unit integer to a Decimal in major units.

    >>> to_major_units(7500, "usd")
    Decimal('75.00')
    """
    minor = Decimal(int(amount or 0))
    if normalize_currency(currency) in ZERO_DECIMAL_CURRENCIES:
        return minor.quantize(_TWO_PLACES)
    return (minor / Decimal(100)).quantize(_TWO_PLACES)
