"""
Fixed-point money helpers.

Amounts are persisted as integer minor units (cents) and handled as Decimal in
between. Every amount derived from a rate is rounded half-to-even to the cent,
both when ledger rows are written and when they are aggregated.
"""

from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal

from django.conf import settings

from apps.common.constants import (
    COMMISSION_RATE_PLACES,
    DEFAULT_COMMISSION_RATE,
    DEFAULT_CURRENCY,
    DEFAULT_VAT_RATE,
)

CENT = Decimal('0.01')
ONE = Decimal('1')


def quantize_amount(amount: Decimal) -> Decimal:
    """Round a currency amount to the cent"""
    return amount.quantize(CENT, rounding=ROUND_HALF_EVEN)


def to_cents(amount: Decimal | int | str) -> int:
    """Convert a currency amount to integer cents"""
    return int(quantize_amount(Decimal(str(amount))) * 100)


def from_cents(cents: int) -> Decimal:
    """Convert integer cents to a currency amount"""
    return (Decimal(cents) / 100).quantize(CENT)


def apply_rate_cents(amount_cents: int, rate: Decimal) -> int:
    """Apply a rate (VAT, commission) to a cent amount, rounding half-to-even to the cent"""
    return int((Decimal(amount_cents) * rate).quantize(ONE, rounding=ROUND_HALF_EVEN))


def quantize_rate(rate: Decimal) -> Decimal:
    return rate.quantize(COMMISSION_RATE_PLACES, rounding=ROUND_HALF_EVEN)


def format_amount(cents: int, currency: str | None = None) -> str:
    """Human readable amount: 'ETB 1,200.00'"""
    return f"{currency or get_currency()} {from_cents(cents):,.2f}"


# ===============================================================================
# CONFIGURED RATES
# ===============================================================================

def get_currency() -> str:
    return getattr(settings, 'MARKETPLACE_CURRENCY', DEFAULT_CURRENCY)


def get_vat_rate() -> Decimal:
    return Decimal(str(getattr(settings, 'MARKETPLACE_VAT_RATE', DEFAULT_VAT_RATE)))


def get_default_commission_rate() -> Decimal:
    return Decimal(str(getattr(settings, 'MARKETPLACE_DEFAULT_COMMISSION_RATE', DEFAULT_COMMISSION_RATE)))
