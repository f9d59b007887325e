"""
Marketplace Constants

Centralized business rules for loyalty, gift cards and vendor commission.
These are fixed rules, not deployment configuration: values that operators tune
(VAT rate, commission default, currency) live in Django settings and fall back here.
"""

from decimal import Decimal
from typing import Final

# ===============================================================================
# CURRENCY & TAX 💰
# ===============================================================================

DEFAULT_CURRENCY: Final[str] = 'ETB'
DEFAULT_VAT_RATE: Final[Decimal] = Decimal('0.15')  # Charged on the pre-discount subtotal

# ===============================================================================
# VENDOR COMMISSION 🏪
# ===============================================================================

DEFAULT_COMMISSION_RATE: Final[Decimal] = Decimal('0.1500')  # Platform default when vendor has no override
COMMISSION_RATE_PLACES: Final[Decimal] = Decimal('0.0001')    # Rates stored with 4 decimal places

# ===============================================================================
# LOYALTY PROGRAM ⭐
# ===============================================================================

LOYALTY_TIERS: Final[tuple[str, ...]] = ('bronze', 'silver', 'gold', 'platinum')

# Minimum lifetime points for each tier
LOYALTY_TIER_THRESHOLDS: Final[dict[str, int]] = {
    'bronze': 0,
    'silver': 1000,
    'gold': 5000,
    'platinum': 10000,
}

# Points earned per LOYALTY_EARN_UNIT of currency spent
LOYALTY_EARN_RATES: Final[dict[str, Decimal]] = {
    'bronze': Decimal('1'),
    'silver': Decimal('1.5'),
    'gold': Decimal('2'),
    'platinum': Decimal('3'),
}
LOYALTY_EARN_UNIT: Final[Decimal] = Decimal('10')

# 100 points = 10 currency units, same for every tier
LOYALTY_POINT_VALUE: Final[Decimal] = Decimal('0.1')

# ===============================================================================
# GIFT CARDS 🎁
# ===============================================================================

GIFT_CARD_MIN_AMOUNT: Final[Decimal] = Decimal('50')
GIFT_CARD_MAX_AMOUNT: Final[Decimal] = Decimal('10000')
GIFT_CARD_VALIDITY_DAYS: Final[int] = 365
GIFT_CARD_CODE_ALPHABET: Final[str] = 'ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789'
GIFT_CARD_CODE_GROUPS: Final[int] = 4
GIFT_CARD_CODE_GROUP_LENGTH: Final[int] = 4
GIFT_CARD_CODE_MAX_ATTEMPTS: Final[int] = 5

# ===============================================================================
# ORDER LIFECYCLE 📦
# ===============================================================================

ORDER_NUMBER_PREFIX: Final[str] = 'MKT'

# Statuses at or after payment confirmation (ledger rows may exist)
ORDER_PAID_STATUSES: Final[frozenset[str]] = frozenset({
    'paid', 'confirmed', 'processing', 'fulfilled', 'shipped', 'delivered',
})

# Statuses from which a cancellation returns items to stock
ORDER_RESTOCKABLE_STATUSES: Final[frozenset[str]] = frozenset({
    'pending', 'paid', 'confirmed', 'processing', 'fulfilled',
})

# ===============================================================================
# PAYOUTS 🧾
# ===============================================================================

PAYOUT_SCHEDULE_CRON: Final[str] = '0 2 1 * *'         # 02:00 on the 1st of every month
GIFT_CARD_EXPIRY_SCHEDULE_CRON: Final[str] = '30 0 * * *'  # 00:30 daily
STATEMENT_NUMBER_PREFIX: Final[str] = 'STMT'
VENDOR_STATEMENTS_DEFAULT_LIMIT: Final[int] = 10
VENDOR_SUMMARY_RECENT_LIMIT: Final[int] = 5
