"""
Loyalty point arithmetic.

Pure functions with no database access: tier resolution from lifetime points,
tier-dependent earn rate and the fixed redemption conversion.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal

from apps.common.constants import (
    LOYALTY_EARN_RATES,
    LOYALTY_EARN_UNIT,
    LOYALTY_POINT_VALUE,
    LOYALTY_TIER_THRESHOLDS,
    LOYALTY_TIERS,
)
from apps.common.money import to_cents
from apps.common.types import ValidationError


def get_tier_for_points(lifetime_points: int) -> str:
    """Highest tier whose threshold is at or below lifetime_points"""
    tier = LOYALTY_TIERS[0]
    for candidate in LOYALTY_TIERS:
        if lifetime_points >= LOYALTY_TIER_THRESHOLDS[candidate]:
            tier = candidate
    return tier


def get_next_tier_points(tier: str) -> int:
    """Lifetime threshold of the tier above `tier`; 0 at the top tier"""
    position = LOYALTY_TIERS.index(tier)
    if position + 1 >= len(LOYALTY_TIERS):
        return 0
    return LOYALTY_TIER_THRESHOLDS[LOYALTY_TIERS[position + 1]]


def tier_rank(tier: str) -> int:
    return LOYALTY_TIERS.index(tier)


def calculate_points_from_purchase(amount: Decimal | int | str, tier: str) -> int:
    """floor((amount / 10) * tier earn rate)"""
    if tier not in LOYALTY_EARN_RATES:
        raise ValidationError('tier', f"Unknown loyalty tier: {tier}")
    amount = Decimal(str(amount))
    if amount <= 0:
        return 0
    points = (amount / LOYALTY_EARN_UNIT) * LOYALTY_EARN_RATES[tier]
    return int(points.to_integral_value(rounding=ROUND_FLOOR))


def calculate_redemption_value(points: int) -> Decimal:
    """Currency value of `points` (1 point = 0.1 unit), independent of tier"""
    if points < 0:
        raise ValidationError('points', "Points must be non-negative")
    return Decimal(points) * LOYALTY_POINT_VALUE


def calculate_redemption_cents(points: int) -> int:
    return to_cents(calculate_redemption_value(points))
