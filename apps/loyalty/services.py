"""
Loyalty Services for the marketplace
Point awards, redemption at checkout, restoration on cancel/refund and tier upkeep.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from django.db import transaction
from django.db.models import F, Sum
from django.utils import timezone

from apps.common.types import InsufficientPoints, ValidationError

from .models import LoyaltyAccount, LoyaltyTransaction
from .points import (
    calculate_points_from_purchase,
    calculate_redemption_value,
    get_next_tier_points,
    get_tier_for_points,
    tier_rank,
)

if TYPE_CHECKING:
    from apps.orders.models import Order

logger = logging.getLogger(__name__)

# Transaction types that count towards lifetime points (and therefore tier)
EARNING_TYPES = frozenset({'purchase', 'bonus'})


@dataclass(frozen=True)
class PointsAwardResult:
    """Outcome of a point movement"""
    account: LoyaltyAccount
    transaction: LoyaltyTransaction
    previous_tier: str
    tier_promoted: bool


# ===============================================================================
# LOYALTY SERVICE
# ===============================================================================

class LoyaltyService:
    """Loyalty account management"""

    @staticmethod
    def get_or_create_account(user_id: Any) -> LoyaltyAccount:
        account, created = LoyaltyAccount.objects.get_or_create(user_id=user_id)
        if created:
            logger.info(f"⭐ [Loyalty] Created loyalty account for user {user_id}")
        return account

    @staticmethod
    def _lock_account(user_id: Any) -> LoyaltyAccount:
        account, _created = LoyaltyAccount.objects.select_for_update().get_or_create(user_id=user_id)
        return account

    @staticmethod
    def _apply_tier(account: LoyaltyAccount) -> None:
        account.tier = get_tier_for_points(account.lifetime_points)
        account.next_tier_points = get_next_tier_points(account.tier)

    @staticmethod
    @transaction.atomic
    def award_points(  # noqa: PLR0913
        user_id: Any,
        points: int,
        transaction_type: str,
        description: str = '',
        order: Order | None = None,
        expires_at: datetime | None = None,
    ) -> PointsAwardResult:
        """
        Apply a signed point delta and append it to the ledger.
        Positive deltas of an earning type also raise lifetime points; a negative
        delta that would overdraw the balance raises InsufficientPoints.
        """
        if points == 0:
            raise ValidationError('points', "Point delta must be non-zero")

        account = LoyaltyService._lock_account(user_id)
        if points < 0 and account.points + points < 0:
            raise InsufficientPoints(available=account.points, requested=-points)

        previous_tier = account.tier
        lifetime_delta = points if points > 0 and transaction_type in EARNING_TYPES else 0

        account.points += points
        account.lifetime_points += lifetime_delta
        LoyaltyService._apply_tier(account)
        account.save(update_fields=['points', 'lifetime_points', 'tier', 'next_tier_points', 'updated_at'])

        entry = LoyaltyTransaction.objects.create(
            account=account,
            points=points,
            lifetime_points_delta=lifetime_delta,
            transaction_type=transaction_type,
            description=description,
            order=order,
            balance_after=account.points,
            expires_at=expires_at,
        )

        promoted = tier_rank(account.tier) > tier_rank(previous_tier)
        if promoted:
            logger.info(f"🏆 [Loyalty] User {user_id} promoted {previous_tier} → {account.tier}")

        return PointsAwardResult(
            account=account,
            transaction=entry,
            previous_tier=previous_tier,
            tier_promoted=promoted,
        )

    @staticmethod
    def redeem_points(user_id: Any, points: int, order: Order) -> bool:
        """
        Spend points for an order with a conditional decrement.
        Must run inside the checkout transaction. Returns False when the balance
        no longer covers `points`, leaving the account untouched.
        """
        account = LoyaltyService.get_or_create_account(user_id)
        updated = LoyaltyAccount.objects.filter(pk=account.pk, points__gte=points).update(
            points=F('points') - points,
            updated_at=timezone.now(),
        )
        if not updated:
            return False

        account.refresh_from_db(fields=['points'])
        LoyaltyTransaction.objects.create(
            account=account,
            points=-points,
            transaction_type='redeem',
            description=f"Redeemed on order {order.order_number}",
            order=order,
            balance_after=account.points,
        )
        return True

    @staticmethod
    def award_purchase_points(order: Order) -> PointsAwardResult | None:
        """Earn points for a delivered order, at most once per order"""
        already_awarded = LoyaltyTransaction.objects.filter(order=order, transaction_type='purchase').exists()
        if already_awarded:
            return None

        account = LoyaltyService.get_or_create_account(order.user_id)
        points = calculate_points_from_purchase(order.total, account.tier)
        if points <= 0:
            return None

        result = LoyaltyService.award_points(
            order.user_id,
            points,
            'purchase',
            description=f"Purchase {order.order_number}",
            order=order,
        )
        logger.info(f"⭐ [Loyalty] Awarded {points} points for order {order.order_number}")
        return result

    @staticmethod
    def restore_redeemed_points(order: Order) -> int:
        """
        Give back points spent on an order that was cancelled or fully refunded.
        Restorations are not earn events and leave lifetime points unchanged.
        """
        movements = LoyaltyTransaction.objects.filter(order=order)
        redeemed = -(movements.filter(transaction_type='redeem').aggregate(total=Sum('points'))['total'] or 0)
        restored = movements.filter(transaction_type='refund').aggregate(total=Sum('points'))['total'] or 0
        outstanding = redeemed - restored
        if outstanding <= 0:
            return 0

        LoyaltyService.award_points(
            order.user_id,
            outstanding,
            'refund',
            description=f"Points restored for order {order.order_number}",
            order=order,
        )
        logger.info(f"↩️ [Loyalty] Restored {outstanding} points for order {order.order_number}")
        return outstanding

    @staticmethod
    @transaction.atomic
    def adjust_lifetime_points(user_id: Any, delta: int, reason: str) -> LoyaltyAccount:
        """
        Explicit correction of lifetime points, the only path that can lower them.
        The tier is re-derived and may go down.
        """
        if delta == 0:
            raise ValidationError('delta', "Adjustment must be non-zero")
        if not reason:
            raise ValidationError('reason', "A reason is required for lifetime adjustments")

        account = LoyaltyService._lock_account(user_id)
        previous_tier = account.tier
        new_lifetime = max(0, account.lifetime_points + delta)
        applied = new_lifetime - account.lifetime_points

        account.lifetime_points = new_lifetime
        LoyaltyService._apply_tier(account)
        account.save(update_fields=['lifetime_points', 'tier', 'next_tier_points', 'updated_at'])

        LoyaltyTransaction.objects.create(
            account=account,
            points=0,
            lifetime_points_delta=applied,
            transaction_type='adjustment',
            description=reason,
            balance_after=account.points,
        )
        logger.warning(
            f"⚠️ [Loyalty] Lifetime points for user {user_id} adjusted by {applied} "
            f"({previous_tier} → {account.tier}): {reason}"
        )
        return account

    @staticmethod
    def get_account_summary(user_id: Any) -> dict[str, Any]:
        account = LoyaltyService.get_or_create_account(user_id)
        points_to_next = max(0, account.next_tier_points - account.lifetime_points) if account.next_tier_points else 0
        return {
            'points': account.points,
            'lifetime_points': account.lifetime_points,
            'tier': account.tier,
            'next_tier_points': account.next_tier_points,
            'points_to_next_tier': points_to_next,
            'redemption_value': calculate_redemption_value(account.points),
        }
