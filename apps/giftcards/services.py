"""
Gift Card Services for the marketplace
Issuance, checkout redemption checks, conditional balance debit and restoration.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import F, Sum
from django.utils import timezone

from apps.common.constants import (
    GIFT_CARD_CODE_ALPHABET,
    GIFT_CARD_CODE_GROUP_LENGTH,
    GIFT_CARD_CODE_GROUPS,
    GIFT_CARD_CODE_MAX_ATTEMPTS,
    GIFT_CARD_MAX_AMOUNT,
    GIFT_CARD_MIN_AMOUNT,
    GIFT_CARD_VALIDITY_DAYS,
)
from apps.common.money import format_amount, to_cents
from apps.common.types import (
    BusinessError,
    Err,
    GiftCardExpired,
    GiftCardInactive,
    GiftCardUnauthorized,
    InsufficientGiftCardBalance,
    InvalidGiftCard,
    Ok,
    Result,
    TransactionFailure,
    ValidationError,
)

from .models import GiftCard, GiftCardTransaction

if TYPE_CHECKING:
    from apps.orders.models import Order

logger = logging.getLogger(__name__)

# ===============================================================================
# SNAPSHOTS & PURE CHECKS
# ===============================================================================

@dataclass(frozen=True)
class GiftCardSnapshot:
    """Read-only view of a gift card used by the checkout engine"""
    id: Any
    code: str
    status: str
    balance_cents: int
    expires_at: datetime
    recipient_id: Any = None
    recipient_email: str = ''

    @classmethod
    def from_model(cls, card: GiftCard) -> GiftCardSnapshot:
        return cls(
            id=card.id,
            code=card.code,
            status=card.status,
            balance_cents=card.balance_cents,
            expires_at=card.expires_at,
            recipient_id=card.recipient_id,
            recipient_email=card.recipient_email,
        )


def normalize_code(code: str) -> str:
    return code.strip().upper()


def generate_gift_card_code() -> str:
    """Random code in XXXX-XXXX-XXXX-XXXX format (A-Z, 0-9)"""
    groups = (
        ''.join(secrets.choice(GIFT_CARD_CODE_ALPHABET) for _ in range(GIFT_CARD_CODE_GROUP_LENGTH))
        for _ in range(GIFT_CARD_CODE_GROUPS)
    )
    return '-'.join(groups)


def check_gift_card_redeemable(  # noqa: PLR0913
    card: GiftCardSnapshot | None,
    code: str,
    user_id: Any,
    user_email: str,
    amount_cents: int,
    now: datetime,
) -> None:
    """Raise the specific GiftCardError that prevents redeeming `amount_cents`"""
    if card is None:
        raise InvalidGiftCard(code)
    if card.status != 'active':
        raise GiftCardInactive(card.status)
    if card.expires_at <= now:
        raise GiftCardExpired()
    if card.recipient_id is not None:
        if card.recipient_id != user_id:
            raise GiftCardUnauthorized()
    elif card.recipient_email and card.recipient_email.lower() != (user_email or '').lower():
        raise GiftCardUnauthorized()
    if amount_cents > card.balance_cents:
        raise InsufficientGiftCardBalance(balance_cents=card.balance_cents, requested_cents=amount_cents)


# ===============================================================================
# GIFT CARD SERVICE PARAMETER OBJECTS
# ===============================================================================

@dataclass
class GiftCardIssueData:
    """Parameter object for gift card issuance"""
    purchaser: Any
    amount: Decimal
    recipient_email: str = ''
    message: str = ''


# ===============================================================================
# GIFT CARD SERVICE
# ===============================================================================

class GiftCardService:
    """Gift card lifecycle operations"""

    @staticmethod
    def _amount_bounds() -> tuple[Decimal, Decimal]:
        minimum = Decimal(str(getattr(settings, 'GIFT_CARD_MIN_AMOUNT', GIFT_CARD_MIN_AMOUNT)))
        maximum = Decimal(str(getattr(settings, 'GIFT_CARD_MAX_AMOUNT', GIFT_CARD_MAX_AMOUNT)))
        return minimum, maximum

    @staticmethod
    def issue_gift_card(data: GiftCardIssueData) -> Result[GiftCard, BusinessError]:
        """Create an active card with a unique code and record the purchase"""
        minimum, maximum = GiftCardService._amount_bounds()
        amount = Decimal(str(data.amount))
        if amount < minimum or amount > maximum:
            return Err(ValidationError('amount', f"Gift card amount must be between {minimum} and {maximum}"))

        recipient = None
        recipient_email = (data.recipient_email or '').strip().lower()
        if recipient_email:
            recipient = get_user_model().objects.filter(email__iexact=recipient_email).first()

        validity_days = getattr(settings, 'GIFT_CARD_VALIDITY_DAYS', GIFT_CARD_VALIDITY_DAYS)
        amount_cents = to_cents(amount)

        with transaction.atomic():
            code = GiftCardService._unique_code()
            if code is None:
                return Err(TransactionFailure("Could not allocate a unique gift card code"))

            card = GiftCard.objects.create(
                code=code,
                purchaser=data.purchaser,
                recipient=recipient,
                recipient_email=recipient_email,
                message=data.message,
                amount_cents=amount_cents,
                balance_cents=amount_cents,
                status='active',
                expires_at=timezone.now() + timedelta(days=validity_days),
            )
            GiftCardTransaction.objects.create(
                gift_card=card,
                transaction_type='purchase',
                amount_cents=amount_cents,
                balance_after_cents=amount_cents,
            )

        logger.info(f"🎁 [GiftCards] Issued gift card {card.code} for {amount}")
        return Ok(card)

    @staticmethod
    def _unique_code() -> str | None:
        for _attempt in range(GIFT_CARD_CODE_MAX_ATTEMPTS):
            code = generate_gift_card_code()
            if not GiftCard.objects.filter(code=code).exists():
                return code
        return None

    @staticmethod
    def get_snapshot(code: str) -> GiftCardSnapshot | None:
        card = GiftCard.objects.filter(code=normalize_code(code)).first()
        return GiftCardSnapshot.from_model(card) if card else None

    @staticmethod
    def debit_for_order(gift_card_id: Any, amount_cents: int, order: Order) -> bool:
        """
        Conditionally take `amount_cents` off an active, unexpired card.
        Must run inside the checkout transaction. Returns False when the card no
        longer qualifies; flips the card to redeemed when the balance hits zero.
        """
        now = timezone.now()
        updated = GiftCard.objects.filter(
            pk=gift_card_id,
            status='active',
            expires_at__gt=now,
            balance_cents__gte=amount_cents,
        ).update(balance_cents=F('balance_cents') - amount_cents, updated_at=now)
        if not updated:
            return False

        GiftCard.objects.filter(pk=gift_card_id, balance_cents=0).update(
            status='redeemed', redeemed_at=now, updated_at=now
        )
        balance_after = GiftCard.objects.values_list('balance_cents', flat=True).get(pk=gift_card_id)
        GiftCardTransaction.objects.create(
            gift_card_id=gift_card_id,
            order=order,
            transaction_type='redeem',
            amount_cents=amount_cents,
            balance_after_cents=balance_after,
        )
        return True

    @staticmethod
    @transaction.atomic
    def restore_for_order(order: Order) -> int:
        """
        Return gift card money spent on a cancelled or fully refunded order.
        A restored card becomes active again unless it has expired meanwhile.
        """
        movements = GiftCardTransaction.objects.filter(order=order)
        restored_total = 0
        for gift_card_id in movements.values_list('gift_card_id', flat=True).distinct():
            card_movements = movements.filter(gift_card_id=gift_card_id)
            redeemed = card_movements.filter(transaction_type='redeem').aggregate(total=Sum('amount_cents'))['total'] or 0
            refunded = card_movements.filter(transaction_type='refund').aggregate(total=Sum('amount_cents'))['total'] or 0
            outstanding = redeemed - refunded
            if outstanding <= 0:
                continue

            card = GiftCard.objects.select_for_update().get(pk=gift_card_id)
            card.balance_cents += outstanding
            card.status = 'expired' if card.is_expired else 'active'
            card.redeemed_at = None
            card.save(update_fields=['balance_cents', 'status', 'redeemed_at', 'updated_at'])
            GiftCardTransaction.objects.create(
                gift_card=card,
                order=order,
                transaction_type='refund',
                amount_cents=outstanding,
                balance_after_cents=card.balance_cents,
            )
            restored_total += outstanding
            logger.info(f"↩️ [GiftCards] Restored {format_amount(outstanding)} to {card.code} for order {order.order_number}")

        return restored_total

    @staticmethod
    def expire_gift_cards(now: datetime | None = None) -> int:
        """Flip active cards past their expiry date to expired"""
        now = now or timezone.now()
        expired = GiftCard.objects.filter(status='active', expires_at__lte=now).update(
            status='expired', updated_at=now
        )
        if expired:
            logger.info(f"⌛ [GiftCards] Expired {expired} gift cards")
        return expired

    @staticmethod
    def check_balance(code: str, user: Any) -> Result[GiftCard, BusinessError]:
        """Look up a card the user is allowed to see"""
        card = GiftCard.objects.filter(code=normalize_code(code)).first()
        if card is None:
            return Err(InvalidGiftCard(code))
        allowed = {card.purchaser_id, card.recipient_id}
        email_match = bool(card.recipient_email) and card.recipient_email.lower() == (user.email or '').lower()
        if user.pk not in allowed and not email_match:
            return Err(GiftCardUnauthorized())
        return Ok(card)
