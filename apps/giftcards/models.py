"""
Gift card models.
A card's balance only goes down at checkout; every change is mirrored by an
append-only GiftCardTransaction.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import ClassVar

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from apps.common.money import from_cents

# ===============================================================================
# GIFT CARD MODELS
# ===============================================================================

class GiftCard(models.Model):
    """Prepaid balance redeemable at checkout"""

    STATUS_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ('active', _('Active')),
        ('redeemed', _('Redeemed')),   # Balance reached zero
        ('expired', _('Expired')),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(max_length=19, unique=True, help_text=_("Redemption code XXXX-XXXX-XXXX-XXXX"))
    purchaser = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='purchased_gift_cards'
    )
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='received_gift_cards'
    )
    recipient_email = models.EmailField(blank=True)
    message = models.CharField(max_length=500, blank=True)

    amount_cents = models.BigIntegerField(help_text=_("Face value in cents"))
    balance_cents = models.PositiveBigIntegerField(help_text=_("Remaining balance in cents"))

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    expires_at = models.DateTimeField()
    redeemed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'gift_cards'
        verbose_name = _('Gift Card')
        verbose_name_plural = _('Gift Cards')
        ordering: ClassVar[tuple[str, ...]] = ('-created_at',)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['status', 'expires_at'], name='gift_cards_status_exp_idx'),
            models.Index(fields=['recipient_email'], name='gift_cards_recipient_idx'),
        )

    def __str__(self) -> str:
        return f"Gift card {self.code}"

    @property
    def amount(self) -> Decimal:
        return from_cents(self.amount_cents)

    @property
    def balance(self) -> Decimal:
        return from_cents(self.balance_cents)

    @property
    def is_expired(self) -> bool:
        return self.expires_at <= timezone.now()


class GiftCardTransaction(models.Model):
    TYPE_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ('purchase', _('Purchase')),
        ('redeem', _('Redemption')),
        ('refund', _('Refund')),
    )

    gift_card = models.ForeignKey(
        GiftCard,
        on_delete=models.PROTECT,
        related_name='transactions'
    )
    order = models.ForeignKey(
        'orders.Order',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='gift_card_transactions'
    )
    transaction_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    amount_cents = models.BigIntegerField(help_text=_("Unsigned amount moved in cents"))
    balance_after_cents = models.BigIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'gift_card_transactions'
        verbose_name = _('Gift Card Transaction')
        verbose_name_plural = _('Gift Card Transactions')
        ordering: ClassVar[tuple[str, ...]] = ('-created_at',)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['gift_card', '-created_at'], name='gift_card_tx_card_idx'),
            models.Index(fields=['order', 'transaction_type'], name='gift_card_tx_order_idx'),
        )

    def __str__(self) -> str:
        return f"{self.transaction_type} {from_cents(self.amount_cents)}"
