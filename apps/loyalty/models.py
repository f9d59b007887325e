"""
Loyalty program models.
LoyaltyAccount holds running balances; LoyaltyTransaction is the append-only
ledger every balance change is written to.
"""

from __future__ import annotations

from typing import ClassVar

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.common.constants import LOYALTY_TIER_THRESHOLDS

# ===============================================================================
# LOYALTY ACCOUNT
# ===============================================================================

class LoyaltyAccount(models.Model):
    """
    One account per user, created lazily on first interaction.
    tier always follows lifetime_points; spending points never demotes.
    """

    TIER_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ('bronze', _('Bronze')),
        ('silver', _('Silver')),
        ('gold', _('Gold')),
        ('platinum', _('Platinum')),
    )

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='loyalty_account'
    )
    points = models.PositiveIntegerField(default=0, help_text=_("Spendable point balance"))
    lifetime_points = models.PositiveIntegerField(default=0, help_text=_("Points ever earned, drives the tier"))
    tier = models.CharField(max_length=20, choices=TIER_CHOICES, default='bronze')
    next_tier_points = models.PositiveIntegerField(
        default=LOYALTY_TIER_THRESHOLDS['silver'],
        help_text=_("Lifetime points required for the next tier, 0 at the top tier")
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'loyalty_accounts'
        verbose_name = _('Loyalty Account')
        verbose_name_plural = _('Loyalty Accounts')
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['tier'], name='loyalty_acct_tier_idx'),
        )

    def __str__(self) -> str:
        return f"{self.user} - {self.tier} ({self.points} pts)"


class LoyaltyTransaction(models.Model):
    """Signed point movement: positive earns, negative redeems"""

    TYPE_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ('purchase', _('Purchase')),
        ('bonus', _('Bonus')),
        ('redeem', _('Redemption')),
        ('refund', _('Refund')),
        ('adjustment', _('Adjustment')),
        ('expired', _('Expired')),
    )

    account = models.ForeignKey(
        LoyaltyAccount,
        on_delete=models.CASCADE,
        related_name='transactions'
    )
    points = models.IntegerField(help_text=_("Signed change to the spendable balance"))
    lifetime_points_delta = models.IntegerField(default=0, help_text=_("Change to lifetime points"))
    transaction_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    description = models.CharField(max_length=255, blank=True)
    order = models.ForeignKey(
        'orders.Order',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='loyalty_transactions'
    )
    balance_after = models.PositiveIntegerField(default=0)
    expires_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'loyalty_transactions'
        verbose_name = _('Loyalty Transaction')
        verbose_name_plural = _('Loyalty Transactions')
        ordering: ClassVar[tuple[str, ...]] = ('-created_at',)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['account', '-created_at'], name='loyalty_tx_account_idx'),
            models.Index(fields=['order', 'transaction_type'], name='loyalty_tx_order_type_idx'),
        )

    def __str__(self) -> str:
        return f"{self.transaction_type} {self.points:+d}"
