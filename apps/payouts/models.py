"""
Vendor commission and payout models.
Ledger entries are immutable once written apart from being marked paid;
payouts and statements are derived from them by the monthly aggregator.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import ClassVar

from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.common.constants import DEFAULT_CURRENCY
from apps.common.money import from_cents

# ===============================================================================
# COMMISSION LEDGER
# ===============================================================================

class CommissionLedgerEntry(models.Model):
    """
    Commission split for one order item.
    commission_cents + vendor_payout_cents == sale_amount_cents, and the rate is
    the vendor's rate at the moment the entry was written.
    """

    STATUS_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ('recorded', _('Recorded')),
        ('paid', _('Paid')),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        'orders.Order',
        on_delete=models.PROTECT,
        related_name='commission_entries'
    )
    order_item = models.ForeignKey(
        'orders.OrderItem',
        on_delete=models.PROTECT,
        related_name='commission_entries'
    )
    vendor = models.ForeignKey(
        'vendors.Vendor',
        on_delete=models.PROTECT,
        related_name='commission_entries'
    )

    sale_amount_cents = models.BigIntegerField()
    commission_rate = models.DecimalField(max_digits=5, decimal_places=4, help_text=_("Rate snapshot"))
    commission_cents = models.BigIntegerField()
    vendor_payout_cents = models.BigIntegerField()
    currency = models.CharField(max_length=3, default=DEFAULT_CURRENCY)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='recorded')
    order_paid_at = models.DateTimeField(help_text=_("When the order's payment was confirmed"))
    paid_at = models.DateTimeField(null=True, blank=True, help_text=_("When the vendor was paid"))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'commission_ledger_entries'
        verbose_name = _('Commission Ledger Entry')
        verbose_name_plural = _('Commission Ledger Entries')
        ordering: ClassVar[tuple[str, ...]] = ('-created_at',)
        constraints: ClassVar[tuple[models.BaseConstraint, ...]] = (
            models.UniqueConstraint(fields=['order', 'order_item'], name='unique_commission_per_order_item'),
        )
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['vendor', 'order_paid_at'], name='commission_vendor_paid_idx'),
            models.Index(fields=['vendor', 'status'], name='commission_vendor_status_idx'),
        )

    def __str__(self) -> str:
        return f"Commission {self.order_id}/{self.order_item_id}"

    @property
    def sale_amount(self) -> Decimal:
        return from_cents(self.sale_amount_cents)

    @property
    def commission_amount(self) -> Decimal:
        return from_cents(self.commission_cents)

    @property
    def vendor_payout(self) -> Decimal:
        return from_cents(self.vendor_payout_cents)


# ===============================================================================
# PAYOUTS & STATEMENTS
# ===============================================================================

class VendorPayout(models.Model):
    """
    Monthly payout for one vendor over a half-open period [period_start, period_end).
    Created pending by the aggregator; only mark_payout_paid moves it to paid.
    """

    STATUS_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ('pending', _('Pending')),
        ('paid', _('Paid')),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    vendor = models.ForeignKey(
        'vendors.Vendor',
        on_delete=models.PROTECT,
        related_name='payouts'
    )
    period_start = models.DateTimeField()
    period_end = models.DateTimeField()

    total_sales_cents = models.BigIntegerField(default=0)
    commission_cents = models.BigIntegerField(default=0)
    payout_cents = models.BigIntegerField(default=0)
    order_count = models.PositiveIntegerField(default=0)
    entry_count = models.PositiveIntegerField(default=0)
    currency = models.CharField(max_length=3, default=DEFAULT_CURRENCY)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    payment_reference = models.CharField(max_length=255, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'vendor_payouts'
        verbose_name = _('Vendor Payout')
        verbose_name_plural = _('Vendor Payouts')
        ordering: ClassVar[tuple[str, ...]] = ('-period_start',)
        constraints: ClassVar[tuple[models.BaseConstraint, ...]] = (
            models.UniqueConstraint(
                fields=['vendor', 'period_start', 'period_end'], name='unique_payout_per_vendor_period'
            ),
        )
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['status', '-period_start'], name='vendor_payouts_status_idx'),
        )

    def __str__(self) -> str:
        return f"Payout {self.vendor} {self.period_start:%Y-%m}"

    @property
    def total_sales(self) -> Decimal:
        return from_cents(self.total_sales_cents)

    @property
    def commission_amount(self) -> Decimal:
        return from_cents(self.commission_cents)

    @property
    def payout_amount(self) -> Decimal:
        return from_cents(self.payout_cents)


class VendorStatement(models.Model):
    """Human-readable summary of a vendor's period, regenerable from the ledger"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    statement_number = models.CharField(max_length=50, unique=True)
    vendor = models.ForeignKey(
        'vendors.Vendor',
        on_delete=models.PROTECT,
        related_name='statements'
    )
    payout = models.OneToOneField(
        VendorPayout,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='statement'
    )
    period_start = models.DateTimeField()
    period_end = models.DateTimeField()

    total_sales_cents = models.BigIntegerField(default=0)
    commission_cents = models.BigIntegerField(default=0)
    payout_cents = models.BigIntegerField(default=0)
    order_count = models.PositiveIntegerField(default=0)
    lines = models.JSONField(default=list, blank=True, help_text=_("Per-order breakdown"))
    summary = models.TextField(blank=True)

    generated_at = models.DateTimeField(auto_now=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'vendor_statements'
        verbose_name = _('Vendor Statement')
        verbose_name_plural = _('Vendor Statements')
        ordering: ClassVar[tuple[str, ...]] = ('-period_start',)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['vendor', '-period_start'], name='vendor_statements_vendor_idx'),
        )

    def __str__(self) -> str:
        return self.statement_number
