"""
Order models for the marketplace settlement engine.
An order is a financial record: it is created once at checkout, changed only
through status transitions, and never deleted.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import ClassVar

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.common.constants import DEFAULT_CURRENCY
from apps.common.money import from_cents

# ===============================================================================
# ORDER MANAGEMENT MODELS
# ===============================================================================

class Order(models.Model):
    """
    Customer order spanning one or more vendors.
    Amount fields are fixed at checkout:
    total_cents == max(0, subtotal_cents - discount_cents + shipping_cents + tax_cents)
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order_number = models.CharField(
        max_length=50,
        unique=True,
        help_text=_("Human-readable order number")
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='orders'
    )

    # Order status workflow
    STATUS_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ('pending', _('Pending')),          # Awaiting payment
        ('paid', _('Paid')),                # Payment confirmed, commission recorded
        ('confirmed', _('Confirmed')),      # Accepted by vendors
        ('processing', _('Processing')),
        ('fulfilled', _('Fulfilled')),      # Packed and ready to ship
        ('shipped', _('Shipped')),
        ('delivered', _('Delivered')),      # Counts towards vendor payouts
        ('cancelled', _('Cancelled')),
        ('refunded', _('Refunded')),
    )
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default='pending',
        help_text=_("Current order status")
    )

    PAYMENT_METHOD_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ('card', _('Card')),
        ('mobile_money', _('Mobile Money')),
        ('bank_transfer', _('Bank Transfer')),
        ('cash_on_delivery', _('Cash on Delivery')),
    )
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES)
    payment_reference = models.CharField(
        max_length=255,
        blank=True,
        help_text=_("Payment provider reference from the confirmation webhook")
    )

    currency = models.CharField(max_length=3, default=DEFAULT_CURRENCY)

    # Amounts in cents for precision
    subtotal_cents = models.BigIntegerField(default=0, help_text=_("Sum of line totals in cents"))
    discount_cents = models.BigIntegerField(default=0, help_text=_("Loyalty plus gift card discount in cents"))
    shipping_cents = models.BigIntegerField(default=0, help_text=_("Shipping amount in cents"))
    tax_cents = models.BigIntegerField(default=0, help_text=_("Tax amount in cents"))
    total_cents = models.BigIntegerField(default=0, help_text=_("Final total amount in cents"))

    # Discount instruments applied at checkout
    loyalty_points_redeemed = models.PositiveIntegerField(default=0)
    loyalty_discount_cents = models.BigIntegerField(default=0)
    gift_card_code = models.CharField(max_length=19, blank=True)
    gift_card_amount_cents = models.BigIntegerField(default=0)

    # Address snapshots
    shipping_address = models.JSONField(default=dict, blank=True)
    billing_address = models.JSONField(default=dict, blank=True)

    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'orders'
        verbose_name = _('Order')
        verbose_name_plural = _('Orders')
        ordering: ClassVar[tuple[str, ...]] = ('-created_at',)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['user', '-created_at'], name='orders_user_created_idx'),
            models.Index(fields=['status', '-created_at'], name='orders_status_created_idx'),
            models.Index(fields=['status', 'delivered_at'], name='orders_status_delivered_idx'),
        )

    def __str__(self) -> str:
        return f"Order {self.order_number}"

    @property
    def subtotal(self) -> Decimal:
        return from_cents(self.subtotal_cents)

    @property
    def discount_amount(self) -> Decimal:
        return from_cents(self.discount_cents)

    @property
    def shipping_amount(self) -> Decimal:
        return from_cents(self.shipping_cents)

    @property
    def tax_amount(self) -> Decimal:
        return from_cents(self.tax_cents)

    @property
    def total(self) -> Decimal:
        return from_cents(self.total_cents)


class OrderItem(models.Model):
    """
    Line item snapshot taken at checkout.
    Price, name and SKU are copied from the product and never re-derived from it.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='items'
    )
    product = models.ForeignKey(
        'products.Product',
        on_delete=models.PROTECT,
        related_name='order_items'
    )
    vendor = models.ForeignKey(
        'vendors.Vendor',
        on_delete=models.PROTECT,
        related_name='order_items'
    )

    # Product snapshot
    product_name = models.CharField(max_length=200)
    product_sku = models.CharField(max_length=64)
    unit_price_cents = models.BigIntegerField()
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    line_total_cents = models.BigIntegerField()

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'order_items'
        verbose_name = _('Order Item')
        verbose_name_plural = _('Order Items')
        ordering: ClassVar[tuple[str, ...]] = ('created_at',)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['order', 'created_at'], name='order_items_order_idx'),
            models.Index(fields=['vendor'], name='order_items_vendor_idx'),
        )

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity}"

    @property
    def unit_price(self) -> Decimal:
        return from_cents(self.unit_price_cents)

    @property
    def line_total(self) -> Decimal:
        return from_cents(self.line_total_cents)


class OrderStatusHistory(models.Model):
    """Append-only audit trail of order status changes"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='status_history'
    )
    old_status = models.CharField(max_length=20, blank=True)
    new_status = models.CharField(max_length=20)
    notes = models.TextField(blank=True)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'order_status_history'
        verbose_name = _('Order Status History')
        verbose_name_plural = _('Order Status History')
        ordering: ClassVar[tuple[str, ...]] = ('-created_at',)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['order', '-created_at'], name='order_status_hist_order_idx'),
        )

    def __str__(self) -> str:
        return f"{self.order.order_number}: {self.old_status or '-'} → {self.new_status}"
