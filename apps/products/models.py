"""
Product Catalog models for the marketplace.
Each product belongs to one vendor and carries the authoritative unit price and
stock level used at checkout. Client-submitted prices are never trusted.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import ClassVar

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.common.money import from_cents

MAX_PRICE_CENTS = 100_000_000  # Maximum price in cents (1M major units)


# ===============================================================================
# PRODUCT MODEL
# ===============================================================================

class Product(models.Model):
    """
    Sellable item listed by a vendor.
    stock_quantity is only ever changed through conditional F() updates so two
    concurrent checkouts can never take the same last unit.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    vendor = models.ForeignKey(
        'vendors.Vendor',
        on_delete=models.PROTECT,
        related_name='products'
    )

    name = models.CharField(max_length=200, help_text=_("Display name for customers"))
    sku = models.CharField(max_length=64, unique=True, help_text=_("Stock keeping unit"))
    description = models.TextField(blank=True)

    price_cents = models.BigIntegerField(
        validators=[MinValueValidator(0), MaxValueValidator(MAX_PRICE_CENTS)],
        help_text=_("Unit price in cents")
    )
    stock_quantity = models.PositiveIntegerField(default=0, help_text=_("Units available for sale"))

    is_active = models.BooleanField(default=True, help_text=_("Whether product is available for purchase"))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'products'
        verbose_name = _('Product')
        verbose_name_plural = _('Products')
        ordering: ClassVar[tuple[str, ...]] = ('name',)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['vendor', 'is_active'], name='products_vendor_active_idx'),
        )

    def __str__(self) -> str:
        return f"{self.name} ({self.sku})"

    @property
    def price(self) -> Decimal:
        return from_cents(self.price_cents)
