"""
Vendor models for the marketplace.
A vendor sells products through the platform and is paid out monthly,
net of the platform commission.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import ClassVar

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.common.money import get_default_commission_rate

# ===============================================================================
# VENDOR MODEL
# ===============================================================================

class Vendor(models.Model):
    """
    Marketplace seller.
    Only approved vendors are included in payout runs. The commission rate is an
    optional override of the platform default and is snapshotted onto every
    ledger entry at creation time.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='vendor_profile',
        help_text=_("Account that manages this vendor")
    )
    name = models.CharField(max_length=200, help_text=_("Store display name"))
    email = models.EmailField(blank=True, help_text=_("Payout and statement contact"))

    STATUS_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ('pending', _('Pending Approval')),
        ('approved', _('Approved')),
        ('suspended', _('Suspended')),
    )
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default='pending',
        help_text=_("Only approved vendors receive payouts")
    )

    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('1'))],
        help_text=_("Vendor-specific commission rate (0.1000 = 10%). Empty uses the platform default.")
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'vendors'
        verbose_name = _('Vendor')
        verbose_name_plural = _('Vendors')
        ordering: ClassVar[tuple[str, ...]] = ('name',)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['status'], name='vendors_status_idx'),
        )

    def __str__(self) -> str:
        return self.name

    @property
    def is_approved(self) -> bool:
        return self.status == 'approved'

    def get_commission_rate(self) -> Decimal:
        """Current rate: vendor override if set, else platform default"""
        if self.commission_rate is not None:
            return self.commission_rate
        return get_default_commission_rate()
