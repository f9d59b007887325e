"""
Vendor commission rate resolution.
"""

from decimal import Decimal

import pytest

from tests.factories.marketplace_factories import create_vendor


@pytest.mark.django_db
def test_override_rate(vendor):
    assert vendor.get_commission_rate() == Decimal('0.10')
    assert vendor.is_approved


@pytest.mark.django_db
def test_platform_default_applies_without_override(settings):
    settings.MARKETPLACE_DEFAULT_COMMISSION_RATE = Decimal('0.12')
    vendor = create_vendor('No Override')

    assert vendor.get_commission_rate() == Decimal('0.12')


@pytest.mark.django_db
def test_zero_override_is_respected():
    vendor = create_vendor('Promo Vendor', commission_rate='0')

    assert vendor.get_commission_rate() == Decimal('0')


@pytest.mark.django_db
def test_suspended_vendor_is_not_approved():
    assert not create_vendor('Paused', status='suspended').is_approved
