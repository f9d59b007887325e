"""
Commission ledger: per-item splits, rate snapshots and idempotent generation.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from apps.common.types import OrderNotFound, ValidationError
from apps.payouts.models import CommissionLedgerEntry
from apps.payouts.services import CommissionLedgerService
from tests.factories.marketplace_factories import (
    OrderCreationRequest,
    create_order,
    create_product,
    create_user,
    create_vendor,
)


def local_datetime(*args):
    return datetime(*args, tzinfo=timezone.get_current_timezone())


class SplitSaleTestCase(TestCase):

    def test_split_sums_to_sale(self):
        self.assertEqual(CommissionLedgerService.split_sale(50000, Decimal('0.10')), (5000, 45000))
        self.assertEqual(CommissionLedgerService.split_sale(30000, Decimal('0.20')), (6000, 24000))

    def test_half_cent_rounds_to_even(self):
        # 30 * 0.15 = 4.5 -> 4, 10 * 0.15 = 1.5 -> 2
        self.assertEqual(CommissionLedgerService.split_sale(30, Decimal('0.15')), (4, 26))
        self.assertEqual(CommissionLedgerService.split_sale(10, Decimal('0.15')), (2, 8))

    def test_zero_rate(self):
        self.assertEqual(CommissionLedgerService.split_sale(12345, Decimal('0')), (0, 12345))


class CommissionLedgerTestCase(TestCase):

    def setUp(self):
        self.user = create_user()
        self.vendor_a = create_vendor('Vendor A', commission_rate='0.10')
        self.vendor_b = create_vendor('Vendor B', commission_rate='0.20')
        self.product_a = create_product(self.vendor_a, price_cents=50000)
        self.product_b = create_product(self.vendor_b, price_cents=30000)
        self.paid_at = local_datetime(2026, 9, 10, 12, 0)
        self.order = create_order(OrderCreationRequest(
            user=self.user,
            lines=[(self.product_a, 1), (self.product_b, 1)],
            status='paid',
            paid_at=self.paid_at,
        ))

    def test_one_entry_per_item_with_vendor_rate(self):
        result = CommissionLedgerService.create_commission_ledger_entries(self.order.pk)

        self.assertEqual(result.unwrap(), 2)
        entry_a = CommissionLedgerEntry.objects.get(order=self.order, vendor=self.vendor_a)
        entry_b = CommissionLedgerEntry.objects.get(order=self.order, vendor=self.vendor_b)
        self.assertEqual(
            (entry_a.sale_amount_cents, entry_a.commission_cents, entry_a.vendor_payout_cents),
            (50000, 5000, 45000),
        )
        self.assertEqual(
            (entry_b.sale_amount_cents, entry_b.commission_cents, entry_b.vendor_payout_cents),
            (30000, 6000, 24000),
        )
        self.assertEqual(
            (entry_a.sale_amount, entry_a.commission_amount, entry_a.vendor_payout),
            (Decimal('500.00'), Decimal('50.00'), Decimal('450.00')),
        )
        self.assertEqual(entry_a.commission_rate, Decimal('0.1000'))
        self.assertEqual(entry_a.order_paid_at, self.paid_at)
        self.assertEqual(entry_a.status, 'recorded')
        self.assertEqual(entry_a.currency, 'ETB')

    def test_rerun_creates_nothing(self):
        CommissionLedgerService.create_commission_ledger_entries(self.order.pk).unwrap()

        result = CommissionLedgerService.create_commission_ledger_entries(self.order.pk)

        self.assertEqual(result.unwrap(), 0)
        self.assertEqual(CommissionLedgerEntry.objects.count(), 2)

    def test_missing_items_are_completed(self):
        CommissionLedgerService.create_commission_ledger_entries(self.order.pk).unwrap()
        CommissionLedgerEntry.objects.filter(vendor=self.vendor_b).delete()

        result = CommissionLedgerService.create_commission_ledger_entries(self.order.pk)

        self.assertEqual(result.unwrap(), 1)
        self.assertEqual(CommissionLedgerEntry.objects.count(), 2)

    def test_rate_snapshot_survives_rate_change(self):
        CommissionLedgerService.create_commission_ledger_entries(self.order.pk).unwrap()

        self.vendor_a.commission_rate = Decimal('0.3000')
        self.vendor_a.save()

        entry = CommissionLedgerEntry.objects.get(vendor=self.vendor_a)
        self.assertEqual(entry.commission_rate, Decimal('0.1000'))
        self.assertEqual(entry.commission_cents, 5000)

    def test_default_rate_applies_without_override(self):
        vendor = create_vendor('Default Rate Vendor')
        product = create_product(vendor, price_cents=20000)
        order = create_order(OrderCreationRequest(
            user=self.user, lines=[(product, 1)], status='paid', paid_at=self.paid_at
        ))

        CommissionLedgerService.create_commission_ledger_entries(order.pk).unwrap()

        entry = CommissionLedgerEntry.objects.get(order=order)
        self.assertEqual(entry.commission_rate, Decimal('0.1500'))
        self.assertEqual(entry.commission_cents, 3000)

    def test_unpaid_order_is_rejected(self):
        pending = create_order(OrderCreationRequest(user=self.user, lines=[(self.product_a, 1)]))

        result = CommissionLedgerService.create_commission_ledger_entries(pending.pk)

        self.assertIsInstance(result.error, ValidationError)
        self.assertFalse(CommissionLedgerEntry.objects.filter(order=pending).exists())

    def test_unknown_order(self):
        self.assertIsInstance(
            CommissionLedgerService.create_commission_ledger_entries(uuid.uuid4()).error, OrderNotFound
        )
        self.assertIsInstance(
            CommissionLedgerService.create_commission_ledger_entries('not-a-uuid').error, OrderNotFound
        )

    def test_vendor_ledger_window(self):
        CommissionLedgerService.create_commission_ledger_entries(self.order.pk).unwrap()
        october = create_order(OrderCreationRequest(
            user=self.user,
            lines=[(self.product_a, 2)],
            status='paid',
            paid_at=local_datetime(2026, 10, 1, 0, 0),
        ))
        CommissionLedgerService.create_commission_ledger_entries(october.pk).unwrap()

        everything = CommissionLedgerService.get_vendor_ledger(self.vendor_a.pk)
        september = CommissionLedgerService.get_vendor_ledger(
            self.vendor_a.pk, local_datetime(2026, 9, 1), local_datetime(2026, 10, 1)
        )

        self.assertEqual(everything.count(), 2)
        self.assertEqual([entry.order for entry in september], [self.order])
