"""
Monthly payout aggregator, statements and month-end commission reconciliation.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase
from django.utils import timezone

from apps.common.types import InvalidStatusTransition, NotFoundError, ValidationError
from apps.orders.models import Order
from apps.payouts.models import CommissionLedgerEntry, VendorPayout, VendorStatement
from apps.payouts.services import (
    CommissionLedgerService,
    PayoutService,
    month_window,
    previous_month_window,
)
from tests.factories.marketplace_factories import (
    OrderCreationRequest,
    create_order,
    create_product,
    create_user,
    create_vendor,
)


def local_datetime(*args):
    return datetime(*args, tzinfo=timezone.get_current_timezone())


class PeriodHelpersTestCase(TestCase):

    def test_month_window_is_half_open(self):
        start, end = month_window(2026, 9)

        self.assertEqual(start, local_datetime(2026, 9, 1))
        self.assertEqual(end, local_datetime(2026, 10, 1))

    def test_december_rolls_over(self):
        start, end = month_window(2026, 12)

        self.assertEqual(end, local_datetime(2027, 1, 1))

    def test_invalid_month(self):
        with self.assertRaises(ValidationError):
            month_window(2026, 13)

    def test_previous_month(self):
        start, end = previous_month_window(local_datetime(2026, 1, 15, 8, 0))

        self.assertEqual(start, local_datetime(2025, 12, 1))
        self.assertEqual(end, local_datetime(2026, 1, 1))


class PayoutTestMixin:

    def setUp(self):
        self.user = create_user()
        self.vendor_a = create_vendor('Vendor A', commission_rate='0.10')
        self.vendor_b = create_vendor('Vendor B', commission_rate='0.20')
        self.product_a = create_product(self.vendor_a, price_cents=50000)
        self.product_b = create_product(self.vendor_b, price_cents=30000)
        self.start, self.end = month_window(2026, 9)

    def delivered_order(self, lines, delivered_at, paid_at=None, status='delivered'):
        order = create_order(OrderCreationRequest(
            user=self.user,
            lines=lines,
            status=status,
            paid_at=paid_at or delivered_at,
            delivered_at=delivered_at if status == 'delivered' else None,
        ))
        CommissionLedgerService.create_commission_ledger_entries(order.pk).unwrap()
        return order


class PayoutAggregatorTestCase(PayoutTestMixin, TestCase):

    def test_payout_per_vendor_for_delivered_orders(self):
        order = self.delivered_order(
            [(self.product_a, 1), (self.product_b, 1)], local_datetime(2026, 9, 15, 10, 0)
        )

        results = PayoutService.run_payouts_for_period(self.start, self.end)

        self.assertTrue(results['success'])
        self.assertEqual(results['payouts_created'], 2)
        payout_a = VendorPayout.objects.get(vendor=self.vendor_a)
        payout_b = VendorPayout.objects.get(vendor=self.vendor_b)
        self.assertEqual(
            (payout_a.total_sales_cents, payout_a.commission_cents, payout_a.payout_cents),
            (50000, 5000, 45000),
        )
        self.assertEqual(
            (payout_b.total_sales_cents, payout_b.commission_cents, payout_b.payout_cents),
            (30000, 6000, 24000),
        )
        self.assertEqual(payout_a.commission_amount, Decimal('50.00'))
        self.assertEqual(payout_a.payout_amount, Decimal('450.00'))
        self.assertEqual(payout_a.status, 'pending')
        self.assertEqual(payout_a.order_count, 1)
        self.assertEqual(payout_a.period_start, self.start)
        self.assertEqual(payout_a.period_end, self.end)

        statement = VendorStatement.objects.get(payout=payout_a)
        self.assertEqual(statement.lines, [{
            'order_number': order.order_number,
            'delivered_at': timezone.localtime(order.delivered_at).isoformat(),
            'sales_cents': 50000,
            'commission_cents': 5000,
            'payout_cents': 45000,
        }])
        self.assertIn('Statement for Vendor A', statement.summary)
        self.assertIn('Period: 2026-09-01 to 2026-09-30', statement.summary)
        self.assertIn('Payout: ETB 450.00', statement.summary)
        self.assertTrue(statement.statement_number.endswith('-202609'))

    def test_only_orders_delivered_inside_the_period_qualify(self):
        self.delivered_order([(self.product_a, 1)], local_datetime(2026, 9, 30, 23, 59))
        # paid in September, delivered on the boundary
        self.delivered_order(
            [(self.product_a, 2)], local_datetime(2026, 10, 1, 0, 0), paid_at=local_datetime(2026, 9, 20)
        )
        self.delivered_order([(self.product_a, 3)], local_datetime(2026, 8, 31, 23, 59))

        PayoutService.run_payouts_for_period(self.start, self.end)

        payout = VendorPayout.objects.get(vendor=self.vendor_a)
        self.assertEqual(payout.total_sales_cents, 50000)
        self.assertEqual(payout.entry_count, 1)

    def test_paid_but_undelivered_orders_are_excluded(self):
        self.delivered_order(
            [(self.product_a, 1)], local_datetime(2026, 9, 10), status='shipped'
        )

        results = PayoutService.run_payouts_for_period(self.start, self.end)

        self.assertEqual(results['payouts_created'], 0)
        self.assertEqual(results['skipped_no_sales'], 2)
        self.assertFalse(VendorPayout.objects.exists())

    def test_vendors_without_sales_or_approval_get_no_payout(self):
        suspended = create_vendor('Suspended Vendor', commission_rate='0.10', status='suspended')
        self.delivered_order(
            [(create_product(suspended, price_cents=1000), 1)], local_datetime(2026, 9, 10)
        )

        results = PayoutService.run_payouts_for_period(self.start, self.end)

        self.assertEqual(results['payouts_created'], 0)
        self.assertEqual(results['skipped_no_sales'], 2)
        self.assertFalse(VendorPayout.objects.filter(vendor=suspended).exists())

    def test_rerun_skips_existing_payouts(self):
        self.delivered_order([(self.product_a, 1)], local_datetime(2026, 9, 15))
        PayoutService.run_payouts_for_period(self.start, self.end)

        results = PayoutService.run_payouts_for_period(self.start, self.end)

        self.assertEqual(results['payouts_created'], 0)
        self.assertEqual(results['skipped_existing'], 1)
        self.assertEqual(VendorPayout.objects.count(), 1)

    def test_scheduled_run_targets_previous_month(self):
        self.delivered_order([(self.product_b, 2)], local_datetime(2026, 9, 3))

        results = PayoutService.run_monthly_payouts(now=local_datetime(2026, 10, 1, 2, 0))

        self.assertEqual(results['payouts_created'], 1)
        payout = VendorPayout.objects.get()
        self.assertEqual(payout.period_start, self.start)
        self.assertEqual(payout.payout_cents, 48000)

    def test_one_failing_vendor_does_not_stop_the_run(self):
        self.delivered_order(
            [(self.product_a, 1), (self.product_b, 1)], local_datetime(2026, 9, 15)
        )
        original = PayoutService.create_vendor_payout

        def flaky(vendor, start, end):
            if vendor == self.vendor_a:
                raise RuntimeError("statement storage unavailable")
            return original(vendor, start, end)

        with patch.object(PayoutService, 'create_vendor_payout', side_effect=flaky):
            results = PayoutService.run_payouts_for_period(self.start, self.end)

        self.assertFalse(results['success'])
        self.assertEqual(results['payouts_created'], 1)
        self.assertEqual(results['errors'], [
            {'vendor_id': str(self.vendor_a.pk), 'error': 'statement storage unavailable'}
        ])
        self.assertTrue(VendorPayout.objects.filter(vendor=self.vendor_b).exists())
        self.assertFalse(VendorPayout.objects.filter(vendor=self.vendor_a).exists())

    def test_statement_can_be_regenerated(self):
        self.delivered_order([(self.product_a, 1)], local_datetime(2026, 9, 15))
        PayoutService.run_payouts_for_period(self.start, self.end)
        statement = VendorStatement.objects.get()
        VendorStatement.objects.filter(pk=statement.pk).update(summary='', lines=[])

        regenerated = PayoutService.regenerate_statement(statement.pk).unwrap()

        self.assertEqual(regenerated.pk, statement.pk)
        self.assertEqual(len(regenerated.lines), 1)
        self.assertIn('Orders: 1', regenerated.summary)
        self.assertIsInstance(PayoutService.regenerate_statement(uuid.uuid4()).error, NotFoundError)


class PayoutSettlementTestCase(PayoutTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.delivered_order([(self.product_a, 1)], local_datetime(2026, 9, 15))
        PayoutService.run_payouts_for_period(self.start, self.end)
        self.payout = VendorPayout.objects.get(vendor=self.vendor_a)

    def test_mark_paid_settles_ledger_entries(self):
        result = PayoutService.mark_payout_paid(self.payout.pk, 'BANK-001')

        payout = result.unwrap()
        self.assertEqual(payout.status, 'paid')
        self.assertEqual(payout.payment_reference, 'BANK-001')
        self.assertIsNotNone(payout.paid_at)
        entry = CommissionLedgerEntry.objects.get(vendor=self.vendor_a)
        self.assertEqual(entry.status, 'paid')
        self.assertEqual(entry.paid_at, payout.paid_at)

    def test_mark_paid_leaves_refunded_orders_unsettled(self):
        refunded = self.delivered_order([(self.product_a, 1)], local_datetime(2026, 9, 20))
        Order.objects.filter(pk=refunded.pk).update(status='refunded')

        PayoutService.mark_payout_paid(self.payout.pk).unwrap()

        self.assertEqual(self.payout.entry_count, 1)
        refunded_entry = CommissionLedgerEntry.objects.get(order=refunded)
        self.assertEqual(refunded_entry.status, 'recorded')
        self.assertIsNone(refunded_entry.paid_at)
        self.assertEqual(CommissionLedgerEntry.objects.filter(vendor=self.vendor_a, status='paid').count(), 1)

    def test_paid_payout_cannot_be_paid_again(self):
        PayoutService.mark_payout_paid(self.payout.pk).unwrap()

        result = PayoutService.mark_payout_paid(self.payout.pk)

        self.assertIsInstance(result.error, InvalidStatusTransition)

    def test_unknown_payout(self):
        self.assertIsInstance(PayoutService.mark_payout_paid(uuid.uuid4()).error, NotFoundError)

    def test_pending_payouts_and_summary(self):
        self.assertEqual(PayoutService.get_pending_payouts(), [self.payout])

        PayoutService.mark_payout_paid(self.payout.pk).unwrap()
        summary = PayoutService.get_vendor_payout_summary(self.vendor_a.pk)

        self.assertEqual(PayoutService.get_pending_payouts(), [])
        self.assertEqual(summary['paid_total'], Decimal('450.00'))
        self.assertEqual(summary['paid_count'], 1)
        self.assertEqual(summary['pending_total'], Decimal('0.00'))
        self.assertEqual(summary['unsettled_ledger_total'], Decimal('0.00'))
        self.assertEqual(summary['pending_payouts'], [])
        self.assertEqual(summary['recent_paid_payouts'], [self.payout])
        self.assertEqual([statement.payout_id for statement in summary['recent_statements']], [self.payout.pk])

    def test_vendor_statements_latest_first(self):
        self.delivered_order([(self.product_a, 2)], local_datetime(2026, 8, 10))
        PayoutService.run_payouts_for_period(*month_window(2026, 8))

        statements = PayoutService.get_vendor_statements(self.vendor_a.pk)
        latest = PayoutService.get_vendor_statements(self.vendor_a.pk, limit=1)

        self.assertEqual(
            [timezone.localtime(statement.period_start).month for statement in statements], [9, 8]
        )
        self.assertEqual(statements[1].payout.payout_cents, 90000)
        self.assertEqual(latest, statements[:1])
        self.assertEqual(PayoutService.get_vendor_statements(self.vendor_b.pk), [])


class MonthEndCommissionTestCase(PayoutTestMixin, TestCase):

    def test_weighted_average_rate(self):
        """500 at 10% then 300 at 20%: 110 / 800 = 0.1375 against a configured 0.2000"""
        self.delivered_order([(self.product_a, 1)], local_datetime(2026, 9, 5))
        self.vendor_a.commission_rate = Decimal('0.2000')
        self.vendor_a.save()
        cheaper = create_product(self.vendor_a, price_cents=30000)
        self.delivered_order([(cheaper, 1)], local_datetime(2026, 9, 25))

        report = PayoutService.calculate_month_end_commission(self.vendor_a.pk, 2026, 9).unwrap()

        self.assertEqual(report.total_sales, Decimal('800.00'))
        self.assertEqual(report.total_commission, Decimal('110.00'))
        self.assertEqual(report.total_payout, Decimal('690.00'))
        self.assertEqual(report.entry_count, 2)
        self.assertEqual(report.average_rate, Decimal('0.1375'))
        self.assertEqual(report.configured_rate, Decimal('0.2000'))
        self.assertEqual(report.rate_drift, Decimal('-0.0625'))

    def test_month_is_selected_by_payment_date(self):
        self.delivered_order(
            [(self.product_a, 1)], local_datetime(2026, 10, 2), paid_at=local_datetime(2026, 9, 28)
        )

        september = PayoutService.calculate_month_end_commission(self.vendor_a.pk, 2026, 9).unwrap()
        october = PayoutService.calculate_month_end_commission(self.vendor_a.pk, 2026, 10).unwrap()

        self.assertEqual(september.entry_count, 1)
        self.assertEqual(october.entry_count, 0)

    def test_month_without_sales_reports_configured_rate(self):
        report = PayoutService.calculate_month_end_commission(self.vendor_b.pk, 2026, 9).unwrap()

        self.assertEqual(report.total_sales, Decimal('0.00'))
        self.assertEqual(report.entry_count, 0)
        self.assertEqual(report.average_rate, Decimal('0.2000'))
        self.assertEqual(report.rate_drift, Decimal('0'))

    def test_invalid_month_and_unknown_vendor(self):
        self.assertIsInstance(
            PayoutService.calculate_month_end_commission(self.vendor_a.pk, 2026, 13).error, ValidationError
        )
        self.assertIsInstance(
            PayoutService.calculate_month_end_commission(uuid.uuid4(), 2026, 9).error, NotFoundError
        )
