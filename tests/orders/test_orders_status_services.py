"""
Order status machine, payment confirmation and cancel/refund compensation.
"""

import uuid
from decimal import Decimal

from django.test import TestCase

from apps.common.types import InvalidStatusTransition, OrderNotFound
from apps.giftcards.models import GiftCardTransaction
from apps.loyalty.models import LoyaltyTransaction
from apps.loyalty.services import LoyaltyService
from apps.orders.checkout import CartItem, CheckoutRequest, CheckoutService
from apps.orders.models import OrderStatusHistory
from apps.orders.services import (
    OrderNumberingService,
    OrderQueryService,
    OrderStatusService,
    StatusChangeData,
)
from apps.payouts.models import CommissionLedgerEntry
from tests.factories.marketplace_factories import (
    create_gift_card,
    create_loyalty_account,
    create_product,
    create_user,
    create_vendor,
)


def advance(order, *statuses):
    for new_status in statuses:
        OrderStatusService.update_order_status(order.pk, StatusChangeData(new_status)).unwrap()
    order.refresh_from_db()
    return order


class OrderNumberingTestCase(TestCase):

    def test_order_number_format(self):
        number = OrderNumberingService.generate_order_number()

        prefix, date_part, suffix = number.split('-')
        self.assertEqual(prefix, 'MKT')
        self.assertEqual(len(date_part), 8)
        self.assertEqual(len(suffix), 8)

    def test_order_numbers_are_unique(self):
        numbers = {OrderNumberingService.generate_order_number() for _ in range(50)}
        self.assertEqual(len(numbers), 50)


class OrderStatusServiceTestCase(TestCase):

    def setUp(self):
        self.user = create_user(email='buyer@example.com')
        self.vendor_a = create_vendor('Vendor A', commission_rate='0.10')
        self.vendor_b = create_vendor('Vendor B', commission_rate='0.20')
        self.product_a = create_product(self.vendor_a, price_cents=50000, stock_quantity=10)
        self.product_b = create_product(self.vendor_b, price_cents=30000, stock_quantity=10)
        self.account = create_loyalty_account(self.user, points=500)
        self.card = create_gift_card(self.user, balance_cents=10000)

        result = CheckoutService(notifier=lambda order: None).place_order(CheckoutRequest(
            user_id=self.user.pk,
            user_email=self.user.email,
            items=[CartItem(self.product_a.pk, 1), CartItem(self.product_b.pk, 1)],
            payment_method='card',
            loyalty_points_to_redeem=200,
            gift_card_code=self.card.code,
            gift_card_amount=Decimal('100'),
        ))
        self.order = result.unwrap()

    def test_valid_transition_table(self):
        self.assertTrue(OrderStatusService.is_valid_status_transition('pending', 'paid'))
        self.assertTrue(OrderStatusService.is_valid_status_transition('shipped', 'delivered'))
        self.assertFalse(OrderStatusService.is_valid_status_transition('pending', 'delivered'))
        self.assertFalse(OrderStatusService.is_valid_status_transition('delivered', 'cancelled'))
        self.assertFalse(OrderStatusService.is_valid_status_transition('refunded', 'paid'))

    def test_invalid_transition_is_rejected(self):
        result = OrderStatusService.update_order_status(self.order.pk, StatusChangeData('delivered'))

        self.assertIsInstance(result.error, InvalidStatusTransition)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'pending')

    def test_unknown_order(self):
        result = OrderStatusService.update_order_status(uuid.uuid4(), StatusChangeData('paid'))
        self.assertIsInstance(result.error, OrderNotFound)

        result = OrderStatusService.confirm_payment('not-a-uuid')
        self.assertIsInstance(result.error, OrderNotFound)

    def test_confirm_payment_records_commission(self):
        result = OrderStatusService.confirm_payment(self.order.pk, 'PAY-123')

        confirmation = result.unwrap()
        self.assertEqual(confirmation.ledger_entries_created, 2)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'paid')
        self.assertEqual(self.order.payment_reference, 'PAY-123')
        self.assertIsNotNone(self.order.paid_at)
        self.assertEqual(CommissionLedgerEntry.objects.filter(order=self.order).count(), 2)
        self.assertTrue(OrderStatusHistory.objects.filter(
            order=self.order, old_status='pending', new_status='paid'
        ).exists())

    def test_duplicate_payment_confirmation_is_harmless(self):
        OrderStatusService.confirm_payment(self.order.pk, 'PAY-123').unwrap()

        repeat = OrderStatusService.confirm_payment(self.order.pk, 'PAY-123').unwrap()

        self.assertEqual(repeat.ledger_entries_created, 0)
        self.assertEqual(CommissionLedgerEntry.objects.filter(order=self.order).count(), 2)
        self.assertEqual(OrderStatusHistory.objects.filter(order=self.order, new_status='paid').count(), 1)

    def test_payment_for_cancelled_order_is_rejected(self):
        advance(self.order, 'cancelled')

        result = OrderStatusService.confirm_payment(self.order.pk)

        self.assertIsInstance(result.error, InvalidStatusTransition)
        self.assertFalse(CommissionLedgerEntry.objects.exists())

    def test_delivery_awards_purchase_points(self):
        OrderStatusService.confirm_payment(self.order.pk).unwrap()
        order = advance(self.order, 'confirmed', 'processing', 'fulfilled', 'shipped', 'delivered')

        self.assertIsNotNone(order.delivered_at)
        purchase = LoyaltyTransaction.objects.get(order=order, transaction_type='purchase')
        # total 800 + 120 tax - 20 points - 100 gift card = 800; bronze earns 1 per 10
        self.assertEqual(order.total_cents, 80000)
        self.assertEqual(purchase.points, 80)
        self.account.refresh_from_db()
        self.assertEqual(self.account.points, 300 + 80)
        self.assertEqual(self.account.lifetime_points, 80)

    def test_cancel_before_shipping_restocks_and_restores_instruments(self):
        OrderStatusService.confirm_payment(self.order.pk).unwrap()

        order = advance(self.order, 'cancelled')

        self.assertIsNotNone(order.cancelled_at)
        self.product_a.refresh_from_db()
        self.product_b.refresh_from_db()
        self.assertEqual(self.product_a.stock_quantity, 10)
        self.assertEqual(self.product_b.stock_quantity, 10)
        self.account.refresh_from_db()
        self.assertEqual(self.account.points, 500)
        self.assertEqual(self.account.lifetime_points, 0)
        self.card.refresh_from_db()
        self.assertEqual(self.card.balance_cents, 10000)
        self.assertEqual(self.card.status, 'active')

    def test_refund_after_delivery_restores_instruments_once(self):
        OrderStatusService.confirm_payment(self.order.pk).unwrap()
        order = advance(self.order, 'confirmed', 'processing', 'fulfilled', 'shipped', 'delivered', 'refunded')

        self.assertIsNotNone(order.refunded_at)
        self.product_a.refresh_from_db()
        self.assertEqual(self.product_a.stock_quantity, 9)
        self.card.refresh_from_db()
        self.assertEqual(self.card.balance_cents, 10000)
        self.assertEqual(GiftCardTransaction.objects.filter(order=order, transaction_type='refund').count(), 1)
        refund = LoyaltyTransaction.objects.get(order=order, transaction_type='refund')
        self.assertEqual(refund.points, 200)
        self.assertEqual(refund.lifetime_points_delta, 0)

    def test_refund_keeps_purchase_points_until_adjusted(self):
        OrderStatusService.confirm_payment(self.order.pk).unwrap()
        order = advance(self.order, 'confirmed', 'processing', 'fulfilled', 'shipped', 'delivered', 'refunded')

        self.account.refresh_from_db()
        # 500 - 200 redeemed + 80 earned + 200 restored
        self.assertEqual(self.account.points, 580)
        self.assertEqual(self.account.lifetime_points, 80)
        self.assertEqual(LoyaltyTransaction.objects.filter(order=order, transaction_type='purchase').count(), 1)
        self.assertFalse(LoyaltyTransaction.objects.filter(order=order, points__lt=0).exclude(
            transaction_type='redeem'
        ).exists())

        account = LoyaltyService.adjust_lifetime_points(self.user.pk, -80, f"Refund of {order.order_number}")

        self.assertEqual(account.lifetime_points, 0)
        self.assertEqual(account.points, 580)

    def test_terminal_status_cannot_change(self):
        advance(self.order, 'cancelled')

        result = OrderStatusService.update_order_status(self.order.pk, StatusChangeData('paid'))

        self.assertIsInstance(result.error, InvalidStatusTransition)


class OrderQueryServiceTestCase(TestCase):

    def setUp(self):
        self.user = create_user()
        vendor = create_vendor()
        self.product = create_product(vendor, stock_quantity=3)
        self.order = CheckoutService(notifier=lambda order: None).place_order(CheckoutRequest(
            user_id=self.user.pk,
            items=[CartItem(self.product.pk, 1)],
            payment_method='card',
        )).unwrap()

    def test_owner_can_read_order(self):
        result = OrderQueryService.get_order_with_items(self.order.pk, user=self.user)
        self.assertEqual(result.unwrap().items.count(), 1)

    def test_other_user_gets_not_found(self):
        result = OrderQueryService.get_order_with_items(self.order.pk, user=create_user())
        self.assertIsInstance(result.error, OrderNotFound)

    def test_orders_for_user(self):
        self.assertEqual(OrderQueryService.get_orders_for_user(self.user), [self.order])
        self.assertEqual(OrderQueryService.get_orders_for_user(self.user, status='paid'), [])
