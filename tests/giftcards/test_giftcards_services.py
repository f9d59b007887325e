"""
Gift card issuance, redemption checks, debit, restoration and expiry.
"""

import re
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase, override_settings
from django.utils import timezone

from apps.common.types import (
    GiftCardExpired,
    GiftCardInactive,
    GiftCardUnauthorized,
    InsufficientGiftCardBalance,
    InvalidGiftCard,
    ValidationError,
)
from apps.giftcards.models import GiftCard, GiftCardTransaction
from apps.giftcards.services import (
    GiftCardIssueData,
    GiftCardService,
    GiftCardSnapshot,
    check_gift_card_redeemable,
    generate_gift_card_code,
)
from apps.giftcards.tasks import expire_gift_cards, expire_gift_cards_async
from tests.factories.marketplace_factories import (
    OrderCreationRequest,
    create_gift_card,
    create_order,
    create_product,
    create_user,
    create_vendor,
)

CODE_PATTERN = re.compile(r'^[A-Z0-9]{4}-[A-Z0-9]{4}-[A-Z0-9]{4}-[A-Z0-9]{4}$')


class GiftCardIssueTestCase(TestCase):

    def setUp(self):
        self.purchaser = create_user(email='giver@example.com')

    def test_generated_code_format(self):
        self.assertRegex(generate_gift_card_code(), CODE_PATTERN)

    def test_issue_gift_card(self):
        result = GiftCardService.issue_gift_card(GiftCardIssueData(
            purchaser=self.purchaser, amount=Decimal('500'), recipient_email='Friend@Example.com', message='Enjoy'
        ))

        card = result.unwrap()
        self.assertRegex(card.code, CODE_PATTERN)
        self.assertEqual(card.amount_cents, 50000)
        self.assertEqual(card.balance_cents, 50000)
        self.assertEqual(card.status, 'active')
        self.assertEqual(card.recipient_email, 'friend@example.com')
        self.assertIsNone(card.recipient)
        self.assertGreater(card.expires_at, timezone.now() + timedelta(days=364))
        self.assertTrue(GiftCardTransaction.objects.filter(
            gift_card=card, transaction_type='purchase', amount_cents=50000
        ).exists())

    def test_recipient_account_is_linked_by_email(self):
        recipient = create_user(email='friend@example.com')

        card = GiftCardService.issue_gift_card(GiftCardIssueData(
            purchaser=self.purchaser, amount=Decimal('100'), recipient_email='FRIEND@example.com'
        )).unwrap()

        self.assertEqual(card.recipient, recipient)

    def test_amount_bounds(self):
        for amount in (Decimal('49.99'), Decimal('10000.01')):
            with self.subTest(amount=amount):
                result = GiftCardService.issue_gift_card(GiftCardIssueData(purchaser=self.purchaser, amount=amount))
                self.assertIsInstance(result.error, ValidationError)
        self.assertFalse(GiftCard.objects.exists())

    @override_settings(GIFT_CARD_MIN_AMOUNT=10)
    def test_amount_bounds_follow_settings(self):
        result = GiftCardService.issue_gift_card(GiftCardIssueData(purchaser=self.purchaser, amount=Decimal('20')))
        self.assertTrue(result.is_ok())


class GiftCardRedeemabilityTestCase(TestCase):
    """Failure reasons are reported in a fixed order"""

    def setUp(self):
        self.now = timezone.now()

    def snapshot(self, **overrides):
        data = {
            'id': 1,
            'code': 'AAAA-BBBB-CCCC-DDDD',
            'status': 'active',
            'balance_cents': 10000,
            'expires_at': self.now + timedelta(days=10),
        }
        data.update(overrides)
        return GiftCardSnapshot(**data)

    def check(self, card, amount_cents=5000, user_id=1, user_email='buyer@example.com'):
        check_gift_card_redeemable(card, 'AAAA-BBBB-CCCC-DDDD', user_id, user_email, amount_cents, self.now)

    def test_valid_card_passes(self):
        self.check(self.snapshot())

    def test_unknown_code(self):
        with self.assertRaises(InvalidGiftCard):
            self.check(None)

    def test_inactive_reported_before_expiry(self):
        with self.assertRaises(GiftCardInactive):
            self.check(self.snapshot(status='redeemed', expires_at=self.now - timedelta(days=1)))

    def test_expired(self):
        with self.assertRaises(GiftCardExpired):
            self.check(self.snapshot(expires_at=self.now - timedelta(seconds=1)))

    def test_recipient_restriction(self):
        with self.assertRaises(GiftCardUnauthorized):
            self.check(self.snapshot(recipient_id=2))
        with self.assertRaises(GiftCardUnauthorized):
            self.check(self.snapshot(recipient_email='someone@example.com'))
        self.check(self.snapshot(recipient_email='BUYER@example.com'))

    def test_insufficient_balance(self):
        with self.assertRaises(InsufficientGiftCardBalance) as ctx:
            self.check(self.snapshot(), amount_cents=10001)
        self.assertEqual(ctx.exception.balance_cents, 10000)
        self.assertEqual(ctx.exception.requested_cents, 10001)


class GiftCardBalanceMovementTestCase(TestCase):

    def setUp(self):
        self.user = create_user()
        product = create_product(create_vendor(), price_cents=50000)
        self.order = create_order(OrderCreationRequest(user=self.user, lines=[(product, 1)]))
        self.card = create_gift_card(self.user, balance_cents=20000)

    def test_partial_debit_keeps_card_active(self):
        self.assertTrue(GiftCardService.debit_for_order(self.card.pk, 5000, self.order))

        self.card.refresh_from_db()
        self.assertEqual(self.card.balance_cents, 15000)
        self.assertEqual(self.card.status, 'active')

    def test_debit_refuses_overdraw_and_expired_cards(self):
        self.assertFalse(GiftCardService.debit_for_order(self.card.pk, 20001, self.order))

        GiftCard.objects.filter(pk=self.card.pk).update(expires_at=timezone.now() - timedelta(days=1))
        self.assertFalse(GiftCardService.debit_for_order(self.card.pk, 100, self.order))

        self.card.refresh_from_db()
        self.assertEqual(self.card.balance_cents, 20000)
        self.assertFalse(GiftCardTransaction.objects.filter(transaction_type='redeem').exists())

    def test_restore_reactivates_redeemed_card(self):
        GiftCardService.debit_for_order(self.card.pk, 20000, self.order)

        restored = GiftCardService.restore_for_order(self.order)

        self.assertEqual(restored, 20000)
        self.card.refresh_from_db()
        self.assertEqual(self.card.balance_cents, 20000)
        self.assertEqual(self.card.status, 'active')
        self.assertIsNone(self.card.redeemed_at)
        self.assertEqual(GiftCardService.restore_for_order(self.order), 0)

    def test_restore_to_expired_card_keeps_it_expired(self):
        GiftCardService.debit_for_order(self.card.pk, 20000, self.order)
        GiftCard.objects.filter(pk=self.card.pk).update(expires_at=timezone.now() - timedelta(days=1))

        GiftCardService.restore_for_order(self.order)

        self.card.refresh_from_db()
        self.assertEqual(self.card.balance_cents, 20000)
        self.assertEqual(self.card.status, 'expired')

    def test_check_balance_visibility(self):
        self.assertEqual(GiftCardService.check_balance(self.card.code.lower(), self.user).unwrap(), self.card)
        self.assertIsInstance(GiftCardService.check_balance(self.card.code, create_user()).error, GiftCardUnauthorized)
        self.assertIsInstance(GiftCardService.check_balance('ZZZZ-ZZZZ-ZZZZ-ZZZZ', self.user).error, InvalidGiftCard)


class GiftCardExpiryTestCase(TestCase):

    def test_expiry_sweep(self):
        user = create_user()
        stale = create_gift_card(user, expires_at=timezone.now() - timedelta(minutes=1))
        fresh = create_gift_card(user)
        spent = create_gift_card(user, status='redeemed', expires_at=timezone.now() - timedelta(days=3))

        result = expire_gift_cards()

        self.assertEqual(result, {'success': True, 'expired_cards': 1})
        stale.refresh_from_db()
        fresh.refresh_from_db()
        spent.refresh_from_db()
        self.assertEqual(stale.status, 'expired')
        self.assertEqual(fresh.status, 'active')
        self.assertEqual(spent.status, 'redeemed')

    def test_async_sweep_is_queued(self):
        with patch('apps.giftcards.tasks.async_task', return_value='task-2') as mock_async:
            self.assertEqual(expire_gift_cards_async(), 'task-2')

        mock_async.assert_called_once_with('apps.giftcards.tasks.expire_gift_cards', timeout=300)
