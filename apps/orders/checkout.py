"""
Checkout engine for the marketplace.

Turns a cart into an order in a single atomic write:
- prices, SKUs and vendors come from the product table, never from the client
- stock is taken with conditional decrements, so concurrent checkouts cannot oversell
- loyalty points and gift card balance are spent inside the same transaction
- the confirmation notification is dispatched only after commit and never fails the order
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from django.db import DatabaseError
from django.utils import timezone

from apps.common.money import apply_rate_cents, format_amount, get_currency, get_vat_rate, to_cents
from apps.common.types import (
    BusinessError,
    ConcurrentStockConflict,
    Err,
    InsufficientGiftCardBalance,
    InsufficientPoints,
    InsufficientStock,
    Ok,
    ProductNotFound,
    Result,
    TransactionFailure,
    ValidationError,
)
from apps.giftcards.services import GiftCardSnapshot, check_gift_card_redeemable, normalize_code
from apps.loyalty.points import calculate_redemption_cents

from .models import Order
from .repository import CheckoutLine, CheckoutRepository, DjangoCheckoutRepository, OrderDraft, PlacedOrder
from .services import OrderNumberingService

logger = logging.getLogger(__name__)

PAYMENT_METHODS = frozenset(choice for choice, _label in Order.PAYMENT_METHOD_CHOICES)

# ===============================================================================
# CHECKOUT PARAMETER OBJECTS
# ===============================================================================

@dataclass
class CartItem:
    product_id: Any
    quantity: int


@dataclass
class CheckoutRequest:
    """Parameter object for placing an order"""
    user_id: Any
    items: list[CartItem]
    payment_method: str
    user_email: str = ''
    shipping_address: dict[str, Any] = field(default_factory=dict)
    billing_address: dict[str, Any] = field(default_factory=dict)
    loyalty_points_to_redeem: int = 0
    gift_card_code: str = ''
    gift_card_amount: Decimal | None = None
    shipping_amount: Decimal = Decimal('0')
    notes: str = ''


# ===============================================================================
# CHECKOUT SERVICE
# ===============================================================================

class CheckoutService:
    """Order transaction engine"""

    def __init__(
        self,
        repository: CheckoutRepository | None = None,
        notifier: Callable[[PlacedOrder], Any] | None = None,
        vat_rate: Decimal | None = None,
    ) -> None:
        self.repository = repository if repository is not None else DjangoCheckoutRepository()
        if notifier is None:
            from apps.notifications.services import OrderNotificationService  # noqa: PLC0415
            notifier = OrderNotificationService.send_order_confirmation
        self.notifier = notifier
        self.vat_rate = vat_rate if vat_rate is not None else get_vat_rate()

    def place_order(self, request: CheckoutRequest) -> Result[PlacedOrder, BusinessError]:
        """
        Validate, price and persist an order.
        Returns Err with the specific BusinessError on any failure; in that case
        nothing was written (no order, no stock change, no instrument spend).
        """
        try:
            quantities = self._validate_request(request)
            draft, gift_card = self._prepare_draft(request, quantities)
            order = self._commit(request, draft, gift_card)
        except BusinessError as e:
            logger.warning(f"⚠️ [Checkout] Rejected checkout for user {request.user_id}: {e}")
            return Err(e)
        except DatabaseError as e:
            logger.exception(f"🔥 [Checkout] Persistence failure for user {request.user_id}: {e}")
            return Err(TransactionFailure(f"Order could not be saved: {e}"))

        logger.info(
            f"✅ [Checkout] Order {order.order_number} created for user {request.user_id} "
            f"(total {format_amount(order.total_cents)})"
        )
        self._notify(order)
        return Ok(order)

    # ---------------------------------------------------------------------------
    # Validation & pricing (read-only)
    # ---------------------------------------------------------------------------

    def _validate_request(self, request: CheckoutRequest) -> dict[str, int]:
        """Reject malformed input before anything is read or written; merge duplicate lines"""
        if request.user_id is None:
            raise ValidationError('user_id', "A user is required")
        if not request.items:
            raise ValidationError('items', "Cart is empty")
        if request.payment_method not in PAYMENT_METHODS:
            raise ValidationError('payment_method', f"Unsupported payment method: {request.payment_method}")
        if not isinstance(request.loyalty_points_to_redeem, int) or request.loyalty_points_to_redeem < 0:
            raise ValidationError('loyalty_points_to_redeem', "Points to redeem must be a non-negative integer")
        if request.shipping_amount < 0:
            raise ValidationError('shipping_amount', "Shipping amount cannot be negative")
        if request.gift_card_amount is not None:
            if not request.gift_card_code:
                raise ValidationError('gift_card_code', "Gift card code is required with an amount")
            if request.gift_card_amount <= 0:
                raise ValidationError('gift_card_amount', "Gift card amount must be positive")

        quantities: dict[str, int] = {}
        for item in request.items:
            if not isinstance(item.quantity, int) or item.quantity < 1:
                raise ValidationError('quantity', f"Invalid quantity for product {item.product_id}")
            key = str(item.product_id)
            quantities[key] = quantities.get(key, 0) + item.quantity
        return quantities

    def _prepare_draft(
        self, request: CheckoutRequest, quantities: dict[str, int]
    ) -> tuple[OrderDraft, GiftCardSnapshot | None]:
        products = self.repository.get_products(list(quantities))
        missing = [pid for pid in quantities if pid not in products]
        if missing:
            raise ProductNotFound(missing)

        lines: list[CheckoutLine] = []
        for pid, quantity in quantities.items():
            product = products[pid]
            if product.stock_quantity < quantity:
                raise InsufficientStock(product.id, product.name, product.stock_quantity, quantity)
            lines.append(CheckoutLine(product=product, quantity=quantity))

        subtotal_cents = sum(line.line_total_cents for line in lines)
        shipping_cents = to_cents(request.shipping_amount)
        tax_cents = apply_rate_cents(subtotal_cents, self.vat_rate)
        payable_cents = subtotal_cents + shipping_cents + tax_cents

        points = request.loyalty_points_to_redeem
        loyalty_discount_cents = 0
        if points:
            balance = self.repository.get_points_balance(request.user_id)
            if balance < points:
                raise InsufficientPoints(available=balance, requested=points)
            loyalty_discount_cents = calculate_redemption_cents(points)
            if loyalty_discount_cents > payable_cents:
                raise ValidationError('loyalty_points_to_redeem', "Redeemed points exceed the order amount")

        gift_card = None
        gift_card_code = ''
        gift_card_amount_cents = 0
        if request.gift_card_code:
            gift_card_code = normalize_code(request.gift_card_code)
            requested_cents = to_cents(request.gift_card_amount) if request.gift_card_amount is not None else 0
            snapshot = self.repository.get_gift_card(gift_card_code)
            check_gift_card_redeemable(
                snapshot, gift_card_code, request.user_id, request.user_email, requested_cents, timezone.now()
            )
            remaining_cents = payable_cents - loyalty_discount_cents
            if request.gift_card_amount is None:
                requested_cents = snapshot.balance_cents
            gift_card_amount_cents = min(requested_cents, remaining_cents)
            if gift_card_amount_cents > 0:
                gift_card = snapshot

        draft = OrderDraft(
            order_number=OrderNumberingService.generate_order_number(),
            user_id=request.user_id,
            payment_method=request.payment_method,
            currency=get_currency(),
            lines=lines,
            subtotal_cents=subtotal_cents,
            shipping_cents=shipping_cents,
            tax_cents=tax_cents,
            loyalty_points=points,
            loyalty_discount_cents=loyalty_discount_cents,
            gift_card_code=gift_card_code if gift_card else '',
            gift_card_amount_cents=gift_card_amount_cents if gift_card else 0,
            shipping_address=dict(request.shipping_address),
            billing_address=dict(request.billing_address),
            notes=request.notes,
        )
        return draft, gift_card

    # ---------------------------------------------------------------------------
    # Atomic write
    # ---------------------------------------------------------------------------

    def _commit(self, request: CheckoutRequest, draft: OrderDraft, gift_card: GiftCardSnapshot | None) -> PlacedOrder:
        repository = self.repository
        with repository.atomic():
            # Stable lock order across concurrent checkouts
            for line in sorted(draft.lines, key=lambda item: str(item.product.id)):
                if not repository.decrement_stock(line.product.id, line.quantity):
                    current = repository.get_products([line.product.id]).get(str(line.product.id))
                    raise ConcurrentStockConflict(
                        line.product.id,
                        line.product.name,
                        current.stock_quantity if current else 0,
                        line.quantity,
                    )

            order = repository.create_order(draft)

            if draft.loyalty_points and not repository.redeem_points(request.user_id, draft.loyalty_points, order):
                raise InsufficientPoints(
                    available=repository.get_points_balance(request.user_id),
                    requested=draft.loyalty_points,
                )

            if gift_card is not None and not repository.debit_gift_card(
                gift_card.id, draft.gift_card_amount_cents, order
            ):
                check_gift_card_redeemable(
                    repository.get_gift_card(gift_card.code),
                    gift_card.code,
                    request.user_id,
                    request.user_email,
                    draft.gift_card_amount_cents,
                    timezone.now(),
                )
                raise InsufficientGiftCardBalance(gift_card.balance_cents, draft.gift_card_amount_cents)

        return order

    def _notify(self, order: PlacedOrder) -> None:
        try:
            self.notifier(order)
        except Exception as e:  # the order is committed; dispatch failures are only logged
            logger.exception(f"🔥 [Checkout] Confirmation dispatch failed for order {order.order_number}: {e}")
