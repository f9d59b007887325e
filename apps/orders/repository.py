"""
Data access for the checkout engine.

CheckoutService talks to persistence only through the CheckoutRepository
protocol. DjangoCheckoutRepository is the production implementation; every
write it performs is a conditional update so that the row-level lock taken by
the database is the only concurrency control needed.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Collection
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Any, Protocol

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.giftcards.services import GiftCardService, GiftCardSnapshot
from apps.loyalty.models import LoyaltyAccount
from apps.loyalty.services import LoyaltyService
from apps.products.models import Product

from .models import Order, OrderItem, OrderStatusHistory

logger = logging.getLogger(__name__)

# ===============================================================================
# CHECKOUT DATA OBJECTS
# ===============================================================================

@dataclass(frozen=True)
class ProductSnapshot:
    """Authoritative product data read at the start of checkout"""
    id: Any
    name: str
    sku: str
    vendor_id: Any
    price_cents: int
    stock_quantity: int


@dataclass(frozen=True)
class CheckoutLine:
    product: ProductSnapshot
    quantity: int

    @property
    def line_total_cents(self) -> int:
        return self.product.price_cents * self.quantity


@dataclass
class OrderDraft:
    """Fully priced order, ready to be written inside the checkout transaction"""
    order_number: str
    user_id: Any
    payment_method: str
    currency: str
    lines: list[CheckoutLine]
    subtotal_cents: int
    shipping_cents: int
    tax_cents: int
    loyalty_points: int = 0
    loyalty_discount_cents: int = 0
    gift_card_code: str = ''
    gift_card_amount_cents: int = 0
    shipping_address: dict[str, Any] = field(default_factory=dict)
    billing_address: dict[str, Any] = field(default_factory=dict)
    notes: str = ''

    @property
    def discount_cents(self) -> int:
        return self.loyalty_discount_cents + self.gift_card_amount_cents

    @property
    def total_cents(self) -> int:
        return max(0, self.subtotal_cents - self.discount_cents + self.shipping_cents + self.tax_cents)


class PlacedOrder(Protocol):
    id: Any
    order_number: str
    user_id: Any
    total_cents: int


class CheckoutRepository(Protocol):
    """Persistence operations the checkout engine depends on"""

    def atomic(self) -> AbstractContextManager[Any]: ...

    def get_products(self, product_ids: Collection[Any]) -> dict[str, ProductSnapshot]: ...

    def get_points_balance(self, user_id: Any) -> int: ...

    def get_gift_card(self, code: str) -> GiftCardSnapshot | None: ...

    def decrement_stock(self, product_id: Any, quantity: int) -> bool: ...

    def create_order(self, draft: OrderDraft) -> PlacedOrder: ...

    def redeem_points(self, user_id: Any, points: int, order: PlacedOrder) -> bool: ...

    def debit_gift_card(self, gift_card_id: Any, amount_cents: int, order: PlacedOrder) -> bool: ...


# ===============================================================================
# DJANGO ORM IMPLEMENTATION
# ===============================================================================

def _parse_uuid(value: Any) -> uuid.UUID | None:
    try:
        return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


class DjangoCheckoutRepository:
    """CheckoutRepository backed by the Django ORM"""

    def atomic(self) -> AbstractContextManager[Any]:
        return transaction.atomic()

    def get_products(self, product_ids: Collection[Any]) -> dict[str, ProductSnapshot]:
        parsed = [pid for pid in (_parse_uuid(value) for value in product_ids) if pid is not None]
        products = Product.objects.filter(pk__in=parsed, is_active=True)
        return {
            str(product.pk): ProductSnapshot(
                id=product.pk,
                name=product.name,
                sku=product.sku,
                vendor_id=product.vendor_id,
                price_cents=product.price_cents,
                stock_quantity=product.stock_quantity,
            )
            for product in products
        }

    def get_points_balance(self, user_id: Any) -> int:
        balance = LoyaltyAccount.objects.filter(user_id=user_id).values_list('points', flat=True).first()
        return balance or 0

    def get_gift_card(self, code: str) -> GiftCardSnapshot | None:
        return GiftCardService.get_snapshot(code)

    def decrement_stock(self, product_id: Any, quantity: int) -> bool:
        updated = Product.objects.filter(pk=product_id, stock_quantity__gte=quantity).update(
            stock_quantity=F('stock_quantity') - quantity,
            updated_at=timezone.now(),
        )
        return updated == 1

    def create_order(self, draft: OrderDraft) -> Order:
        order = Order.objects.create(
            order_number=draft.order_number,
            user_id=draft.user_id,
            status='pending',
            payment_method=draft.payment_method,
            currency=draft.currency,
            subtotal_cents=draft.subtotal_cents,
            discount_cents=draft.discount_cents,
            shipping_cents=draft.shipping_cents,
            tax_cents=draft.tax_cents,
            total_cents=draft.total_cents,
            loyalty_points_redeemed=draft.loyalty_points,
            loyalty_discount_cents=draft.loyalty_discount_cents,
            gift_card_code=draft.gift_card_code,
            gift_card_amount_cents=draft.gift_card_amount_cents,
            shipping_address=draft.shipping_address,
            billing_address=draft.billing_address,
            notes=draft.notes,
        )
        OrderItem.objects.bulk_create([
            OrderItem(
                order=order,
                product_id=line.product.id,
                vendor_id=line.product.vendor_id,
                product_name=line.product.name,
                product_sku=line.product.sku,
                unit_price_cents=line.product.price_cents,
                quantity=line.quantity,
                line_total_cents=line.line_total_cents,
            )
            for line in draft.lines
        ])
        OrderStatusHistory.objects.create(
            order=order,
            old_status='',
            new_status='pending',
            notes='Order created at checkout',
        )
        return order

    def redeem_points(self, user_id: Any, points: int, order: PlacedOrder) -> bool:
        return LoyaltyService.redeem_points(user_id, points, order)

    def debit_gift_card(self, gift_card_id: Any, amount_cents: int, order: PlacedOrder) -> bool:
        return GiftCardService.debit_for_order(gift_card_id, amount_cents, order)
