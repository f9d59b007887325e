"""
In-memory CheckoutRepository for exercising the checkout engine without a database.

A single lock stands in for the database transaction: writes inside atomic()
are serialized and rolled back from a snapshot if the block raises.
"""

from __future__ import annotations

import copy
import threading
import uuid
from collections.abc import Collection, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import timedelta
from typing import Any

from django.utils import timezone

from apps.giftcards.services import GiftCardSnapshot
from apps.orders.repository import OrderDraft, ProductSnapshot


@dataclass
class FakeOrder:
    id: Any
    order_number: str
    user_id: Any
    total_cents: int
    draft: OrderDraft


@dataclass
class InMemoryState:
    products: dict[str, ProductSnapshot] = field(default_factory=dict)
    points: dict[Any, int] = field(default_factory=dict)
    gift_cards: dict[str, GiftCardSnapshot] = field(default_factory=dict)
    orders: list[FakeOrder] = field(default_factory=list)


class InMemoryCheckoutRepository:
    """CheckoutRepository over plain dicts, safe to share between threads"""

    def __init__(self, commit_barrier: threading.Barrier | None = None) -> None:
        self.state = InMemoryState()
        self._lock = threading.RLock()
        self._commit_barrier = commit_barrier

    # Seeding helpers

    def add_product(self, price_cents: int, stock_quantity: int, vendor_id: Any = 'vendor-1',
                    name: str = 'Widget') -> ProductSnapshot:
        product = ProductSnapshot(
            id=uuid.uuid4(),
            name=name,
            sku=f'SKU-{len(self.state.products) + 1}',
            vendor_id=vendor_id,
            price_cents=price_cents,
            stock_quantity=stock_quantity,
        )
        self.state.products[str(product.id)] = product
        return product

    def add_gift_card(self, code: str, balance_cents: int, status: str = 'active',
                      recipient_id: Any = None, recipient_email: str = '') -> GiftCardSnapshot:
        card = GiftCardSnapshot(
            id=uuid.uuid4(),
            code=code,
            status=status,
            balance_cents=balance_cents,
            expires_at=timezone.now() + timedelta(days=30),
            recipient_id=recipient_id,
            recipient_email=recipient_email,
        )
        self.state.gift_cards[code] = card
        return card

    def stock_of(self, product: ProductSnapshot) -> int:
        return self.state.products[str(product.id)].stock_quantity

    # CheckoutRepository protocol

    @contextmanager
    def atomic(self) -> Iterator[None]:
        if self._commit_barrier is not None:
            self._commit_barrier.wait(timeout=5)
        with self._lock:
            snapshot = copy.deepcopy(self.state)
            try:
                yield
            except BaseException:
                self.state = snapshot
                raise

    def get_products(self, product_ids: Collection[Any]) -> dict[str, ProductSnapshot]:
        with self._lock:
            return {str(pid): self.state.products[str(pid)] for pid in product_ids if str(pid) in self.state.products}

    def get_points_balance(self, user_id: Any) -> int:
        return self.state.points.get(user_id, 0)

    def get_gift_card(self, code: str) -> GiftCardSnapshot | None:
        return self.state.gift_cards.get(code)

    def decrement_stock(self, product_id: Any, quantity: int) -> bool:
        key = str(product_id)
        product = self.state.products.get(key)
        if product is None or product.stock_quantity < quantity:
            return False
        self.state.products[key] = replace(product, stock_quantity=product.stock_quantity - quantity)
        return True

    def create_order(self, draft: OrderDraft) -> FakeOrder:
        order = FakeOrder(
            id=uuid.uuid4(),
            order_number=draft.order_number,
            user_id=draft.user_id,
            total_cents=draft.total_cents,
            draft=draft,
        )
        self.state.orders.append(order)
        return order

    def redeem_points(self, user_id: Any, points: int, order: FakeOrder) -> bool:
        balance = self.state.points.get(user_id, 0)
        if balance < points:
            return False
        self.state.points[user_id] = balance - points
        return True

    def debit_gift_card(self, gift_card_id: Any, amount_cents: int, order: FakeOrder) -> bool:
        for code, card in self.state.gift_cards.items():
            if card.id != gift_card_id:
                continue
            if card.status != 'active' or card.balance_cents < amount_cents:
                return False
            balance = card.balance_cents - amount_cents
            self.state.gift_cards[code] = replace(
                card, balance_cents=balance, status='redeemed' if balance == 0 else 'active'
            )
            return True
        return False
