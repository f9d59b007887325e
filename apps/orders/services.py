"""
Order Services for the marketplace
Order numbering, the status state machine, payment confirmation and the
compensations applied when an order is cancelled or refunded.
"""

from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction
from django.db.models import F
from django.utils import timezone

from apps.common.constants import ORDER_NUMBER_PREFIX, ORDER_PAID_STATUSES, ORDER_RESTOCKABLE_STATUSES
from apps.common.types import (
    BusinessError,
    Err,
    InvalidStatusTransition,
    Ok,
    OrderNotFound,
    OrderNumber,
    PaymentReference,
    Result,
    TransactionFailure,
)
from apps.giftcards.services import GiftCardService
from apps.loyalty.services import LoyaltyService
from apps.payouts.services import CommissionLedgerService
from apps.products.models import Product

from .models import Order, OrderStatusHistory

if TYPE_CHECKING:
    from django.contrib.auth.models import AbstractBaseUser

logger = logging.getLogger(__name__)

# Allowed order status transitions; cancelled and refunded are terminal
VALID_STATUS_TRANSITIONS: dict[str, tuple[str, ...]] = {
    'pending': ('paid', 'cancelled'),
    'paid': ('confirmed', 'cancelled', 'refunded'),
    'confirmed': ('processing', 'cancelled', 'refunded'),
    'processing': ('fulfilled', 'cancelled', 'refunded'),
    'fulfilled': ('shipped', 'cancelled', 'refunded'),
    'shipped': ('delivered', 'refunded'),
    'delivered': ('refunded',),
    'cancelled': (),
    'refunded': (),
}

# Timestamp stamped when an order enters a status
STATUS_TIMESTAMP_FIELDS: dict[str, str] = {
    'paid': 'paid_at',
    'delivered': 'delivered_at',
    'cancelled': 'cancelled_at',
    'refunded': 'refunded_at',
}

# ===============================================================================
# ORDER SERVICE PARAMETER OBJECTS
# ===============================================================================

@dataclass
class StatusChangeData:
    """Parameter object for order status changes"""
    new_status: str
    notes: str = ''
    changed_by: AbstractBaseUser | None = None


@dataclass(frozen=True)
class PaymentConfirmation:
    order: Order
    ledger_entries_created: int


# ===============================================================================
# ORDER NUMBERING
# ===============================================================================

class OrderNumberingService:
    """Service for generating order numbers"""

    @staticmethod
    def generate_order_number(now: datetime | None = None) -> OrderNumber:
        """MKT-YYYYMMDD-XXXXXXXX; the random suffix keeps numbers unguessable"""
        now = timezone.localtime(now or timezone.now())
        return f"{ORDER_NUMBER_PREFIX}-{now:%Y%m%d}-{secrets.token_hex(4).upper()}"


# ===============================================================================
# ORDER STATUS SERVICE
# ===============================================================================

class OrderStatusService:
    """Status transitions and the side effects attached to them"""

    @staticmethod
    def is_valid_status_transition(old_status: str, new_status: str) -> bool:
        return new_status in VALID_STATUS_TRANSITIONS.get(old_status, ())

    @staticmethod
    def _lock_order(order_id: uuid.UUID | str) -> Order:
        try:
            return Order.objects.select_for_update().get(pk=order_id)
        except (Order.DoesNotExist, DjangoValidationError) as e:
            raise OrderNotFound(order_id) from e

    @staticmethod
    def update_order_status(order_id: uuid.UUID | str, status_data: StatusChangeData) -> Result[Order, BusinessError]:
        """Move an order to a new status with validation and audit trail"""
        try:
            with transaction.atomic():
                order = OrderStatusService._lock_order(order_id)
                OrderStatusService._apply_transition(order, status_data)
        except BusinessError as e:
            logger.warning(f"⚠️ [Order] Status change for {order_id} rejected: {e}")
            return Err(e)
        except DatabaseError as e:
            logger.exception(f"🔥 [Order] Status change for {order_id} failed: {e}")
            return Err(TransactionFailure(str(e)))
        return Ok(order)

    @staticmethod
    def confirm_payment(
        order_id: uuid.UUID | str, payment_reference: PaymentReference = ''
    ) -> Result[PaymentConfirmation, BusinessError]:
        """
        Payment webhook entry point.
        A pending order moves to paid and its commission ledger is written in the
        same transaction. Redelivery for an order that is already paid re-runs the
        idempotent ledger generator and creates nothing new.
        """
        try:
            with transaction.atomic():
                order = OrderStatusService._lock_order(order_id)
                if order.status == 'pending':
                    if payment_reference:
                        order.payment_reference = payment_reference
                        order.save(update_fields=['payment_reference', 'updated_at'])
                    created = OrderStatusService._apply_transition(
                        order, StatusChangeData('paid', notes=f"Payment confirmed {payment_reference}".strip())
                    )
                elif order.status in ORDER_PAID_STATUSES:
                    logger.info(f"🔁 [Order] Duplicate payment confirmation for {order.order_number}")
                    created = CommissionLedgerService.record_order_commissions(order)
                else:
                    raise InvalidStatusTransition(order.status, 'paid')
        except BusinessError as e:
            logger.warning(f"⚠️ [Order] Payment confirmation for {order_id} rejected: {e}")
            return Err(e)
        except DatabaseError as e:
            logger.exception(f"🔥 [Order] Payment confirmation for {order_id} failed: {e}")
            return Err(TransactionFailure(str(e)))
        return Ok(PaymentConfirmation(order=order, ledger_entries_created=created))

    @staticmethod
    def _apply_transition(order: Order, status_data: StatusChangeData) -> int:
        """Apply a validated transition; returns the number of ledger entries created"""
        old_status = order.status
        new_status = status_data.new_status
        if not OrderStatusService.is_valid_status_transition(old_status, new_status):
            raise InvalidStatusTransition(old_status, new_status)

        order.status = new_status
        update_fields = ['status', 'updated_at']
        timestamp_field = STATUS_TIMESTAMP_FIELDS.get(new_status)
        if timestamp_field:
            setattr(order, timestamp_field, timezone.now())
            update_fields.append(timestamp_field)
        order.save(update_fields=update_fields)

        OrderStatusHistory.objects.create(
            order=order,
            old_status=old_status,
            new_status=new_status,
            notes=status_data.notes,
            changed_by=status_data.changed_by,
        )

        created = 0
        if new_status == 'paid':
            created = CommissionLedgerService.record_order_commissions(order)
        elif new_status == 'delivered':
            LoyaltyService.award_purchase_points(order)
        elif new_status == 'cancelled':
            if old_status in ORDER_RESTOCKABLE_STATUSES:
                OrderStatusService._restock(order)
            OrderStatusService._restore_instruments(order)
        elif new_status == 'refunded':
            OrderStatusService._restore_instruments(order)

        logger.info(f"✅ [Order] {order.order_number}: {old_status} → {new_status}")
        return created

    @staticmethod
    def _restock(order: Order) -> None:
        for item in order.items.all():
            Product.objects.filter(pk=item.product_id).update(
                stock_quantity=F('stock_quantity') + item.quantity,
                updated_at=timezone.now(),
            )
        logger.info(f"📦 [Order] Restocked items of cancelled order {order.order_number}")

    @staticmethod
    def _restore_instruments(order: Order) -> None:
        LoyaltyService.restore_redeemed_points(order)
        GiftCardService.restore_for_order(order)


# ===============================================================================
# ORDER QUERY SERVICE
# ===============================================================================

class OrderQueryService:
    """Service for order lookups"""

    @staticmethod
    def get_order_with_items(order_id: uuid.UUID | str, user: Any | None = None) -> Result[Order, BusinessError]:
        """Get order with related items, optionally scoped to its owner"""
        queryset = Order.objects.prefetch_related('items', 'status_history')
        if user is not None:
            queryset = queryset.filter(user=user)
        try:
            return Ok(queryset.get(pk=order_id))
        except (Order.DoesNotExist, DjangoValidationError):
            return Err(OrderNotFound(order_id))

    @staticmethod
    def get_orders_for_user(user: Any, status: str | None = None) -> list[Order]:
        queryset = Order.objects.filter(user=user)
        if status:
            queryset = queryset.filter(status=status)
        return list(queryset.order_by('-created_at'))
