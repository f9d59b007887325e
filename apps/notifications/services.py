"""
Notification Services for the marketplace
Outbound order notifications. Dispatch is fire-and-forget: messages are queued
on Django-Q2 after the order transaction commits and are never part of it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import transaction
from django_q.tasks import async_task

if TYPE_CHECKING:
    from apps.orders.repository import PlacedOrder

logger = logging.getLogger(__name__)


class OrderNotificationService:
    """Order lifecycle notifications"""

    @staticmethod
    def send_order_confirmation(order: PlacedOrder) -> None:
        """Queue the confirmation email once the surrounding transaction commits"""
        order_id = str(order.id)
        order_number = order.order_number

        def _queue() -> None:
            async_task(
                'apps.notifications.tasks.send_order_confirmation_email',
                order_id,
                task_name=f"order-confirmation-{order_number}",
            )
            logger.info(f"📧 [Email] Queued order confirmation for {order_number}")

        transaction.on_commit(_queue, robust=True)
