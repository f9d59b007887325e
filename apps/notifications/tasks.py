"""
Notification background tasks.

Django-Q2 tasks that render and send customer emails.
"""

from __future__ import annotations

import logging
from typing import Any

from django.conf import settings
from django.core.mail import send_mail

from apps.common.money import format_amount
from apps.orders.models import Order

logger = logging.getLogger(__name__)


def render_order_confirmation(order: Order) -> tuple[str, str]:
    """Subject and plain-text body of the order confirmation email"""
    lines = [
        f"Thank you for your order {order.order_number}.",
        "",
    ]
    for item in order.items.all():
        lines.append(f"  {item.product_name} x{item.quantity}  {format_amount(item.line_total_cents, order.currency)}")
    lines += [
        "",
        f"Subtotal: {format_amount(order.subtotal_cents, order.currency)}",
        f"Discount: -{format_amount(order.discount_cents, order.currency)}",
        f"Shipping: {format_amount(order.shipping_cents, order.currency)}",
        f"Tax: {format_amount(order.tax_cents, order.currency)}",
        f"Total: {format_amount(order.total_cents, order.currency)}",
    ]
    return f"Order confirmation {order.order_number}", "\n".join(lines)


def send_order_confirmation_email(order_id: str) -> dict[str, Any]:
    """Send the confirmation email for a placed order."""
    try:
        order = Order.objects.select_related('user').get(pk=order_id)
    except Order.DoesNotExist:
        logger.error(f"🔥 [Email] Order {order_id} not found for confirmation email")
        return {"success": False, "error": "Order not found"}

    recipient = order.user.email
    if not recipient:
        logger.warning(f"⚠️ [Email] No email address for order {order.order_number}, skipping confirmation")
        return {"success": False, "error": "No recipient"}

    subject, body = render_order_confirmation(order)
    send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [recipient])
    logger.info(f"📧 [Email] Sent order confirmation for {order.order_number}")
    return {"success": True, "order_number": order.order_number}
