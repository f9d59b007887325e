"""
Gift card background tasks.

Django-Q2 task that retires cards past their expiry date.
"""

from __future__ import annotations

import logging
from typing import Any

from django_q.tasks import async_task

from apps.giftcards.services import GiftCardService

logger = logging.getLogger(__name__)


def expire_gift_cards() -> dict[str, Any]:
    """
    Mark active gift cards past expiry as expired.

    Runs daily. Redemption already refuses expired cards, so this only keeps
    the stored status honest for reporting and balance lookups.
    """
    logger.info("🔄 [GiftCardTasks] Starting gift card expiry sweep")
    expired = GiftCardService.expire_gift_cards()
    logger.info(f"✅ [GiftCardTasks] Expiry sweep complete: {expired} cards expired")
    return {"success": True, "expired_cards": expired}


def expire_gift_cards_async() -> str:
    """Queue the expiry sweep for async execution."""
    return async_task('apps.giftcards.tasks.expire_gift_cards', timeout=300)
