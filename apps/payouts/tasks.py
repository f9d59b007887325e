"""
Vendor payout background tasks.

This module contains Django-Q2 tasks for the monthly payout run and the
schedules that drive it.
"""

from __future__ import annotations

import logging
from typing import Any

from django.core.cache import cache
from django_q.models import Schedule
from django_q.tasks import async_task, schedule

from apps.common.constants import GIFT_CARD_EXPIRY_SCHEDULE_CRON, PAYOUT_SCHEDULE_CRON
from apps.payouts.services import PayoutService

logger = logging.getLogger(__name__)

# Task configuration
PAYOUT_RUN_LOCK_KEY = "run_monthly_payouts_lock"
PAYOUT_RUN_LOCK_TIMEOUT = 3600  # 1 hour


def run_monthly_payouts() -> dict[str, Any]:
    """
    Aggregate last month's delivered sales into vendor payouts.

    Runs at 02:00 on the first day of every month. Re-running for the same month
    is harmless: vendors that already have a payout for the period are skipped.

    Returns:
        Dictionary with processing results
    """
    # Prevent overlapping runs
    if not cache.add(PAYOUT_RUN_LOCK_KEY, True, PAYOUT_RUN_LOCK_TIMEOUT):
        logger.info("⏭️ [PayoutTasks] Payout run already in progress, skipping")
        return {"success": True, "message": "Already running"}

    try:
        return PayoutService.run_monthly_payouts()
    finally:
        cache.delete(PAYOUT_RUN_LOCK_KEY)


def run_monthly_payouts_async() -> str:
    """Queue the monthly payout run for async execution."""
    return async_task('apps.payouts.tasks.run_monthly_payouts', timeout=1800)


def setup_payout_scheduled_tasks() -> dict[str, str]:
    """Set up payout and gift card scheduled tasks."""
    tasks_created = {}

    existing_tasks = list(Schedule.objects.filter(
        name__in=['payouts-monthly-run', 'giftcards-expire']
    ).values_list('name', flat=True))

    if 'payouts-monthly-run' not in existing_tasks:
        schedule(
            'apps.payouts.tasks.run_monthly_payouts',
            schedule_type=Schedule.CRON,
            cron=PAYOUT_SCHEDULE_CRON,
            name='payouts-monthly-run',
        )
        tasks_created['monthly_payouts'] = 'created'
    else:
        tasks_created['monthly_payouts'] = 'already_exists'

    if 'giftcards-expire' not in existing_tasks:
        schedule(
            'apps.giftcards.tasks.expire_gift_cards',
            schedule_type=Schedule.CRON,
            cron=GIFT_CARD_EXPIRY_SCHEDULE_CRON,
            name='giftcards-expire',
        )
        tasks_created['gift_card_expiry'] = 'created'
    else:
        tasks_created['gift_card_expiry'] = 'already_exists'

    logger.info(f"✅ [PayoutTasks] Scheduled tasks setup: {tasks_created}")
    return tasks_created
