"""
Management command to run the vendor payout aggregator by hand.
Without --month it processes the previous calendar month, like the scheduled task.
"""

import json
from typing import Any

from django.core.management.base import BaseCommand, CommandError, CommandParser

from apps.common.types import ValidationError
from apps.payouts.services import PayoutService, month_window
from apps.payouts.tasks import setup_payout_scheduled_tasks


class Command(BaseCommand):
    help = "Create vendor payouts and statements for a calendar month"

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument(
            "--month",
            help="Month to process as YYYY-MM (default: previous month)",
        )
        parser.add_argument(
            "--setup-schedules",
            action="store_true",
            help="Install the Django-Q2 schedules instead of running payouts",
        )

    def handle(self, *args: Any, **options: Any) -> None:
        if options["setup_schedules"]:
            created = setup_payout_scheduled_tasks()
            self.stdout.write(self.style.SUCCESS(f"Schedules: {created}"))
            return

        if options["month"]:
            try:
                year, month = (int(part) for part in options["month"].split("-"))
                start, end = month_window(year, month)
            except (ValueError, ValidationError) as e:
                raise CommandError(f"Invalid --month value: {options['month']}") from e
            results = PayoutService.run_payouts_for_period(start, end)
        else:
            results = PayoutService.run_monthly_payouts()

        style = self.style.SUCCESS if results["success"] else self.style.WARNING
        self.stdout.write(style(
            f"Payouts created: {results['payouts_created']}, "
            f"existing: {results['skipped_existing']}, "
            f"without sales: {results['skipped_no_sales']}, "
            f"errors: {len(results['errors'])}"
        ))
        if results["errors"]:
            self.stdout.write(json.dumps(results["errors"], indent=2))
