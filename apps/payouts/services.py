"""
Payout Services for the marketplace
Commission ledger generation, the monthly vendor payout aggregator, statements
and the month-end commission reconciliation query.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Count, QuerySet, Sum
from django.utils import timezone

from apps.common.constants import (
    ORDER_PAID_STATUSES,
    STATEMENT_NUMBER_PREFIX,
    VENDOR_STATEMENTS_DEFAULT_LIMIT,
    VENDOR_SUMMARY_RECENT_LIMIT,
)
from apps.common.money import apply_rate_cents, format_amount, from_cents, get_currency, quantize_rate
from apps.common.types import (
    BusinessError,
    Err,
    InvalidStatusTransition,
    NotFoundError,
    Ok,
    OrderNotFound,
    Result,
    StatementNumber,
    ValidationError,
)
from apps.orders.models import Order
from apps.vendors.models import Vendor

from .models import CommissionLedgerEntry, VendorPayout, VendorStatement

if TYPE_CHECKING:
    from apps.orders.models import OrderItem

logger = logging.getLogger(__name__)

# ===============================================================================
# PERIOD HELPERS
# ===============================================================================

def month_window(year: int, month: int) -> tuple[datetime, datetime]:
    """Half-open [start, end) window of a calendar month in the current timezone"""
    if not 1 <= month <= 12:  # noqa: PLR2004
        raise ValidationError('month', f"Invalid month: {month}")
    tz = timezone.get_current_timezone()
    start = datetime(year, month, 1, tzinfo=tz)
    end = datetime(year + 1, 1, 1, tzinfo=tz) if month == 12 else datetime(year, month + 1, 1, tzinfo=tz)  # noqa: PLR2004
    return start, end


def previous_month_window(now: datetime | None = None) -> tuple[datetime, datetime]:
    """The full calendar month before `now`"""
    local_now = timezone.localtime(now or timezone.now())
    last_month = local_now.replace(day=1) - timedelta(days=1)
    return month_window(last_month.year, last_month.month)


# ===============================================================================
# COMMISSION LEDGER SERVICE
# ===============================================================================

class CommissionLedgerService:
    """Writes one immutable commission entry per (order, order item)"""

    @staticmethod
    def split_sale(sale_amount_cents: int, rate: Decimal) -> tuple[int, int]:
        """(commission, vendor payout); the two always sum to the sale amount"""
        commission_cents = apply_rate_cents(sale_amount_cents, rate)
        return commission_cents, sale_amount_cents - commission_cents

    @staticmethod
    def create_commission_ledger_entries(order_id: Any) -> Result[int, BusinessError]:
        """
        Ledger generator entry point for payment triggers and retried jobs.
        Safe against duplicate invocation: returns Ok(0) when every item is
        already recorded.
        """
        try:
            with transaction.atomic():
                order = Order.objects.select_for_update().get(pk=order_id)
                created = CommissionLedgerService.record_order_commissions(order)
        except (Order.DoesNotExist, DjangoValidationError):
            return Err(OrderNotFound(order_id))
        except BusinessError as e:
            return Err(e)
        return Ok(created)

    @staticmethod
    def record_order_commissions(order: Order) -> int:
        """
        Create missing ledger entries for a paid order. Must run inside a transaction.
        Existing (order, item) pairs are skipped; a concurrent insert that wins the
        unique constraint is treated the same way.
        """
        if order.status not in ORDER_PAID_STATUSES:
            raise ValidationError('order', f"Order {order.order_number} is not paid (status: {order.status})")

        paid_at = order.paid_at or timezone.now()
        created = 0
        for item in order.items.select_related('vendor'):
            if CommissionLedgerEntry.objects.filter(order=order, order_item=item).exists():
                continue
            if CommissionLedgerService._insert_entry(order, item, paid_at):
                created += 1

        if created:
            logger.info(f"💰 [Commission] Recorded {created} ledger entries for order {order.order_number}")
        else:
            logger.info(f"⏭️ [Commission] Ledger already complete for order {order.order_number}")
        return created

    @staticmethod
    def _insert_entry(order: Order, item: OrderItem, paid_at: datetime) -> bool:
        rate = quantize_rate(item.vendor.get_commission_rate())
        commission_cents, payout_cents = CommissionLedgerService.split_sale(item.line_total_cents, rate)
        try:
            with transaction.atomic():
                CommissionLedgerEntry.objects.create(
                    order=order,
                    order_item=item,
                    vendor=item.vendor,
                    sale_amount_cents=item.line_total_cents,
                    commission_rate=rate,
                    commission_cents=commission_cents,
                    vendor_payout_cents=payout_cents,
                    currency=order.currency,
                    order_paid_at=paid_at,
                )
        except IntegrityError:
            logger.info(f"⏭️ [Commission] Entry for item {item.pk} already recorded concurrently")
            return False
        return True

    @staticmethod
    def get_vendor_ledger(
        vendor_id: Any, start: datetime | None = None, end: datetime | None = None
    ) -> QuerySet[CommissionLedgerEntry]:
        """Vendor's ledger entries, optionally limited to orders paid in [start, end)"""
        queryset = CommissionLedgerEntry.objects.filter(vendor_id=vendor_id).select_related('order', 'order_item')
        if start is not None:
            queryset = queryset.filter(order_paid_at__gte=start)
        if end is not None:
            queryset = queryset.filter(order_paid_at__lt=end)
        return queryset.order_by('order_paid_at', 'created_at')


# ===============================================================================
# PAYOUT SERVICE
# ===============================================================================

@dataclass(frozen=True)
class MonthEndCommission:
    """Reconciliation figures for one vendor-month"""
    vendor_id: Any
    year: int
    month: int
    total_sales: Decimal
    total_commission: Decimal
    total_payout: Decimal
    entry_count: int
    average_rate: Decimal     # Weighted by sale amount
    configured_rate: Decimal  # Vendor's current rate

    @property
    def rate_drift(self) -> Decimal:
        return self.average_rate - self.configured_rate


class PayoutService:
    """Monthly payout aggregation and statements"""

    @staticmethod
    def _qualifying_entries(vendor: Vendor, start: datetime, end: datetime) -> QuerySet[CommissionLedgerEntry]:
        """Entries of orders delivered within [start, end)"""
        return CommissionLedgerEntry.objects.filter(
            vendor=vendor,
            order__status='delivered',
            order__delivered_at__gte=start,
            order__delivered_at__lt=end,
        )

    @staticmethod
    def run_monthly_payouts(now: datetime | None = None) -> dict[str, Any]:
        """Scheduled entry point: aggregate the previous calendar month"""
        start, end = previous_month_window(now)
        return PayoutService.run_payouts_for_period(start, end)

    @staticmethod
    def run_payouts_for_period(start: datetime, end: datetime) -> dict[str, Any]:
        """
        Create payouts and statements for every approved vendor.
        Each vendor is processed in its own transaction; a failure is recorded in
        the results and the run moves on to the next vendor.
        """
        logger.info(f"🔄 [Payouts] Starting payout run for {start:%Y-%m-%d} → {end:%Y-%m-%d}")
        results: dict[str, Any] = {
            "period_start": start.isoformat(),
            "period_end": end.isoformat(),
            "payouts_created": 0,
            "skipped_no_sales": 0,
            "skipped_existing": 0,
            "payout_ids": [],
            "errors": [],
        }

        for vendor in Vendor.objects.filter(status='approved').order_by('name'):
            try:
                outcome, payout = PayoutService.create_vendor_payout(vendor, start, end)
            except Exception as e:  # one vendor must not abort the run
                logger.exception(f"🔥 [Payouts] Payout for vendor {vendor.pk} failed: {e}")
                results["errors"].append({"vendor_id": str(vendor.pk), "error": str(e)})
                continue

            if outcome == 'created' and payout is not None:
                results["payouts_created"] += 1
                results["payout_ids"].append(str(payout.pk))
            elif outcome == 'exists':
                results["skipped_existing"] += 1
            else:
                results["skipped_no_sales"] += 1

        results["success"] = not results["errors"]
        logger.info(
            f"✅ [Payouts] Run complete: {results['payouts_created']} created, "
            f"{results['skipped_existing']} existing, {results['skipped_no_sales']} without sales, "
            f"{len(results['errors'])} errors"
        )
        return results

    @staticmethod
    def create_vendor_payout(vendor: Vendor, start: datetime, end: datetime) -> tuple[str, VendorPayout | None]:
        """
        Aggregate one vendor's delivered sales for [start, end).
        Returns ('created', payout), ('exists', None) when any payout already
        overlaps the period, or ('no_sales', None).
        """
        with transaction.atomic():
            overlapping = VendorPayout.objects.filter(vendor=vendor, period_start__lt=end, period_end__gt=start)
            if overlapping.exists():
                return 'exists', None

            totals = PayoutService._qualifying_entries(vendor, start, end).aggregate(
                sales=Sum('sale_amount_cents'),
                commission=Sum('commission_cents'),
                payout=Sum('vendor_payout_cents'),
                entries=Count('id'),
                orders=Count('order', distinct=True),
            )
            if not totals['sales']:
                return 'no_sales', None

            try:
                with transaction.atomic():
                    payout = VendorPayout.objects.create(
                        vendor=vendor,
                        period_start=start,
                        period_end=end,
                        total_sales_cents=totals['sales'],
                        commission_cents=totals['commission'],
                        payout_cents=totals['payout'],
                        order_count=totals['orders'],
                        entry_count=totals['entries'],
                        currency=get_currency(),
                    )
            except IntegrityError:
                logger.info(f"⏭️ [Payouts] Payout for vendor {vendor.pk} created by a concurrent run")
                return 'exists', None

            PayoutService.generate_statement(vendor, start, end, payout=payout)

        logger.info(
            f"💸 [Payouts] Vendor {vendor.name}: payout {format_amount(payout.payout_cents)} "
            f"from {payout.order_count} orders"
        )
        return 'created', payout

    @staticmethod
    @transaction.atomic
    def mark_payout_paid(payout_id: Any, payment_reference: str = '') -> Result[VendorPayout, BusinessError]:
        """Explicit settlement of a pending payout; also marks its ledger entries paid"""
        try:
            payout = VendorPayout.objects.select_for_update().select_related('vendor').get(pk=payout_id)
        except VendorPayout.DoesNotExist:
            return Err(NotFoundError(f"Payout not found: {payout_id}"))
        if payout.status == 'paid':
            return Err(InvalidStatusTransition(payout.status, 'paid'))

        now = timezone.now()
        payout.status = 'paid'
        payout.paid_at = now
        payout.payment_reference = payment_reference
        payout.save(update_fields=['status', 'paid_at', 'payment_reference', 'updated_at'])

        marked = PayoutService._qualifying_entries(
            payout.vendor, payout.period_start, payout.period_end
        ).filter(status='recorded').update(status='paid', paid_at=now)

        logger.info(f"✅ [Payouts] Payout {payout.pk} marked paid ({marked} ledger entries settled)")
        return Ok(payout)

    @staticmethod
    def statement_number(vendor: Vendor, start: datetime) -> StatementNumber:
        return f"{STATEMENT_NUMBER_PREFIX}-{str(vendor.pk)[:8].upper()}-{timezone.localtime(start):%Y%m}"

    @staticmethod
    def generate_statement(
        vendor: Vendor, start: datetime, end: datetime, payout: VendorPayout | None = None
    ) -> VendorStatement:
        """Build (or rebuild) the vendor statement for [start, end) from the ledger"""
        entries = PayoutService._qualifying_entries(vendor, start, end).select_related('order')

        per_order: dict[str, dict[str, Any]] = {}
        for entry in entries.order_by('order__delivered_at'):
            line = per_order.setdefault(str(entry.order_id), {
                'order_number': entry.order.order_number,
                'delivered_at': timezone.localtime(entry.order.delivered_at).isoformat(),
                'sales_cents': 0,
                'commission_cents': 0,
                'payout_cents': 0,
            })
            line['sales_cents'] += entry.sale_amount_cents
            line['commission_cents'] += entry.commission_cents
            line['payout_cents'] += entry.vendor_payout_cents

        lines = list(per_order.values())
        sales = sum(line['sales_cents'] for line in lines)
        commission = sum(line['commission_cents'] for line in lines)
        payout_cents = sum(line['payout_cents'] for line in lines)

        summary = "\n".join([
            f"Statement for {vendor.name}",
            f"Period: {timezone.localtime(start):%Y-%m-%d} to "
            f"{timezone.localtime(end) - timedelta(days=1):%Y-%m-%d}",
            f"Orders: {len(lines)}",
            f"Total sales: {format_amount(sales)}",
            f"Commission: {format_amount(commission)}",
            f"Payout: {format_amount(payout_cents)}",
        ])

        defaults: dict[str, Any] = {
            'vendor': vendor,
            'period_start': start,
            'period_end': end,
            'total_sales_cents': sales,
            'commission_cents': commission,
            'payout_cents': payout_cents,
            'order_count': len(lines),
            'lines': lines,
            'summary': summary,
        }
        if payout is not None:
            defaults['payout'] = payout

        statement, created = VendorStatement.objects.update_or_create(
            statement_number=PayoutService.statement_number(vendor, start),
            defaults=defaults,
        )
        logger.info(f"🧾 [Payouts] Statement {statement.statement_number} {'created' if created else 'regenerated'}")
        return statement

    @staticmethod
    def regenerate_statement(statement_id: Any) -> Result[VendorStatement, BusinessError]:
        try:
            statement = VendorStatement.objects.select_related('vendor').get(pk=statement_id)
        except VendorStatement.DoesNotExist:
            return Err(NotFoundError(f"Statement not found: {statement_id}"))
        return Ok(PayoutService.generate_statement(statement.vendor, statement.period_start, statement.period_end))

    @staticmethod
    def calculate_month_end_commission(vendor_id: Any, year: int, month: int) -> Result[MonthEndCommission, BusinessError]:
        """
        Read-only reconciliation of a vendor-month by payment date.
        average_rate is total commission over total sales (sale-weighted), so it
        can be compared with the configured rate to detect drift.
        """
        try:
            vendor = Vendor.objects.get(pk=vendor_id)
        except Vendor.DoesNotExist:
            return Err(NotFoundError(f"Vendor not found: {vendor_id}"))
        try:
            start, end = month_window(year, month)
        except ValidationError as e:
            return Err(e)

        totals = CommissionLedgerService.get_vendor_ledger(vendor.pk, start, end).aggregate(
            sales=Sum('sale_amount_cents'),
            commission=Sum('commission_cents'),
            payout=Sum('vendor_payout_cents'),
            entries=Count('id'),
        )
        sales = totals['sales'] or 0
        commission = totals['commission'] or 0
        configured_rate = quantize_rate(vendor.get_commission_rate())
        average_rate = quantize_rate(Decimal(commission) / Decimal(sales)) if sales else configured_rate

        return Ok(MonthEndCommission(
            vendor_id=vendor.pk,
            year=year,
            month=month,
            total_sales=from_cents(sales),
            total_commission=from_cents(commission),
            total_payout=from_cents(totals['payout'] or 0),
            entry_count=totals['entries'],
            average_rate=average_rate,
            configured_rate=configured_rate,
        ))

    @staticmethod
    def get_pending_payouts() -> list[VendorPayout]:
        return list(VendorPayout.objects.filter(status='pending').select_related('vendor').order_by('period_start'))

    @staticmethod
    def get_vendor_statements(vendor_id: Any, limit: int = VENDOR_STATEMENTS_DEFAULT_LIMIT) -> list[VendorStatement]:
        """Latest statements first, each with its payout"""
        return list(
            VendorStatement.objects.filter(vendor_id=vendor_id)
            .select_related('payout')
            .order_by('-period_start', '-created_at')[:limit]
        )

    @staticmethod
    def get_vendor_payout_summary(vendor_id: Any) -> dict[str, Any]:
        """Lifetime totals of a vendor's payouts and unsettled ledger, plus recent activity"""
        payouts = VendorPayout.objects.filter(vendor_id=vendor_id)
        paid = payouts.filter(status='paid').aggregate(total=Sum('payout_cents'), count=Count('id'))
        pending = payouts.filter(status='pending').aggregate(total=Sum('payout_cents'), count=Count('id'))
        unsettled = CommissionLedgerEntry.objects.filter(vendor_id=vendor_id, status='recorded').aggregate(
            total=Sum('vendor_payout_cents')
        )
        return {
            'paid_total': from_cents(paid['total'] or 0),
            'paid_count': paid['count'],
            'pending_total': from_cents(pending['total'] or 0),
            'pending_count': pending['count'],
            'unsettled_ledger_total': from_cents(unsettled['total'] or 0),
            'pending_payouts': list(
                payouts.filter(status='pending').order_by('-created_at')[:VENDOR_SUMMARY_RECENT_LIMIT]
            ),
            'recent_paid_payouts': list(
                payouts.filter(status='paid').order_by('-paid_at')[:VENDOR_SUMMARY_RECENT_LIMIT]
            ),
            'recent_statements': PayoutService.get_vendor_statements(vendor_id, VENDOR_SUMMARY_RECENT_LIMIT),
        }
