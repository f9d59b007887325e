# Generated manually for Payouts App - Commission ledger, vendor payouts and statements

import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("orders", "0001_initial"),
        ("vendors", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="VendorPayout",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("period_start", models.DateTimeField()),
                ("period_end", models.DateTimeField()),
                ("total_sales_cents", models.BigIntegerField(default=0)),
                ("commission_cents", models.BigIntegerField(default=0)),
                ("payout_cents", models.BigIntegerField(default=0)),
                ("order_count", models.PositiveIntegerField(default=0)),
                ("entry_count", models.PositiveIntegerField(default=0)),
                ("currency", models.CharField(default="ETB", max_length=3)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("paid", "Paid")],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("payment_reference", models.CharField(blank=True, max_length=255)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "vendor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payouts",
                        to="vendors.vendor",
                    ),
                ),
            ],
            options={
                "verbose_name": "Vendor Payout",
                "verbose_name_plural": "Vendor Payouts",
                "db_table": "vendor_payouts",
                "ordering": ("-period_start",),
                "indexes": [
                    models.Index(fields=["status", "-period_start"], name="vendor_payouts_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("vendor", "period_start", "period_end"),
                        name="unique_payout_per_vendor_period",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CommissionLedgerEntry",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("sale_amount_cents", models.BigIntegerField()),
                (
                    "commission_rate",
                    models.DecimalField(decimal_places=4, help_text="Rate snapshot", max_digits=5),
                ),
                ("commission_cents", models.BigIntegerField()),
                ("vendor_payout_cents", models.BigIntegerField()),
                ("currency", models.CharField(default="ETB", max_length=3)),
                (
                    "status",
                    models.CharField(
                        choices=[("recorded", "Recorded"), ("paid", "Paid")],
                        default="recorded",
                        max_length=20,
                    ),
                ),
                (
                    "order_paid_at",
                    models.DateTimeField(help_text="When the order's payment was confirmed"),
                ),
                (
                    "paid_at",
                    models.DateTimeField(blank=True, help_text="When the vendor was paid", null=True),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="commission_entries",
                        to="orders.order",
                    ),
                ),
                (
                    "order_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="commission_entries",
                        to="orders.orderitem",
                    ),
                ),
                (
                    "vendor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="commission_entries",
                        to="vendors.vendor",
                    ),
                ),
            ],
            options={
                "verbose_name": "Commission Ledger Entry",
                "verbose_name_plural": "Commission Ledger Entries",
                "db_table": "commission_ledger_entries",
                "ordering": ("-created_at",),
                "indexes": [
                    models.Index(fields=["vendor", "order_paid_at"], name="commission_vendor_paid_idx"),
                    models.Index(fields=["vendor", "status"], name="commission_vendor_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("order", "order_item"), name="unique_commission_per_order_item"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="VendorStatement",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("statement_number", models.CharField(max_length=50, unique=True)),
                ("period_start", models.DateTimeField()),
                ("period_end", models.DateTimeField()),
                ("total_sales_cents", models.BigIntegerField(default=0)),
                ("commission_cents", models.BigIntegerField(default=0)),
                ("payout_cents", models.BigIntegerField(default=0)),
                ("order_count", models.PositiveIntegerField(default=0)),
                (
                    "lines",
                    models.JSONField(blank=True, default=list, help_text="Per-order breakdown"),
                ),
                ("summary", models.TextField(blank=True)),
                ("generated_at", models.DateTimeField(auto_now=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "payout",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="statement",
                        to="payouts.vendorpayout",
                    ),
                ),
                (
                    "vendor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="statements",
                        to="vendors.vendor",
                    ),
                ),
            ],
            options={
                "verbose_name": "Vendor Statement",
                "verbose_name_plural": "Vendor Statements",
                "db_table": "vendor_statements",
                "ordering": ("-period_start",),
                "indexes": [
                    models.Index(fields=["vendor", "-period_start"], name="vendor_statements_vendor_idx"),
                ],
            },
        ),
    ]
