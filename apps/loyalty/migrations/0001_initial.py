# Generated manually for Loyalty App - Point accounts and append-only point ledger

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("orders", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="LoyaltyAccount",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "points",
                    models.PositiveIntegerField(default=0, help_text="Spendable point balance"),
                ),
                (
                    "lifetime_points",
                    models.PositiveIntegerField(
                        default=0, help_text="Points ever earned, drives the tier"
                    ),
                ),
                (
                    "tier",
                    models.CharField(
                        choices=[
                            ("bronze", "Bronze"),
                            ("silver", "Silver"),
                            ("gold", "Gold"),
                            ("platinum", "Platinum"),
                        ],
                        default="bronze",
                        max_length=20,
                    ),
                ),
                (
                    "next_tier_points",
                    models.PositiveIntegerField(
                        default=1000,
                        help_text="Lifetime points required for the next tier, 0 at the top tier",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="loyalty_account",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Loyalty Account",
                "verbose_name_plural": "Loyalty Accounts",
                "db_table": "loyalty_accounts",
                "indexes": [models.Index(fields=["tier"], name="loyalty_acct_tier_idx")],
            },
        ),
        migrations.CreateModel(
            name="LoyaltyTransaction",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "points",
                    models.IntegerField(help_text="Signed change to the spendable balance"),
                ),
                (
                    "lifetime_points_delta",
                    models.IntegerField(default=0, help_text="Change to lifetime points"),
                ),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("purchase", "Purchase"),
                            ("bonus", "Bonus"),
                            ("redeem", "Redemption"),
                            ("refund", "Refund"),
                            ("adjustment", "Adjustment"),
                            ("expired", "Expired"),
                        ],
                        max_length=20,
                    ),
                ),
                ("description", models.CharField(blank=True, max_length=255)),
                ("balance_after", models.PositiveIntegerField(default=0)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="transactions",
                        to="loyalty.loyaltyaccount",
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="loyalty_transactions",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "verbose_name": "Loyalty Transaction",
                "verbose_name_plural": "Loyalty Transactions",
                "db_table": "loyalty_transactions",
                "ordering": ("-created_at",),
                "indexes": [
                    models.Index(fields=["account", "-created_at"], name="loyalty_tx_account_idx"),
                    models.Index(fields=["order", "transaction_type"], name="loyalty_tx_order_type_idx"),
                ],
            },
        ),
    ]
