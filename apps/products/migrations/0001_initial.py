# Generated manually for Products App - Vendor catalog with stock levels

import uuid

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("vendors", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
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
                ("name", models.CharField(help_text="Display name for customers", max_length=200)),
                ("sku", models.CharField(help_text="Stock keeping unit", max_length=64, unique=True)),
                ("description", models.TextField(blank=True)),
                (
                    "price_cents",
                    models.BigIntegerField(
                        help_text="Unit price in cents",
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(100000000),
                        ],
                    ),
                ),
                (
                    "stock_quantity",
                    models.PositiveIntegerField(default=0, help_text="Units available for sale"),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        default=True, help_text="Whether product is available for purchase"
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "vendor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="products",
                        to="vendors.vendor",
                    ),
                ),
            ],
            options={
                "verbose_name": "Product",
                "verbose_name_plural": "Products",
                "db_table": "products",
                "ordering": ("name",),
                "indexes": [
                    models.Index(fields=["vendor", "is_active"], name="products_vendor_active_idx")
                ],
            },
        ),
    ]
