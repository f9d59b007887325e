# ===============================================================================
# MARKETPLACE API APP CONFIGURATION 🛠️
# ===============================================================================

from django.apps import AppConfig


class ApiConfig(AppConfig):
    """
    Configuration for the marketplace REST API.

    Thin DRF layer over the settlement services: checkout, payment
    confirmation webhook, loyalty account and gift card purchase.
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.api"
    label = "marketplace_api"
    verbose_name = "Marketplace API"
