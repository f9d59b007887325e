"""
Django app configuration for Payouts app
"""

from django.apps import AppConfig


class PayoutsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.payouts'
    verbose_name = 'Vendor Payouts'
