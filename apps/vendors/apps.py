"""
Django app configuration for Vendors app
"""

from django.apps import AppConfig


class VendorsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.vendors'
    verbose_name = 'Vendors'
