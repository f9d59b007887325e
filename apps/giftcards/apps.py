"""
Django app configuration for Gift Cards app
"""

from django.apps import AppConfig


class GiftCardsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.giftcards'
    verbose_name = 'Gift Cards'
