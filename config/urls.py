"""
URL configuration for the marketplace settlement platform
"""

from django.urls import include, path

urlpatterns = [
    # REST API (checkout, payment callbacks, loyalty, gift cards)
    path("api/", include("apps.api.urls")),
]
