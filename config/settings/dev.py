"""
Development settings for the marketplace settlement platform
Fast iteration with SQLite and console e-mail.
"""

import os

from .base import *  # noqa: F403

# ===============================================================================
# DEVELOPMENT FLAGS
# ===============================================================================

DEBUG = True

ALLOWED_HOSTS = ["*"]
CSRF_TRUSTED_ORIGINS = [
    "http://localhost:8000",
    "http://127.0.0.1:8000",
]

# ===============================================================================
# DATABASE FOR DEVELOPMENT (SQLite for speed)
# ===============================================================================

if os.environ.get("USE_POSTGRES") != "true":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": str(BASE_DIR / "db.sqlite3"),  # noqa: F405
        }
    }

# ===============================================================================
# CACHE (In-memory unless Redis is requested)
# ===============================================================================

if os.environ.get("USE_REDIS") != "true":
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "marketplace-cache",
        }
    }

# ===============================================================================
# EMAIL BACKEND (Console for development)
# ===============================================================================

EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"
DEFAULT_FROM_EMAIL = "dev@marketplace.example"

# ===============================================================================
# TASK QUEUE (Run tasks inline unless a cluster is started)
# ===============================================================================

Q_CLUSTER = {
    **Q_CLUSTER_BASE,  # noqa: F405
    "workers": 1,
    "sync": os.environ.get("Q_CLUSTER_SYNC", "true") == "true",
}

# ===============================================================================
# MARKETPLACE (Development secret)
# ===============================================================================

PAYMENT_WEBHOOK_SECRET = os.environ.get("PAYMENT_WEBHOOK_SECRET", "dev-payment-webhook-secret")  # noqa: S105

# ===============================================================================
# LOGGING CONFIGURATION
# ===============================================================================

LOGGING["loggers"]["apps"]["level"] = "DEBUG"  # noqa: F405

SECRET_KEY = "django-insecure-dev-key-change-for-production"  # noqa: S105
