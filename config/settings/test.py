"""
Test settings for the marketplace settlement platform
Fast, isolated testing environment.
"""

from decimal import Decimal

from .base import *  # noqa: F403

# ===============================================================================
# TEST FLAGS
# ===============================================================================

DEBUG = False

# ===============================================================================
# TEST DATABASE (In-memory for speed)
# ===============================================================================

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
        'OPTIONS': {
            'timeout': 20,
        }
    }
}

# ===============================================================================
# TEST CACHE
# ===============================================================================

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'test-cache',
    }
}

# ===============================================================================
# TEST EMAIL BACKEND
# ===============================================================================

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
DEFAULT_FROM_EMAIL = 'orders@marketplace.test'

# ===============================================================================
# PASSWORD HASHER (Fast for tests)
# ===============================================================================

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',  # Fast but insecure (test only)
]

# ===============================================================================
# LOGGING (Minimal for tests)
# ===============================================================================

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'null': {
            'class': 'logging.NullHandler',
        },
    },
    'root': {
        'handlers': ['null'],
        'level': 'CRITICAL',
    },
}

# ===============================================================================
# SECURITY (Relaxed for tests)
# ===============================================================================

SECRET_KEY = 'django-test-key-not-secure'  # noqa: S105
ALLOWED_HOSTS = ['testserver', 'localhost', '127.0.0.1']

PAYMENT_WEBHOOK_SECRET = 'test-payment-webhook-secret'  # noqa: S105

# ===============================================================================
# DRF (Generous throttles so suites don't trip rate limits)
# ===============================================================================

REST_FRAMEWORK = {
    **REST_FRAMEWORK,  # noqa: F405
    'DEFAULT_THROTTLE_RATES': {
        'checkout': '10000/minute',
        'payment_webhook': '10000/minute',
    },
}

# ===============================================================================
# TASK QUEUE (Synchronous for tests)
# ===============================================================================

Q_CLUSTER = {
    **Q_CLUSTER_BASE,  # noqa: F405
    'workers': 1,
    'sync': True,
}

# ===============================================================================
# MARKETPLACE (Pinned for deterministic amounts)
# ===============================================================================

MARKETPLACE_CURRENCY = 'ETB'
MARKETPLACE_VAT_RATE = Decimal('0.15')
MARKETPLACE_DEFAULT_COMMISSION_RATE = Decimal('0.15')
