"""
Django settings for the marketplace settlement platform - Base Configuration
Multi-vendor checkout, loyalty, gift cards and vendor payouts.
"""

import os
from decimal import Decimal
from pathlib import Path
from typing import Any

# ===============================================================================
# CORE DJANGO SETTINGS
# ===============================================================================

BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Application definition
DJANGO_APPS: list[str] = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
]

THIRD_PARTY_APPS: list[str] = [
    'rest_framework',
    'django_q',
]

LOCAL_APPS: list[str] = [
    'apps.common',
    'apps.vendors',
    'apps.products',
    'apps.orders',
    'apps.loyalty',        # 🏅 Points, tiers and redemptions
    'apps.giftcards',      # 🎁 Stored-value cards
    'apps.payouts',        # 💸 Commission ledger & monthly vendor payouts
    'apps.notifications',
    'apps.api',
]

INSTALLED_APPS: list[str] = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

MIDDLEWARE: list[str] = [
    'apps.common.middleware.RequestIDMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'config.wsgi.application'
ASGI_APPLICATION = 'config.asgi.application'

# ===============================================================================
# DATABASE CONFIGURATION
# ===============================================================================

DATABASES: dict[str, dict[str, Any]] = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': os.environ.get('DB_NAME', 'marketplace'),
        'USER': os.environ.get('DB_USER', 'marketplace'),
        'PASSWORD': os.environ.get('DB_PASSWORD', 'development_password'),
        'HOST': os.environ.get('DB_HOST', 'localhost'),
        'PORT': os.environ.get('DB_PORT', '5432'),
        'CONN_MAX_AGE': 60,  # Database connection pooling
        'OPTIONS': {
            'application_name': 'marketplace_settlement',
        },
    }
}

# ===============================================================================
# AUTHENTICATION & AUTHORIZATION
# ===============================================================================

AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
        'OPTIONS': {
            'min_length': 12,
        }
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.Argon2PasswordHasher',
    'django.contrib.auth.hashers.PBKDF2PasswordHasher',
    'django.contrib.auth.hashers.PBKDF2SHA1PasswordHasher',
]

# ===============================================================================
# INTERNATIONALIZATION & LOCALIZATION
# ===============================================================================

LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.environ.get('TIME_ZONE', 'Africa/Addis_Ababa')
USE_I18N = True
USE_TZ = True

# ===============================================================================
# STATIC FILES
# ===============================================================================

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

# ===============================================================================
# CACHE CONFIGURATION (Redis)
# ===============================================================================

REDIS_URL = os.environ.get('REDIS_URL', 'redis://localhost:6379/0')

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.redis.RedisCache',
        'LOCATION': REDIS_URL,
        'KEY_PREFIX': 'marketplace',
    }
}

# ===============================================================================
# SESSION & COOKIE SETTINGS
# ===============================================================================

SESSION_COOKIE_AGE = 86400  # 24 hours
SESSION_COOKIE_HTTPONLY = True
CSRF_COOKIE_HTTPONLY = True
CSRF_TRUSTED_ORIGINS: list[str] = []

SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'

DATA_UPLOAD_MAX_MEMORY_SIZE = 2621440  # 2.5MB

# ===============================================================================
# EMAIL
# ===============================================================================

DEFAULT_FROM_EMAIL = os.environ.get('DEFAULT_FROM_EMAIL', 'orders@marketplace.example')
EMAIL_USE_TLS = True

# ===============================================================================
# DJANGO REST FRAMEWORK
# ===============================================================================

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.SessionAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_THROTTLE_RATES': {
        'checkout': os.environ.get('THROTTLE_RATE_CHECKOUT', '30/minute'),
        'payment_webhook': os.environ.get('THROTTLE_RATE_PAYMENT_WEBHOOK', '300/minute'),
    },
}

# ===============================================================================
# DJANGO-Q2 TASK QUEUE
# ===============================================================================

Q_CLUSTER_BASE = {
    'name': 'marketplace-cluster',
    'timeout': 300,  # 5 minutes
    'retry': 600,  # 10 minutes retry delay
    'save_limit': 1000,  # Keep last 1000 task results
    'catch_up': False,  # Don't run missed scheduled tasks
    'orm': 'default',  # Use the database as broker
    'bulk': 10,
    'queue_limit': 100,
}

Q_CLUSTER = {
    **Q_CLUSTER_BASE,
    'workers': 2,
    'recycle': 500,  # Restart workers after 500 tasks
    'sync': False,
}

# ===============================================================================
# MARKETPLACE BUSINESS CONFIGURATION
# ===============================================================================

MARKETPLACE_CURRENCY = os.environ.get('MARKETPLACE_CURRENCY', 'ETB')

# Tax charged on the pre-discount subtotal
MARKETPLACE_VAT_RATE = Decimal(os.environ.get('MARKETPLACE_VAT_RATE', '0.15'))

# Platform commission when a vendor has no negotiated override
MARKETPLACE_DEFAULT_COMMISSION_RATE = Decimal(os.environ.get('MARKETPLACE_DEFAULT_COMMISSION_RATE', '0.15'))

GIFT_CARD_VALIDITY_DAYS = int(os.environ.get('GIFT_CARD_VALIDITY_DAYS', '365'))
GIFT_CARD_MIN_AMOUNT = 50
GIFT_CARD_MAX_AMOUNT = 10000

# Shared secret for payment provider callbacks (HMAC-SHA256 of the raw body)
PAYMENT_WEBHOOK_SECRET = os.environ.get('PAYMENT_WEBHOOK_SECRET', '')

# ===============================================================================
# LOGGING
# ===============================================================================

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname:<8} {name:<32} {message} [{request_id}]',
            'datefmt': '%Y-%m-%d %H:%M:%S',
            'style': '{',
        },
    },
    'filters': {
        'add_request_id': {
            '()': 'apps.common.logging.RequestIDFilter',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
            'filters': ['add_request_id'],
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'INFO',
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'apps': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
    },
}

# ===============================================================================
# DEFAULT AUTO FIELD
# ===============================================================================

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# ===============================================================================
# SECURITY SETTINGS (Base - override in prod.py)
# ===============================================================================

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY')
if not SECRET_KEY:
    # Development fallback - never use this in production
    import warnings
    warnings.warn(
        "🚨 SECURITY WARNING: Using default SECRET_KEY. "
        "Set DJANGO_SECRET_KEY environment variable for production!",
        UserWarning,
        stacklevel=2
    )
    SECRET_KEY = 'django-insecure-dev-key-only-change-in-production-or-tests'  # noqa: S105


def validate_production_secret_key() -> None:
    """Validate SECRET_KEY meets production security requirements"""
    if SECRET_KEY and SECRET_KEY.startswith('django-insecure-'):
        raise ValueError(
            "🔥 CRITICAL SECURITY ERROR: Cannot use insecure SECRET_KEY in production! "
            "Generate a secure key with django.core.management.utils.get_random_secret_key()"
        )
