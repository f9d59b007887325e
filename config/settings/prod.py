"""
Production settings for the marketplace settlement platform
Security-first configuration.
"""

import logging
import os

import sentry_sdk
from sentry_sdk.integrations.django import DjangoIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from .base import *  # noqa: F403

# ===============================================================================
# PRODUCTION SECURITY VALIDATION
# ===============================================================================

validate_production_secret_key()  # noqa: F405

if not PAYMENT_WEBHOOK_SECRET:  # noqa: F405
    raise ValueError("🔥 CRITICAL SECURITY ERROR: PAYMENT_WEBHOOK_SECRET must be set in production!")

# ===============================================================================
# PRODUCTION FLAGS
# ===============================================================================

DEBUG = False

ALLOWED_HOSTS = os.environ.get('ALLOWED_HOSTS', '').split(',')
CSRF_TRUSTED_ORIGINS = [origin for origin in os.environ.get('CSRF_TRUSTED_ORIGINS', '').split(',') if origin]

# ===============================================================================
# SECURITY SETTINGS
# ===============================================================================

# Force HTTPS
SECURE_SSL_REDIRECT = True
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')

# Secure cookies
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True

# HSTS (HTTP Strict Transport Security)
SECURE_HSTS_SECONDS = 31536000  # 1 year
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_HSTS_PRELOAD = True

SECURE_REFERRER_POLICY = 'strict-origin-when-cross-origin'

# ===============================================================================
# DATABASE PRODUCTION SETTINGS
# ===============================================================================

DATABASES['default'].update({  # noqa: F405
    'CONN_MAX_AGE': 600,
    'OPTIONS': {
        'application_name': 'marketplace_settlement_prod',
        'sslmode': 'require',
    }
})

# ===============================================================================
# TASK QUEUE (Production workers)
# ===============================================================================

Q_CLUSTER = {
    **Q_CLUSTER_BASE,  # noqa: F405
    'workers': int(os.environ.get('Q_CLUSTER_WORKERS', '4')),
    'recycle': 500,
    'sync': False,
}

# ===============================================================================
# SENTRY CONFIGURATION (Error Monitoring)
# ===============================================================================

SENTRY_DSN = os.environ.get('SENTRY_DSN')
if SENTRY_DSN:
    sentry_logging = LoggingIntegration(
        level=logging.INFO,
        event_level=logging.ERROR
    )

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        integrations=[
            DjangoIntegration(),
            sentry_logging,
        ],
        traces_sample_rate=0.1,
        send_default_pii=False,
        environment='production',
        release=os.environ.get('APP_VERSION', 'unknown'),
    )

# ===============================================================================
# LOGGING CONFIGURATION (Production)
# ===============================================================================

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'json': {
            'format': '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "request_id": "%(request_id)s"}',
            'datefmt': '%Y-%m-%d %H:%M:%S',
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
            'formatter': 'json',
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
        'django.security': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
    },
}

# ===============================================================================
# EMAIL CONFIGURATION (Production SMTP)
# ===============================================================================

EMAIL_BACKEND = 'django.core.mail.backends.smtp.EmailBackend'
EMAIL_HOST = os.environ.get('EMAIL_HOST')
EMAIL_PORT = int(os.environ.get('EMAIL_PORT', 587))
EMAIL_USE_TLS = True
EMAIL_HOST_USER = os.environ.get('EMAIL_HOST_USER')
EMAIL_HOST_PASSWORD = os.environ.get('EMAIL_HOST_PASSWORD')
SERVER_EMAIL = DEFAULT_FROM_EMAIL  # noqa: F405

# ===============================================================================
# SESSION CONFIGURATION (Production)
# ===============================================================================

SESSION_COOKIE_AGE = 3600  # 1 hour for production (security)
SESSION_EXPIRE_AT_BROWSER_CLOSE = True
SESSION_COOKIE_NAME = 'marketplace_sessionid'
