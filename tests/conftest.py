# ===============================================================================
# PYTEST CONFIGURATION FOR THE MARKETPLACE
# ===============================================================================
"""
Global test configuration.

Test Structure:
- tests/ mirrors apps/ structure for app-specific tests
- tests/factories/ holds the shared model factories
- Naming convention: test_{app}_{feature}.py

Test Discovery:
- pytest automatically discovers tests in tests/{app}/ directories
- Run specific app tests: pytest tests/payouts/
- Run all tests: pytest tests/
"""

import os

import django


def pytest_configure():
    """Configure Django settings for pytest"""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.test')

    # Configure Django
    django.setup()

# ===============================================================================
# PYTEST FIXTURES
# ===============================================================================

import pytest  # noqa: E402
from rest_framework.test import APIClient  # noqa: E402


@pytest.fixture
def user(db):
    """Create test customer"""
    from tests.factories.marketplace_factories import create_user  # noqa: PLC0415

    return create_user(email='test@marketplace.test')


@pytest.fixture
def vendor(db):
    """Approved vendor on a 10% commission"""
    from tests.factories.marketplace_factories import create_vendor  # noqa: PLC0415

    return create_vendor('Fixture Vendor', commission_rate='0.10')


@pytest.fixture
def api_client(user):
    """API client authenticated as the test customer"""
    client = APIClient()
    client.force_authenticate(user=user)
    return client
