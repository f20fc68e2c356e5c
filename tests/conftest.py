# ===============================================================================
# PYTEST CONFIGURATION FOR THE OPTICAL MARKETPLACE
# ===============================================================================
"""
Global test configuration.

Test Structure:
- tests/ mirrors apps/ structure for app-specific tests
- tests/api/ exercises the HTTP surface end to end
- Naming convention: test_{app}_{feature}.py or test_{service}.py
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


@pytest.fixture
def admin_user(db):
    """Back-office operator"""
    from tests.factories import create_admin

    return create_admin()


@pytest.fixture
def optician(db):
    """Approved optician with no points yet"""
    from tests.factories import create_optician

    return create_optician()
