"""
Project-wide pytest configuration.

Test settings overrides are applied in pytest_configure, before any cache,
mail or broker connection exists. Fixtures for a single app live in that
app's ``tests/conftest.py``.
"""

import os

import django
import pytest

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

E2E_FILES = ("test_webhooks.py",)
UNIT_FILES = (
    "test_adapters.py",
    "test_helpers.py",
    "test_managers.py",
    "test_models.py",
    "test_serializers.py",
)


def pytest_configure():
    from django.conf import settings

    # No Redis during tests
    settings.CACHES = {
        "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}
    }
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
    settings.PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    # .delay() runs the task inline and re-raises its errors; Celery reads
    # these through the CELERY_ settings namespace
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True

    django.setup()


def pytest_collection_modifyitems(items):
    """
    Mark tests by file name unless a test already carries a marker.

    test_webhooks.py is e2e, model/serializer/adapter/helper tests are
    unit, everything else is integration.
    """
    for item in items:
        if {m.name for m in item.iter_markers()} & {"unit", "integration", "e2e"}:
            continue

        filename = item.path.name
        if filename in E2E_FILES:
            item.add_marker(pytest.mark.e2e)
        elif filename in UNIT_FILES:
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    from rest_framework.test import APIClient

    return APIClient()
