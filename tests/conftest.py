"""
Test configuration and fixtures for the shortlink service.
This centralizes all test setup, making individual tests clean.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from main import app
from shortlink_app.dependencies import get_registry, get_url_service
from shortlink_app.registry.strategies import InMemoryRegistry
from shortlink_app.services.short_code_strategies import RandomShortCodeStrategy
from shortlink_app.services.url_service import URLService

BASE_URL = "http://testserver"


class FakeClock:
    """Controllable replacement for utc_now()"""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry():
    """Fresh registry for each test, so tests never see each other's codes"""
    return InMemoryRegistry()


@pytest.fixture
def service(registry, clock):
    """Service with inline click recording (no queue) and a fake clock"""
    return URLService(
        registry=registry,
        queue=None,
        short_code_strategy=RandomShortCodeStrategy(length=6, max_retries=10),
        base_url=BASE_URL,
        clock=clock,
    )


@pytest.fixture
def client(service, registry):
    """
    Create a test client with registry and service dependencies overridden.
    This is the main fixture that API tests will use.
    """
    app.dependency_overrides[get_url_service] = lambda: service
    app.dependency_overrides[get_registry] = lambda: registry

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
