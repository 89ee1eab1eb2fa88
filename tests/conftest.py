"""Shared fixtures.

The application reads settings at import time, so the environment is
prepared before anything from ``productbuilder`` is imported.
"""

import os

os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from fastapi.testclient import TestClient

from productbuilder.api.dependencies import get_cache
from productbuilder.api.webhooks import get_service
from productbuilder.application.webhook_service import WebhookService
from productbuilder.cache import CacheService, InMemoryCacheStore
from productbuilder.infrastructure.config import settings
from productbuilder.main import app

SHOP = "demo-store.myshopify.com"
OTHER_SHOP = "other-store.myshopify.com"

START_MS = 1_700_000_000_000


class FakeClock:
    """Controllable epoch-millisecond clock."""

    def __init__(self, now: int = START_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


@pytest.fixture
def shop() -> str:
    """Test shop domain."""
    return SHOP


@pytest.fixture
def clock() -> FakeClock:
    """Fake clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def store() -> InMemoryCacheStore:
    """Empty in-memory cache store."""
    return InMemoryCacheStore()


@pytest.fixture
def cache(store: InMemoryCacheStore, clock: FakeClock) -> CacheService:
    """Cache service on the in-memory store with a fake clock."""
    return CacheService(store, clock=clock, refresh_timeout_seconds=1.0)


# ============================================================================
# API Fixtures
# ============================================================================


@pytest.fixture
def api_headers() -> dict[str, str]:
    """Bearer key plus shop context headers."""
    return {
        "Authorization": f"Bearer {settings.productbuilder_api_key}",
        "X-Shopify-Shop-Domain": SHOP,
        "X-Shopify-Access-Token": "shpat_test_token",
    }


@pytest.fixture
def app_client(cache: CacheService) -> TestClient:
    """Test client whose cache and webhook service are per-test."""
    webhook_service = WebhookService(cache)
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_service] = lambda: webhook_service
    yield TestClient(app)
    app.dependency_overrides.clear()
