"""Root-level pytest fixtures for all tests.

Provides configuration fixtures with dummy credentials so no test touches
the real Shopify or FedEx environments.
"""

import pytest

from delivery_reconciler.config import (
    FedExConfig,
    ReconcilerConfig,
    ShopifyConfig,
)

_CONFIG_ENV_VARS = (
    "DELIVERY_RECONCILER_CONFIG_PATH",
    "SHOPIFY_STORE_DOMAIN",
    "SHOPIFY_ACCESS_TOKEN",
    "SHOPIFY_API_VERSION",
    "FEDEX_API_KEY",
    "FEDEX_SECRET_KEY",
    "FEDEX_BASE_URL",
    "HTTP_TIMEOUT_SECONDS",
    "HOST",
    "PORT",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep a developer's real credentials out of every test."""
    for name in _CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def shopify_config() -> ShopifyConfig:
    return ShopifyConfig(
        store_domain="test-store.myshopify.com",
        access_token="shpat_test_token_12345",
    )


@pytest.fixture
def fedex_config() -> FedExConfig:
    return FedExConfig(api_key="l7_test_key", secret_key="test_secret_value")


@pytest.fixture
def reconciler_config(shopify_config, fedex_config) -> ReconcilerConfig:
    return ReconcilerConfig(shopify=shopify_config, fedex=fedex_config)
