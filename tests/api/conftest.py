"""Pytest fixtures for API tests.

Provides a TestClient whose engine dependency is replaced by an engine
wired to in-memory fakes.
"""

import logging
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from delivery_reconciler.api.main import app
from delivery_reconciler.api.routes.tracking import get_config, get_engine
from delivery_reconciler.config import ReconcilerConfig
from delivery_reconciler.services import ReconciliationEngine
from tests.helpers.fakes import (
    FakeAuthProvider,
    FakeCarrier,
    FakeOrderGateway,
    delivered_result,
    make_fulfillment,
    make_order,
)


@pytest.fixture(autouse=True)
def _fresh_config():
    """Reload configuration per test and restore the package log level."""
    package_logger = logging.getLogger("delivery_reconciler")
    level = package_logger.level
    get_config.cache_clear()
    yield
    get_config.cache_clear()
    package_logger.setLevel(level)


@pytest.fixture
def gateway() -> FakeOrderGateway:
    return FakeOrderGateway(
        order=make_order(make_fulfillment("gid://shopify/Fulfillment/1", "794843185271"))
    )


@pytest.fixture
def auth() -> FakeAuthProvider:
    return FakeAuthProvider()


@pytest.fixture
def carrier() -> FakeCarrier:
    return FakeCarrier(results={"794843185271": delivered_result("794843185271")})


@pytest.fixture
def client(gateway, auth, carrier) -> Generator[TestClient, None, None]:
    """Create a TestClient with the engine dependency overridden.

    Yields:
        TestClient configured for testing.
    """
    engine = ReconciliationEngine(gateway=gateway, auth=auth, carrier=carrier)
    app.dependency_overrides[get_engine] = lambda: engine

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def unconfigured_client() -> Generator[TestClient, None, None]:
    """TestClient running with no Shopify or FedEx credentials."""
    app.dependency_overrides[get_config] = lambda: ReconcilerConfig()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
