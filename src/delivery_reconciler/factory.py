"""Wires configuration into a ReconciliationEngine with concrete clients."""

from delivery_reconciler.clients import (
    FedExAuthProvider,
    FedExTrackingClient,
    ShopifyOrderGateway,
)
from delivery_reconciler.config import ReconcilerConfig
from delivery_reconciler.services import ReconciliationEngine


def build_engine(config: ReconcilerConfig) -> ReconciliationEngine:
    """Build an engine backed by Shopify and FedEx.

    Raises:
        ConfigurationError: Shopify or FedEx credentials are missing.
    """
    timeout = config.http_timeout_seconds
    return ReconciliationEngine(
        gateway=ShopifyOrderGateway(config.shopify, timeout=timeout),
        auth=FedExAuthProvider(config.fedex, timeout=timeout),
        carrier=FedExTrackingClient(config.fedex, timeout=timeout),
    )
