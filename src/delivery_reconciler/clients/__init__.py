"""Order backend and carrier client implementations."""

from delivery_reconciler.clients.base import (
    CarrierAuthProvider,
    CarrierTrackingClient,
    OrderGateway,
)
from delivery_reconciler.clients.fedex import (
    FedExAuthProvider,
    FedExTrackingClient,
    parse_track_result,
)
from delivery_reconciler.clients.shopify import ShopifyOrderGateway, to_order_gid

__all__ = [
    "OrderGateway",
    "CarrierAuthProvider",
    "CarrierTrackingClient",
    "FedExAuthProvider",
    "FedExTrackingClient",
    "parse_track_result",
    "ShopifyOrderGateway",
    "to_order_gid",
]
