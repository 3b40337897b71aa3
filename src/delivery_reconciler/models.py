"""Models for order records, carrier results, and reconciliation output.

All models are invocation-scoped value objects. Wire output uses camelCase
aliases (``model_dump(by_alias=True)``); constructors accept snake_case.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Shopify FulfillmentDisplayStatus terminal value
DELIVERED_STATUS = "DELIVERED"

# FedEx latestStatusDetail.code for a delivered shipment
FEDEX_DELIVERED_CODE = "DL"


class _ValueModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class TrackingLeg(_ValueModel):
    """One carrier-assigned tracking number bound to a fulfillment."""

    number: str = Field(..., description="Carrier tracking number")
    company: str | None = Field(None, description="Carrier name as recorded in Shopify")
    url: str | None = Field(None, description="Carrier tracking URL")


class Fulfillment(_ValueModel):
    """Shippable unit of an order with zero or more tracking legs."""

    id: str = Field(..., description="Shopify fulfillment GID")
    status: str | None = Field(None, description="Shopify fulfillment display status")
    tracking: list[TrackingLeg] = Field(default_factory=list)

    @property
    def tracking_numbers(self) -> list[str]:
        return [leg.number for leg in self.tracking]

    @property
    def is_delivered(self) -> bool:
        return (self.status or "").upper() == DELIVERED_STATUS


class Order(_ValueModel):
    """Read-only snapshot of an order and its fulfillments."""

    id: str
    name: str | None = None
    display_fulfillment_status: str | None = None
    fulfillments: list[Fulfillment] = Field(default_factory=list)

    def distinct_tracking_numbers(self) -> list[str]:
        """Tracking numbers across all fulfillments, deduplicated in first-seen order.

        Matching is exact and case-sensitive.
        """
        seen: dict[str, None] = {}
        for fulfillment in self.fulfillments:
            for number in fulfillment.tracking_numbers:
                seen.setdefault(number, None)
        return list(seen)


class CarrierTrackResult(_ValueModel):
    """Latest carrier state for one tracking number."""

    tracking_number: str
    status_code: str | None = None
    status_description: str | None = None
    estimated_delivery: str | None = None
    actual_delivery: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)


class DeliveryVerdict(_ValueModel):
    """Delivered flag plus normalized status fields for one tracking number."""

    tracking_number: str
    delivered: bool = False
    status_code: str | None = None
    status_description: str | None = None
    estimated_delivery: str | None = None
    actual_delivery: str | None = None


class TrackingSummary(_ValueModel):
    """A fulfillment's tracking leg together with its verdict."""

    number: str
    company: str | None = None
    url: str | None = None
    verdict: DeliveryVerdict


class FulfillmentSummary(_ValueModel):
    id: str
    status: str | None = None
    all_delivered: bool = False
    tracking: list[TrackingSummary] = Field(default_factory=list)


class ConfirmationError(_ValueModel):
    """Why a delivery confirmation write failed.

    ``reason`` is one of: transport, http_status, malformed_body,
    graphql_errors, user_errors, unexpected.
    """

    code: str
    reason: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class ConfirmationEvent(_ValueModel):
    """Outcome of one delivery confirmation write."""

    fulfillment_id: str
    occurred_at: str | None = None
    ok: bool
    event_id: str | None = None
    event_status: str | None = None
    error: ConfirmationError | None = None


class OrderSummary(_ValueModel):
    id: str
    name: str | None = None
    status: str | None = None


class ReconciliationResult(_ValueModel):
    """Response body for one reconciliation run."""

    ok: bool = True
    message: str
    order_id: str
    order: OrderSummary
    all_delivered: bool = False
    no_tracking_numbers: bool = False
    fulfillments: list[FulfillmentSummary] = Field(default_factory=list)
    updates: list[ConfirmationEvent] = Field(default_factory=list)
