"""Shopify order gateway over the Admin GraphQL API.

Reads an order with its fulfillments and tracking info, and records
DELIVERED fulfillment events.

Example:
    gateway = ShopifyOrderGateway(config.shopify)
    order = await gateway.fetch_order("5512345678901")
    event = await gateway.confirm_fulfillment_delivered(
        order.fulfillments[0].id, occurred_at="2024-05-01T14:03:00Z"
    )
"""

import logging
from typing import Any

import httpx

from delivery_reconciler.clients.base import OrderGateway
from delivery_reconciler.config import ShopifyConfig
from delivery_reconciler.errors import UpstreamError
from delivery_reconciler.errors.registry import format_message
from delivery_reconciler.models import (
    DELIVERED_STATUS,
    ConfirmationError,
    ConfirmationEvent,
    Fulfillment,
    Order,
    TrackingLeg,
)
from delivery_reconciler.utils.redaction import sanitize_error_message

logger = logging.getLogger(__name__)

ORDER_GID_PREFIX = "gid://shopify/Order/"

ORDER_FULFILLMENTS_QUERY = """
query OrderFulfillments($id: ID!) {
  order(id: $id) {
    id
    name
    displayFulfillmentStatus
    fulfillments(first: 50) {
      id
      displayStatus
      trackingInfo(first: 20) {
        number
        company
        url
      }
    }
  }
}
"""

FULFILLMENT_EVENT_CREATE_MUTATION = """
mutation FulfillmentDelivered($fulfillmentEvent: FulfillmentEventInput!) {
  fulfillmentEventCreate(fulfillmentEvent: $fulfillmentEvent) {
    fulfillmentEvent {
      id
      status
      happenedAt
    }
    userErrors {
      field
      message
    }
  }
}
"""

DELIVERED_EVENT_MESSAGE = "Delivered (confirmed by FedEx tracking)"


def to_order_gid(order_id: str) -> str:
    """Normalize a numeric order id to its GraphQL global id."""
    order_id = order_id.strip()
    if order_id.startswith("gid://"):
        return order_id
    return f"{ORDER_GID_PREFIX}{order_id}"


class _GraphQLFailure(Exception):
    """Internal: one failed GraphQL round trip, classified by ``reason``."""

    def __init__(
        self,
        reason: str,
        message: str,
        status: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message
        self.status = status
        self.details = details or {}


class ShopifyOrderGateway(OrderGateway):
    """Shopify Admin GraphQL client for fulfillment reads and delivery writes."""

    def __init__(self, config: ShopifyConfig, timeout: float = 20.0) -> None:
        self._config = config.require()
        self._timeout = timeout

    def _get_headers(self) -> dict[str, str]:
        return {
            "X-Shopify-Access-Token": self._config.access_token,
            "Content-Type": "application/json",
        }

    async def _execute(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """POST one GraphQL document and return its ``data`` object.

        Raises:
            _GraphQLFailure: transport, http_status, malformed_body, or
                graphql_errors.
        """
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    self._config.graphql_url,
                    json={"query": query, "variables": variables},
                    headers=self._get_headers(),
                )
        except httpx.RequestError as e:
            raise _GraphQLFailure("transport", str(e)) from e

        if not 200 <= response.status_code < 300:
            raise _GraphQLFailure(
                "http_status",
                f"HTTP {response.status_code}",
                status=response.status_code,
                details={"body": sanitize_error_message(response.text or "", max_length=500)},
            )

        try:
            body = response.json()
        except ValueError as e:
            raise _GraphQLFailure(
                "malformed_body", "response body is not JSON", status=response.status_code
            ) from e
        if not isinstance(body, dict):
            raise _GraphQLFailure(
                "malformed_body", "response body is not an object", status=response.status_code
            )

        errors = body.get("errors")
        if errors:
            messages = [
                e.get("message", str(e)) if isinstance(e, dict) else str(e)
                for e in (errors if isinstance(errors, list) else [errors])
            ]
            raise _GraphQLFailure(
                "graphql_errors",
                "; ".join(messages),
                status=response.status_code,
                details={"errors": messages},
            )

        data = body.get("data")
        if not isinstance(data, dict):
            raise _GraphQLFailure(
                "malformed_body", "response has no data object", status=response.status_code
            )
        return data

    async def fetch_order(self, order_id: str) -> Order:
        """Fetch an order with every fulfillment and its tracking legs.

        Args:
            order_id: Numeric Shopify order id or ``gid://shopify/Order/...``.

        Returns:
            Normalized Order snapshot.

        Raises:
            UpstreamError: E-6001 transport, E-6002 HTTP status, E-6003
                malformed body, E-6004 GraphQL errors, E-6005 not found.
        """
        gid = to_order_gid(order_id)
        try:
            data = await self._execute(ORDER_FULFILLMENTS_QUERY, {"id": gid})
        except _GraphQLFailure as failure:
            raise self._read_error(failure) from failure

        raw_order = data.get("order")
        if raw_order is None:
            raise UpstreamError(
                format_message("E-6005", order_id=order_id),
                code="E-6005",
                status_code=404,
                not_found=True,
                details={"orderId": order_id},
            )
        try:
            return self._normalize_order(raw_order)
        except (TypeError, KeyError, AttributeError, ValueError) as e:
            raise UpstreamError(
                format_message("E-6003"),
                code="E-6003",
                details={"reason": str(e)},
            ) from e

    def _read_error(self, failure: _GraphQLFailure) -> UpstreamError:
        if failure.reason == "transport":
            code, message = "E-6001", format_message("E-6001", reason=failure.message)
        elif failure.reason == "http_status":
            code, message = "E-6002", format_message("E-6002", status=failure.status)
        elif failure.reason == "graphql_errors":
            code, message = "E-6004", format_message("E-6004", reason=failure.message)
        else:
            code, message = "E-6003", format_message("E-6003")
        logger.warning("Shopify order read failed: [%s] %s", code, failure.message)
        return UpstreamError(
            message,
            code=code,
            status_code=failure.status,
            details={"status": failure.status, **failure.details},
        )

    def _normalize_order(self, raw_order: dict[str, Any]) -> Order:
        """Convert the GraphQL order node to an Order."""
        fulfillments = []
        for raw_fulfillment in raw_order.get("fulfillments") or []:
            legs = [
                TrackingLeg(
                    number=str(info["number"]),
                    company=info.get("company"),
                    url=info.get("url"),
                )
                for info in raw_fulfillment.get("trackingInfo") or []
                # Shopify allows tracking info without a number
                if info.get("number")
            ]
            fulfillments.append(
                Fulfillment(
                    id=raw_fulfillment["id"],
                    status=raw_fulfillment.get("displayStatus"),
                    tracking=legs,
                )
            )
        return Order(
            id=raw_order["id"],
            name=raw_order.get("name"),
            display_fulfillment_status=raw_order.get("displayFulfillmentStatus"),
            fulfillments=fulfillments,
        )

    async def confirm_fulfillment_delivered(
        self, fulfillment_id: str, occurred_at: str | None = None
    ) -> ConfirmationEvent:
        """Create a DELIVERED fulfillment event.

        Never raises. Transport errors, non-2xx statuses, malformed bodies,
        GraphQL errors, and userErrors are each reported with a distinct
        ``error.reason`` and registry code.
        """
        event_input: dict[str, Any] = {
            "fulfillmentId": fulfillment_id,
            "status": DELIVERED_STATUS,
            "message": DELIVERED_EVENT_MESSAGE,
        }
        if occurred_at:
            event_input["happenedAt"] = occurred_at

        try:
            data = await self._execute(
                FULFILLMENT_EVENT_CREATE_MUTATION, {"fulfillmentEvent": event_input}
            )
        except _GraphQLFailure as failure:
            return self._failed_event(fulfillment_id, occurred_at, failure)

        payload = data.get("fulfillmentEventCreate")
        if not isinstance(payload, dict):
            return self._failed_event(
                fulfillment_id,
                occurred_at,
                _GraphQLFailure("malformed_body", "missing fulfillmentEventCreate"),
            )

        user_errors = payload.get("userErrors") or []
        if user_errors:
            messages = [
                ue.get("message", str(ue)) if isinstance(ue, dict) else str(ue)
                for ue in user_errors
            ]
            return self._failed_event(
                fulfillment_id,
                occurred_at,
                _GraphQLFailure(
                    "user_errors", "; ".join(messages), details={"userErrors": user_errors}
                ),
            )

        created = payload.get("fulfillmentEvent") or {}
        logger.info(
            "Confirmed delivery for fulfillment %s (event %s)",
            fulfillment_id,
            created.get("id"),
        )
        return ConfirmationEvent(
            fulfillment_id=fulfillment_id,
            occurred_at=occurred_at,
            ok=True,
            event_id=created.get("id"),
            event_status=created.get("status"),
        )

    def _failed_event(
        self,
        fulfillment_id: str,
        occurred_at: str | None,
        failure: _GraphQLFailure,
    ) -> ConfirmationEvent:
        code = {
            "transport": "E-6101",
            "http_status": "E-6102",
            "malformed_body": "E-6103",
            "graphql_errors": "E-6104",
            "user_errors": "E-6105",
        }.get(failure.reason, "E-6106")
        message = format_message(
            code,
            fulfillment_id=fulfillment_id,
            reason=failure.message,
            status=failure.status,
        )
        logger.warning("Delivery confirmation failed: %s", message)
        details = dict(failure.details)
        if failure.status is not None:
            details["status"] = failure.status
        return ConfirmationEvent(
            fulfillment_id=fulfillment_id,
            occurred_at=occurred_at,
            ok=False,
            error=ConfirmationError(
                code=code,
                reason=failure.reason,
                message=message,
                details=details,
            ),
        )
