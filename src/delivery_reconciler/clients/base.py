"""Abstract collaborator contracts used by the reconciliation engine.

Concrete implementations live in ``shopify.py`` (order backend) and
``fedex.py`` (carrier). Tests substitute in-memory fakes.
"""

from abc import ABC, abstractmethod

from delivery_reconciler.models import CarrierTrackResult, ConfirmationEvent, Order


class OrderGateway(ABC):
    """Reads fulfillment/tracking data and writes delivery confirmations."""

    @abstractmethod
    async def fetch_order(self, order_id: str) -> Order:
        """Fetch an order with every fulfillment and tracking leg.

        Raises:
            UpstreamError: On any failure; ``not_found`` is set when no
                order matches ``order_id``.
        """
        ...

    @abstractmethod
    async def confirm_fulfillment_delivered(
        self, fulfillment_id: str, occurred_at: str | None = None
    ) -> ConfirmationEvent:
        """Record a delivered event on a fulfillment.

        Never raises; failures are reported on the returned event.
        """
        ...


class CarrierAuthProvider(ABC):
    """Exchanges client credentials for a short-lived bearer token."""

    @abstractmethod
    async def acquire_token(self) -> str:
        """Return a bearer token.

        Raises:
            AuthError: If the exchange fails; no retry is attempted.
        """
        ...


class CarrierTrackingClient(ABC):
    """Looks up the latest carrier status for a single tracking number."""

    @abstractmethod
    async def track(
        self,
        tracking_number: str,
        token: str,
        ship_date: str | None = None,
    ) -> CarrierTrackResult:
        """Fetch the latest status for ``tracking_number``.

        Raises:
            CarrierResponseError: On transport failure or malformed payload.
        """
        ...
