"""Tracking reconciliation engine.

One ``reconcile(order_id)`` call is one reconciliation run:

1. Validate the order id (no network access on failure).
2. Fetch the order; short-circuit when it has no tracking numbers.
3. Deduplicate tracking numbers across fulfillments.
4. Acquire one carrier token for the whole run.
5. Look up every distinct number concurrently; failures degrade to absent.
6. Classify, then derive fulfillment and order verdicts.
7. Confirm delivery concurrently for delivered fulfillments not yet
   marked DELIVERED; every write outcome is reported.
8. Assemble the result.

Steps 1, 2 and 4 are fatal. Steps 5 and 7 never fail the run.
"""

import logging
import time
from datetime import datetime

from delivery_reconciler.clients.base import (
    CarrierAuthProvider,
    CarrierTrackingClient,
    OrderGateway,
)
from delivery_reconciler.errors import ValidationError
from delivery_reconciler.models import (
    CarrierTrackResult,
    ConfirmationError,
    ConfirmationEvent,
    DeliveryVerdict,
    Fulfillment,
    FulfillmentSummary,
    Order,
    OrderSummary,
    ReconciliationResult,
    TrackingSummary,
)
from delivery_reconciler.services.delivery_classifier import classify
from delivery_reconciler.utils.settle import settle_all

logger = logging.getLogger(__name__)

TRACKING_LOADED_MESSAGE = "Tracking loaded"
NO_TRACKING_MESSAGE = "No tracking numbers yet"


def validate_order_id(order_id: object) -> str:
    """Return the stripped order id.

    Raises:
        ValidationError: ``order_id`` is missing, blank, or not a string.
    """
    if not isinstance(order_id, str) or not order_id.strip():
        raise ValidationError.from_code("E-2001")
    return order_id.strip()


def summarize_fulfillment(
    fulfillment: Fulfillment, verdicts: dict[str, DeliveryVerdict]
) -> FulfillmentSummary:
    """Attach verdicts to a fulfillment's legs and derive ``all_delivered``.

    ``all_delivered`` requires at least one leg and every leg delivered.
    """
    tracking = [
        TrackingSummary(
            number=leg.number,
            company=leg.company,
            url=leg.url,
            verdict=verdicts.get(leg.number) or classify(None, leg.number),
        )
        for leg in fulfillment.tracking
    ]
    return FulfillmentSummary(
        id=fulfillment.id,
        status=fulfillment.status,
        all_delivered=bool(tracking) and all(t.verdict.delivered for t in tracking),
        tracking=tracking,
    )


def order_all_delivered(summaries: list[FulfillmentSummary]) -> bool:
    """True only for a non-empty order whose every fulfillment is all-delivered."""
    return bool(summaries) and all(
        s.all_delivered and s.tracking for s in summaries
    )


def _parse_timestamp(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def latest_actual_delivery(summary: FulfillmentSummary) -> str | None:
    """Latest carrier actual-delivery time across a fulfillment's legs."""
    stamps = [t.verdict.actual_delivery for t in summary.tracking if t.verdict.actual_delivery]
    if not stamps:
        return None
    parsed = [(_parse_timestamp(s), s) for s in stamps]
    comparable = [(dt, s) for dt, s in parsed if dt is not None]
    if len(comparable) != len(parsed):
        return stamps[0]
    try:
        return max(comparable, key=lambda pair: pair[0])[1]
    except TypeError:
        # naive and aware timestamps mixed
        return stamps[0]


class ReconciliationEngine:
    """Orchestrates order reads, carrier lookups, and delivery confirmations.

    Collaborators are injected so tests can substitute fakes. The engine
    holds no state between runs.
    """

    def __init__(
        self,
        gateway: OrderGateway,
        auth: CarrierAuthProvider,
        carrier: CarrierTrackingClient,
    ) -> None:
        self._gateway = gateway
        self._auth = auth
        self._carrier = carrier

    async def reconcile(self, order_id: str | None) -> ReconciliationResult:
        """Run one reconciliation for ``order_id``.

        Raises:
            ValidationError: ``order_id`` missing or blank.
            UpstreamError: Order fetch or carrier token exchange failed.
        """
        order_id = validate_order_id(order_id)

        started = time.monotonic()
        order = await self._gateway.fetch_order(order_id)

        numbers = order.distinct_tracking_numbers()
        if not numbers:
            logger.info("Order %s has no tracking numbers; skipping carrier lookups", order_id)
            return self._assemble(
                order_id,
                order,
                [summarize_fulfillment(f, {}) for f in order.fulfillments],
                [],
                no_tracking_numbers=True,
            )

        token = await self._auth.acquire_token()
        results = await self._lookup_all(numbers, token)
        verdicts = {number: classify(results[number], number) for number in numbers}

        summaries = [summarize_fulfillment(f, verdicts) for f in order.fulfillments]
        to_confirm = [
            summary
            for fulfillment, summary in zip(order.fulfillments, summaries)
            if summary.all_delivered and not fulfillment.is_delivered
        ]
        updates = await self._confirm_all(to_confirm)

        logger.info(
            "Reconciled order %s: fulfillments=%d tracking_numbers=%d "
            "lookups_failed=%d confirmations=%d confirmations_failed=%d elapsed=%.2fs",
            order_id,
            len(order.fulfillments),
            len(numbers),
            sum(1 for r in results.values() if r is None),
            len(updates),
            sum(1 for u in updates if not u.ok),
            time.monotonic() - started,
        )
        return self._assemble(order_id, order, summaries, updates)

    async def _lookup_all(
        self, numbers: list[str], token: str
    ) -> dict[str, CarrierTrackResult | None]:
        """One concurrent lookup per number; any failure becomes None."""
        settled = await settle_all(self._carrier.track(number, token) for number in numbers)

        results: dict[str, CarrierTrackResult | None] = {}
        for number, outcome in zip(numbers, settled):
            if outcome.ok:
                results[number] = outcome.value
            else:
                logger.warning(
                    "Carrier lookup for %s degraded to absent: %s", number, outcome.error
                )
                results[number] = None
        return results

    async def _confirm_all(
        self, summaries: list[FulfillmentSummary]
    ) -> list[ConfirmationEvent]:
        """Concurrent confirmation writes; one outcome per fulfillment."""
        if not summaries:
            return []

        occurred = [latest_actual_delivery(s) for s in summaries]
        settled = await settle_all(
            self._gateway.confirm_fulfillment_delivered(s.id, occurred_at)
            for s, occurred_at in zip(summaries, occurred)
        )

        events = []
        for summary, occurred_at, outcome in zip(summaries, occurred, settled):
            if outcome.ok and outcome.value is not None:
                events.append(outcome.value)
                continue
            logger.warning(
                "Delivery confirmation for %s raised: %s", summary.id, outcome.error
            )
            events.append(
                ConfirmationEvent(
                    fulfillment_id=summary.id,
                    occurred_at=occurred_at,
                    ok=False,
                    error=ConfirmationError(
                        code="E-6106",
                        reason="unexpected",
                        message=str(outcome.error),
                    ),
                )
            )
        return events

    def _assemble(
        self,
        order_id: str,
        order: Order,
        summaries: list[FulfillmentSummary],
        updates: list[ConfirmationEvent],
        no_tracking_numbers: bool = False,
    ) -> ReconciliationResult:
        return ReconciliationResult(
            message=NO_TRACKING_MESSAGE if no_tracking_numbers else TRACKING_LOADED_MESSAGE,
            order_id=order_id,
            order=OrderSummary(
                id=order.id, name=order.name, status=order.display_fulfillment_status
            ),
            all_delivered=False if no_tracking_numbers else order_all_delivered(summaries),
            no_tracking_numbers=no_tracking_numbers,
            fulfillments=summaries,
            updates=updates,
        )
