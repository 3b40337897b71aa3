"""Maps a carrier track result to a delivered/not-delivered verdict.

A result counts as delivered when either signal is present:
- the latest status code is FedEx's canonical "DL", or
- the latest status description contains "delivered" (case-insensitive).

The description check covers sandbox and edge responses that omit the code
but still describe the package as delivered.
"""

from delivery_reconciler.models import (
    FEDEX_DELIVERED_CODE,
    CarrierTrackResult,
    DeliveryVerdict,
)


def is_delivered(status_code: str | None, status_description: str | None) -> bool:
    if status_code == FEDEX_DELIVERED_CODE:
        return True
    return "delivered" in (status_description or "").lower()


def classify(
    result: CarrierTrackResult | None, tracking_number: str = ""
) -> DeliveryVerdict:
    """Classify one carrier result. Pure and total.

    Args:
        result: Parsed carrier result, or None when the lookup failed or
            returned nothing usable.
        tracking_number: Label for the verdict when ``result`` is None.

    Returns:
        DeliveryVerdict; an absent result is not delivered with every
        status field None.
    """
    if result is None:
        return DeliveryVerdict(tracking_number=tracking_number, delivered=False)

    return DeliveryVerdict(
        tracking_number=result.tracking_number,
        delivered=is_delivered(result.status_code, result.status_description),
        status_code=result.status_code,
        status_description=result.status_description,
        estimated_delivery=result.estimated_delivery,
        actual_delivery=result.actual_delivery,
    )
