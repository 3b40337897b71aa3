"""FedEx carrier clients: OAuth token exchange and Track API lookups.

Example:
    auth = FedExAuthProvider(config.fedex)
    tracker = FedExTrackingClient(config.fedex)
    token = await auth.acquire_token()
    result = await tracker.track("794843185271", token)
"""

import logging
from typing import Any

import httpx

from delivery_reconciler.clients.base import CarrierAuthProvider, CarrierTrackingClient
from delivery_reconciler.config import FedExConfig
from delivery_reconciler.errors import AuthError, CarrierResponseError
from delivery_reconciler.errors.registry import format_message
from delivery_reconciler.models import CarrierTrackResult
from delivery_reconciler.utils.redaction import sanitize_error_message

logger = logging.getLogger(__name__)

ACTUAL_DELIVERY_TYPE = "ACTUAL_DELIVERY"
ESTIMATED_DELIVERY_TYPE = "ESTIMATED_DELIVERY"


class FedExAuthProvider(CarrierAuthProvider):
    """Client-credentials token exchange against the FedEx OAuth endpoint.

    A fresh token is requested on every call; nothing is cached.
    """

    def __init__(self, config: FedExConfig, timeout: float = 20.0) -> None:
        self._config = config.require()
        self._timeout = timeout

    async def acquire_token(self) -> str:
        """Exchange client id/secret for a bearer token.

        Returns:
            The ``access_token`` value.

        Raises:
            AuthError: On transport failure, non-2xx status, or a body
                without ``access_token``. Status and body are attached.
        """
        form = {
            "grant_type": "client_credentials",
            "client_id": self._config.api_key,
            "client_secret": self._config.secret_key,
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    self._config.token_url,
                    data=form,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except httpx.RequestError as e:
            raise AuthError.from_code("E-5002", reason=str(e)) from e

        if not 200 <= response.status_code < 300:
            body = sanitize_error_message(response.text or "", max_length=500)
            logger.warning("FedEx OAuth returned HTTP %s", response.status_code)
            raise AuthError(
                format_message("E-5001", status=response.status_code, body=body),
                code="E-5001",
                status_code=response.status_code,
                details={"status": response.status_code, "body": body},
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthError(
                "FedEx OAuth returned a non-JSON body",
                code="E-5001",
                status_code=response.status_code,
            ) from e

        # { access_token, token_type, expires_in, scope }
        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise AuthError(
                "FedEx OAuth response did not include access_token",
                code="E-5001",
                status_code=response.status_code,
            )
        return token


class FedExTrackingClient(CarrierTrackingClient):
    """FedEx Track API (``/track/v1/trackingnumbers``) for one number per call."""

    def __init__(self, config: FedExConfig, timeout: float = 20.0) -> None:
        self._config = config
        self._timeout = timeout

    def _build_request(self, tracking_number: str, ship_date: str | None) -> dict[str, Any]:
        info: dict[str, Any] = {"trackingNumberInfo": {"trackingNumber": tracking_number}}
        if ship_date:
            info["shipDateBegin"] = ship_date
            info["shipDateEnd"] = ship_date
        return {"includeDetailedScans": False, "trackingInfo": [info]}

    async def track(
        self,
        tracking_number: str,
        token: str,
        ship_date: str | None = None,
    ) -> CarrierTrackResult:
        """Look up the latest status for ``tracking_number``.

        Args:
            tracking_number: Carrier tracking number.
            token: Bearer token from FedExAuthProvider.
            ship_date: Optional YYYY-MM-DD hint narrowing the search window.

        Raises:
            CarrierResponseError: Transport error, non-2xx status, or a
                payload that does not match the Track API shape.
        """
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "X-locale": "en_US",
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    self._config.track_url,
                    json=self._build_request(tracking_number, ship_date),
                    headers=headers,
                )
        except httpx.RequestError as e:
            raise CarrierResponseError(
                format_message("E-3001", tracking_number=tracking_number, reason=str(e)),
                tracking_number=tracking_number,
                code="E-3001",
            ) from e

        if not 200 <= response.status_code < 300:
            raise CarrierResponseError(
                format_message(
                    "E-3001",
                    tracking_number=tracking_number,
                    reason=f"HTTP {response.status_code}",
                ),
                tracking_number=tracking_number,
                code="E-3001",
                details={
                    "status": response.status_code,
                    "body": sanitize_error_message(response.text or "", max_length=500),
                },
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise CarrierResponseError(
                format_message("E-3002", tracking_number=tracking_number),
                tracking_number=tracking_number,
                code="E-3002",
            ) from e

        return parse_track_result(tracking_number, payload)


def _malformed(tracking_number: str, where: str) -> CarrierResponseError:
    return CarrierResponseError(
        format_message("E-3002", tracking_number=tracking_number),
        tracking_number=tracking_number,
        code="E-3002",
        details={"missing": where},
    )


def _find_date(date_and_times: list[Any], date_type: str) -> str | None:
    for entry in date_and_times:
        if isinstance(entry, dict) and entry.get("type") == date_type:
            value = entry.get("dateTime")
            return value if isinstance(value, str) else None
    return None


def parse_track_result(tracking_number: str, payload: Any) -> CarrierTrackResult:
    """Translate a Track API response into a CarrierTrackResult.

    Picks the completeTrackResults entry matching ``tracking_number`` and
    falls back to the first one, since the sandbox answers with canned
    numbers.

    Raises:
        CarrierResponseError: If the payload is structurally malformed or
            the track result only carries a carrier-side error.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("output"), dict):
        raise _malformed(tracking_number, "output")

    complete = payload["output"].get("completeTrackResults")
    if not isinstance(complete, list) or not complete:
        raise _malformed(tracking_number, "output.completeTrackResults")

    entry = next(
        (c for c in complete if isinstance(c, dict) and c.get("trackingNumber") == tracking_number),
        complete[0],
    )
    if not isinstance(entry, dict):
        raise _malformed(tracking_number, "completeTrackResults[]")

    track_results = entry.get("trackResults")
    if not isinstance(track_results, list) or not track_results:
        raise _malformed(tracking_number, "trackResults")
    result = track_results[0]
    if not isinstance(result, dict):
        raise _malformed(tracking_number, "trackResults[0]")

    latest = result.get("latestStatusDetail")
    error = result.get("error")
    if not latest and isinstance(error, dict):
        reason = error.get("message") or error.get("code") or "unknown error"
        raise CarrierResponseError(
            format_message("E-3003", tracking_number=tracking_number, reason=reason),
            tracking_number=tracking_number,
            code="E-3003",
            details={"error": error},
        )
    if not isinstance(latest, dict):
        latest = {}

    date_and_times = result.get("dateAndTimes")
    if not isinstance(date_and_times, list):
        date_and_times = []

    window = result.get("estimatedDeliveryTimeWindow")
    window = window.get("window") if isinstance(window, dict) else None
    window_end = window.get("ends") if isinstance(window, dict) else None
    if not isinstance(window_end, str):
        window_end = None
    estimated = window_end or _find_date(date_and_times, ESTIMATED_DELIVERY_TYPE)

    return CarrierTrackResult(
        tracking_number=tracking_number,
        status_code=latest.get("code"),
        status_description=latest.get("description"),
        estimated_delivery=estimated,
        actual_delivery=_find_date(date_and_times, ACTUAL_DELIVERY_TYPE),
        raw=result,
    )
