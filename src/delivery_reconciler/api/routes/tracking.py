"""FastAPI routes for the FedEx status proxy.

Endpoints:
    GET  /proxy/fedex-status            liveness acknowledgement
    POST /proxy/fedex-status/tracking   reconcile one order

Reconciler errors propagate to the exception handler in ``api.main``,
which maps them to HTTP statuses.
"""

import logging
from functools import lru_cache
from typing import Any

from fastapi import APIRouter, Depends, Request

from delivery_reconciler.api.schemas import AliveResponse, TrackingRequest
from delivery_reconciler.config import ReconcilerConfig, load_config
from delivery_reconciler.factory import build_engine
from delivery_reconciler.services import ReconciliationEngine
from delivery_reconciler.services.reconciliation import validate_order_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/proxy/fedex-status", tags=["tracking"])


@lru_cache
def get_config() -> ReconcilerConfig:
    """Process-wide configuration, loaded at startup or on first request.

    Applies ``server.log_level`` to the package logger.

    Raises:
        ConfigurationError: The config file or a value in it is invalid.
    """
    config = load_config()
    level = logging.getLevelName(config.server.log_level.upper())
    logging.getLogger("delivery_reconciler").setLevel(
        level if isinstance(level, int) else logging.INFO
    )
    return config


def get_engine(config: ReconcilerConfig = Depends(get_config)) -> ReconciliationEngine:
    """Build a fresh engine per request from injected configuration.

    Raises:
        ConfigurationError: Shopify or FedEx credentials are missing.
    """
    return build_engine(config)


async def get_order_id(request: Request) -> str:
    """Parse the JSON body leniently and validate ``orderId``.

    Resolved before ``get_engine`` so bad input is rejected with 400 even
    when credentials are not configured.

    Raises:
        ValidationError: Body missing, not JSON, or without a usable orderId.
    """
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        payload = {}

    order_id = TrackingRequest.model_validate(payload).order_id
    # Numeric ids arrive unquoted from some admin extensions
    if isinstance(order_id, int) and not isinstance(order_id, bool):
        order_id = str(order_id)
    return validate_order_id(order_id)


@router.get("", response_model=AliveResponse)
async def proxy_alive() -> AliveResponse:
    return AliveResponse()


@router.post("/tracking")
async def reconcile_tracking(
    order_id: str = Depends(get_order_id),
    engine: ReconciliationEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Reconcile FedEx delivery status for one Shopify order.

    Returns 200 with the reconciliation result whenever the run gets past
    the order fetch, even if individual lookups or confirmations failed.
    """
    result = await engine.reconcile(order_id)
    return result.model_dump(by_alias=True)
