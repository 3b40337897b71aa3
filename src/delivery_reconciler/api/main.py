"""FastAPI application for the delivery reconciler.

Provides the application instance with the tracking router, permissive
CORS middleware, and exception handlers that map reconciler errors to
HTTP statuses.
"""

import logging
import sys
from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

# Configure logging to stdout for uvicorn to capture
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logging.getLogger("delivery_reconciler").setLevel(logging.INFO)

from delivery_reconciler.api.middleware.cors import permissive_cors  # noqa: E402
from delivery_reconciler.api.routes import tracking  # noqa: E402
from delivery_reconciler.api.schemas import ErrorEnvelope  # noqa: E402
from delivery_reconciler.errors import (  # noqa: E402
    ConfigurationError,
    ReconcilerError,
    UpstreamError,
    ValidationError,
)
from delivery_reconciler.utils.redaction import redact_for_logging  # noqa: E402

logger = logging.getLogger(__name__)


def _package_version() -> str:
    try:
        return _pkg_version("delivery-reconciler")
    except PackageNotFoundError:
        return "unknown"


def status_for_error(exc: ReconcilerError) -> int:
    """HTTP status for a reconciler error.

    ValidationError -> 400, UpstreamError -> 400 when the order was not
    found else 500, anything else (ConfigurationError) -> 500.
    """
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, UpstreamError):
        return 400 if exc.not_found else 500
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load configuration at startup so the configured log level applies early."""
    try:
        tracking.get_config()
    except ReconcilerError as e:
        # retried on the first tracking request, which reports it in the envelope
        logger.error("Configuration not loaded at startup: %s", e)
    yield


app = FastAPI(
    title="Delivery Reconciler",
    description="Reconciles Shopify fulfillment tracking with FedEx delivery status",
    version=_package_version(),
    lifespan=lifespan,
)

app.middleware("http")(permissive_cors)


@app.exception_handler(ReconcilerError)
async def reconciler_error_handler(request: Request, exc: ReconcilerError) -> JSONResponse:
    """Render any ReconcilerError as ``{ok: false, message, errorCode, details}``."""
    status_code = status_for_error(exc)
    if status_code >= 500:
        log = logger.error if isinstance(exc, ConfigurationError) else logger.warning
        log("%s %s failed: %s", request.method, request.url.path, exc)

    envelope = ErrorEnvelope(
        message=exc.message,
        error_code=exc.code,
        details=redact_for_logging(exc.details) if exc.details else None,
    )
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(by_alias=True, exclude_none=True),
    )


app.include_router(tracking.router)


@app.get("/health")
def health_check() -> dict:
    """Static liveness check; does not touch Shopify or FedEx."""
    return {"status": "healthy", "version": _package_version()}
