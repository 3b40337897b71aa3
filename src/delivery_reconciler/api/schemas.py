"""Request/response schemas for the tracking proxy endpoints."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TrackingRequest(BaseModel):
    """Body of POST /proxy/fedex-status/tracking.

    ``order_id`` is optional here so a missing value reaches the engine's
    validation and produces the standard 400 envelope.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    order_id: Any = Field(None, description="Shopify order id or GID")


class ErrorEnvelope(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ok: bool = False
    message: str
    error_code: str | None = None
    details: dict[str, Any] | None = None


class AliveResponse(BaseModel):
    ok: bool = True
    msg: str = "proxy alive"
