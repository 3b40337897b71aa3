"""Typed domain exceptions for API error mapping.

Routes catch specific exception types to choose an HTTP status:

    ValidationError      -> 400
    UpstreamError        -> 400 when ``not_found`` else 500
    AuthError            -> 500 (an UpstreamError from the carrier token exchange)
    ConfigurationError   -> 500

CarrierResponseError never leaves the reconciliation engine; a failed
lookup degrades to an absent carrier result.
"""

from typing import Any

from delivery_reconciler.errors.registry import format_message, get_error


class DomainError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ReconcilerError(DomainError):
    """Domain error carrying a registry code and diagnostic details.

    Attributes:
        code: Error code in E-XXXX format.
        message: Human-readable error message.
        details: Additional context (HTTP status, response body, ...).
    """

    default_code = "E-4001"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code or self.default_code
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    @property
    def remediation(self) -> str:
        error_def = get_error(self.code)
        return error_def.remediation if error_def else ""

    @classmethod
    def from_code(
        cls, code: str, details: dict[str, Any] | None = None, **context: object
    ) -> "ReconcilerError":
        """Create an error whose message is rendered from the registry."""
        return cls(format_message(code, **context), code=code, details=details)


class ValidationError(ReconcilerError):
    """Missing or malformed caller input. Maps to HTTP 400."""

    default_code = "E-2001"


class ConfigurationError(ReconcilerError):
    """Required service endpoint or credential is not configured."""

    default_code = "E-4001"


class UpstreamError(ReconcilerError):
    """Order backend or carrier auth call failed or returned an unexpected shape.

    ``not_found`` distinguishes the normal "no such order" case so the
    request handler can answer with a 4xx instead of a 5xx.
    """

    default_code = "E-6001"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
        not_found: bool = False,
    ) -> None:
        super().__init__(message, code=code, details=details)
        self.status_code = status_code
        self.not_found = not_found


class AuthError(UpstreamError):
    """Carrier token exchange failed."""

    default_code = "E-5001"


class CarrierResponseError(ReconcilerError):
    """A single carrier tracking lookup failed or returned malformed data."""

    default_code = "E-3002"

    def __init__(
        self,
        message: str,
        *,
        tracking_number: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code=code, details=details)
        self.tracking_number = tracking_number
