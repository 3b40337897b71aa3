"""Error handling framework for the delivery reconciler.

This package provides:
- Error code registry with E-XXXX format codes
- Typed domain exceptions mapped to HTTP statuses by the API layer

Error categories:
- E-2xxx: Validation errors
- E-3xxx: FedEx Track API errors
- E-4xxx: System/configuration errors
- E-5xxx: Carrier authentication errors
- E-6xxx: Shopify order backend errors
"""

from delivery_reconciler.errors.domain import (
    AuthError,
    CarrierResponseError,
    ConfigurationError,
    DomainError,
    ReconcilerError,
    UpstreamError,
    ValidationError,
)
from delivery_reconciler.errors.registry import (
    ERROR_REGISTRY,
    ErrorCategory,
    ErrorCode,
    format_message,
    get_error,
    get_errors_by_category,
)

__all__ = [
    # Registry
    "ErrorCode",
    "ErrorCategory",
    "ERROR_REGISTRY",
    "format_message",
    "get_error",
    "get_errors_by_category",
    # Exceptions
    "DomainError",
    "ReconcilerError",
    "ValidationError",
    "ConfigurationError",
    "UpstreamError",
    "AuthError",
    "CarrierResponseError",
]
