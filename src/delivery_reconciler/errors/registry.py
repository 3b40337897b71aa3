"""Error code registry with E-XXXX format codes.

Error categories:
- E-2xxx: Caller input validation errors
- E-3xxx: FedEx Track API errors (captured per tracking number)
- E-4xxx: System/configuration errors
- E-5xxx: Carrier authentication errors
- E-6xxx: Shopify order backend errors (E-60xx reads, E-61xx confirmation writes)

Each error includes a code, title, message template, and remediation steps.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Categories for error codes."""

    VALIDATION = "validation"  # E-2xxx
    CARRIER_API = "carrier_api"  # E-3xxx
    SYSTEM = "system"  # E-4xxx
    AUTH = "auth"  # E-5xxx
    ORDER_API = "order_api"  # E-6xxx


@dataclass
class ErrorCode:
    """Definition of an error code with metadata.

    Attributes:
        code: Error code in E-XXXX format.
        category: Error category for grouping.
        title: Short title for display.
        message_template: Message with {placeholders} for context.
        remediation: Action the operator should take to resolve.
        is_retryable: Whether the operation can be retried without user action.
    """

    code: str
    category: ErrorCategory
    title: str
    message_template: str
    remediation: str
    is_retryable: bool = False


ERROR_REGISTRY: dict[str, ErrorCode] = {
    # Validation errors (E-2xxx)
    "E-2001": ErrorCode(
        code="E-2001",
        category=ErrorCategory.VALIDATION,
        title="Missing Order ID",
        message_template="orderId is required.",
        remediation="Send a JSON body of the form {\"orderId\": \"<id>\"}.",
    ),
    # Carrier errors (E-3xxx)
    "E-3001": ErrorCode(
        code="E-3001",
        category=ErrorCategory.CARRIER_API,
        title="FedEx Tracking Request Failed",
        message_template="FedEx tracking lookup for {tracking_number} failed: {reason}",
        remediation="Retry later. Check FedEx API status if the issue persists.",
        is_retryable=True,
    ),
    "E-3002": ErrorCode(
        code="E-3002",
        category=ErrorCategory.CARRIER_API,
        title="Malformed FedEx Tracking Response",
        message_template="FedEx returned an unexpected tracking payload for {tracking_number}.",
        remediation="Inspect the raw response. The FedEx response schema may have changed.",
    ),
    "E-3003": ErrorCode(
        code="E-3003",
        category=ErrorCategory.CARRIER_API,
        title="FedEx Tracking Number Error",
        message_template="FedEx reported an error for {tracking_number}: {reason}",
        remediation="Verify the tracking number on the fulfillment is correct.",
    ),
    # System errors (E-4xxx)
    "E-4001": ErrorCode(
        code="E-4001",
        category=ErrorCategory.SYSTEM,
        title="Missing Configuration",
        message_template="Missing required configuration: {missing}",
        remediation="Set the listed environment variables or add them to the config file.",
    ),
    "E-4002": ErrorCode(
        code="E-4002",
        category=ErrorCategory.SYSTEM,
        title="Invalid Configuration File",
        message_template="Could not load configuration file {path}: {reason}",
        remediation="Fix the YAML syntax or unset DELIVERY_RECONCILER_CONFIG_PATH.",
    ),
    "E-4003": ErrorCode(
        code="E-4003",
        category=ErrorCategory.SYSTEM,
        title="Invalid Configuration Value",
        message_template="Invalid configuration value: {reason}",
        remediation="Check PORT, HTTP_TIMEOUT_SECONDS and the config file for values of the wrong type.",
    ),
    # Auth errors (E-5xxx)
    "E-5001": ErrorCode(
        code="E-5001",
        category=ErrorCategory.AUTH,
        title="FedEx Authentication Failed",
        message_template="FedEx OAuth failed: {status} {body}",
        remediation="Check FEDEX_API_KEY and FEDEX_SECRET_KEY for the configured environment.",
    ),
    "E-5002": ErrorCode(
        code="E-5002",
        category=ErrorCategory.AUTH,
        title="FedEx Token Endpoint Unreachable",
        message_template="Could not reach FedEx OAuth endpoint: {reason}",
        remediation="Check network connectivity and FEDEX_BASE_URL.",
        is_retryable=True,
    ),
    # Order backend read errors (E-60xx)
    "E-6001": ErrorCode(
        code="E-6001",
        category=ErrorCategory.ORDER_API,
        title="Shopify Request Failed",
        message_template="Shopify request failed: {reason}",
        remediation="Retry later. Check Shopify status if the issue persists.",
        is_retryable=True,
    ),
    "E-6002": ErrorCode(
        code="E-6002",
        category=ErrorCategory.ORDER_API,
        title="Shopify HTTP Error",
        message_template="Shopify returned HTTP {status}.",
        remediation="Check SHOPIFY_ACCESS_TOKEN scopes and SHOPIFY_STORE_DOMAIN.",
    ),
    "E-6003": ErrorCode(
        code="E-6003",
        category=ErrorCategory.ORDER_API,
        title="Malformed Shopify Response",
        message_template="Shopify returned a response that could not be parsed.",
        remediation="Check SHOPIFY_API_VERSION is a supported Admin API version.",
    ),
    "E-6004": ErrorCode(
        code="E-6004",
        category=ErrorCategory.ORDER_API,
        title="Shopify GraphQL Error",
        message_template="Shopify GraphQL errors: {reason}",
        remediation="Check the access token has read_orders and write_fulfillments scopes.",
    ),
    "E-6005": ErrorCode(
        code="E-6005",
        category=ErrorCategory.ORDER_API,
        title="Order Not Found",
        message_template="Order {order_id} not found.",
        remediation="Verify the order ID belongs to the configured store.",
    ),
    # Confirmation write errors (E-61xx)
    "E-6101": ErrorCode(
        code="E-6101",
        category=ErrorCategory.ORDER_API,
        title="Confirmation Request Failed",
        message_template="Delivery confirmation for {fulfillment_id} could not be sent: {reason}",
        remediation="Rerun reconciliation for the order.",
        is_retryable=True,
    ),
    "E-6102": ErrorCode(
        code="E-6102",
        category=ErrorCategory.ORDER_API,
        title="Confirmation HTTP Error",
        message_template="Delivery confirmation for {fulfillment_id} returned HTTP {status}.",
        remediation="Rerun reconciliation for the order.",
    ),
    "E-6103": ErrorCode(
        code="E-6103",
        category=ErrorCategory.ORDER_API,
        title="Malformed Confirmation Response",
        message_template="Delivery confirmation for {fulfillment_id} returned an unparseable body.",
        remediation="Check SHOPIFY_API_VERSION is a supported Admin API version.",
    ),
    "E-6104": ErrorCode(
        code="E-6104",
        category=ErrorCategory.ORDER_API,
        title="Confirmation GraphQL Error",
        message_template="Delivery confirmation for {fulfillment_id} failed: {reason}",
        remediation="Check the access token has the write_fulfillments scope.",
    ),
    "E-6105": ErrorCode(
        code="E-6105",
        category=ErrorCategory.ORDER_API,
        title="Confirmation Rejected",
        message_template="Shopify rejected delivery confirmation for {fulfillment_id}: {reason}",
        remediation="Inspect the userErrors detail; the fulfillment may be cancelled.",
    ),
    "E-6106": ErrorCode(
        code="E-6106",
        category=ErrorCategory.ORDER_API,
        title="Confirmation Failed Unexpectedly",
        message_template="Delivery confirmation for {fulfillment_id} raised: {reason}",
        remediation="Check service logs for the traceback.",
    ),
}


def get_error(code: str) -> ErrorCode | None:
    """Get error definition by code.

    Args:
        code: Error code in E-XXXX format.

    Returns:
        ErrorCode if found, None otherwise.
    """
    return ERROR_REGISTRY.get(code)


def get_errors_by_category(category: ErrorCategory) -> list[ErrorCode]:
    """Get all errors in a category."""
    return [e for e in ERROR_REGISTRY.values() if e.category == category]


def format_message(code: str, **context: object) -> str:
    """Render the message template for ``code`` with ``context``.

    Missing placeholders leave the template untouched.
    """
    error_def = get_error(code)
    if not error_def:
        return f"Unknown error: {code}"
    try:
        return error_def.message_template.format(**context)
    except KeyError:
        return error_def.message_template
