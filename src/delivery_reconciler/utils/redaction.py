"""Secret redaction for log lines and error envelopes.

Carrier and Shopify error bodies are echoed back to callers and written to
logs; both can contain bearer tokens, client secrets, or the Shopify access
token header. Keys are matched case-insensitively by substring.
"""

import re
from typing import Any

_SENSITIVE_KEY_PATTERNS = frozenset({
    "secret", "token", "authorization", "api_key", "password",
    "client_id", "client_secret", "x-shopify-access-token",
})

# Keys whose entire value is replaced regardless of type
_CONTAINER_KEYS = frozenset({"credentials", "headers"})

_REDACTED = "***REDACTED***"


def _is_sensitive_key(key: str) -> bool:
    key_lower = key.lower()
    return any(pattern in key_lower for pattern in _SENSITIVE_KEY_PATTERNS)


def redact_for_logging(obj: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``obj`` with sensitive values replaced.

    Nested dicts and lists of dicts are walked recursively. The input is
    not mutated.
    """
    result: dict[str, Any] = {}
    for key, value in obj.items():
        if key.lower() in _CONTAINER_KEYS or _is_sensitive_key(key):
            result[key] = _REDACTED
        elif isinstance(value, dict):
            result[key] = redact_for_logging(value)
        elif isinstance(value, list):
            result[key] = [
                redact_for_logging(item) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            result[key] = value
    return result


_SENSITIVE_KEYWORDS = (
    r"secret|token|password|api_key|client_id|client_secret|"
    r"access_token|authorization"
)
_SENSITIVE_VALUE_PATTERNS = re.compile(
    r"(?i)"
    r"(?:"
    r"Bearer\s+[A-Za-z0-9._\-]+"
    r"|"
    r'"(?:' + _SENSITIVE_KEYWORDS + r')"\s*:\s*"[^"]*"'
    r"|"
    r"(?:" + _SENSITIVE_KEYWORDS + r")\s*[=:]\s*\S+"
    r")",
)


def sanitize_error_message(msg: str | None, max_length: int = 2000) -> str | None:
    """Redact key=value style secrets in free text and truncate.

    Args:
        msg: Error message or response body (None passes through).
        max_length: Maximum length of the returned text.

    Returns:
        Sanitized and truncated message, or None.
    """
    if msg is None:
        return None
    sanitized = _SENSITIVE_VALUE_PATTERNS.sub(_REDACTED, msg)
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length - 3] + "..."
    return sanitized
