import re
from typing import Any, Dict, Optional
from fastapi import Request

MASK = "***MASKED***"

_SECRET_KEY_TERMS = (
    "api_key", "apikey", "x-api-key", "api-key",
    "token", "authorization", "bearer",
    "password", "secret", "private_key",
)
_PARTIAL_KEYS = ("phone",)
_REQUEST_ID_KEYS = ("requestid", "request_id")
_OPAQUE_VALUE = re.compile(r'^[A-Za-z0-9_]+$')


def _mask_email(value: str, mask_string: str) -> str:
    local, _, domain = value.partition("@")
    if domain and len(local) > 3:
        return local[:3] + "***@" + domain
    return mask_string


def mask_sensitive_data(data: Any, mask_string: str = MASK) -> Any:
    """
    Recursively mask sensitive data in dictionaries, lists, and strings.

    Secrets (passwords, tokens, API keys) are replaced, emails and phone
    numbers are partially masked, request IDs are kept for tracing.
    Bare strings that look like access tokens or API keys are masked too.
    """
    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            key_lower = str(key).lower()

            if key_lower in _REQUEST_ID_KEYS:
                masked[key] = value
            elif any(term in key_lower for term in _SECRET_KEY_TERMS):
                masked[key] = mask_string
            elif key_lower in _PARTIAL_KEYS:
                if isinstance(value, str) and len(value) > 4:
                    masked[key] = "*" * (len(value) - 4) + value[-4:]
                else:
                    masked[key] = mask_string
            elif "email" in key_lower and isinstance(value, str):
                masked[key] = _mask_email(value, mask_string)
            else:
                masked[key] = mask_sensitive_data(value, mask_string)
        return masked

    if isinstance(data, list):
        return [mask_sensitive_data(item, mask_string) for item in data]

    if isinstance(data, str):
        # UUIDs contain hyphens and are kept; long opaque strings are treated as credentials
        if len(data) > 32 and _OPAQUE_VALUE.match(data):
            return mask_string
        return data

    return data


def mask_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Mask sensitive HTTP headers."""
    sensitive_headers = ("authorization", "x-api-key", "api-key", "cookie", "set-cookie")
    return {
        key: MASK if any(sensitive in key.lower() for sensitive in sensitive_headers) else value
        for key, value in headers.items()
    }


def mask_url_path(path: str) -> str:
    """Mask the access token segment of public link paths (/pq/<token>, /lp/<token>)."""
    return re.sub(r'^/(pq|lp)/[^/]+', r'/\1/' + MASK, path)


def get_request_id(request: Optional[Request]) -> Optional[str]:
    """Request ID stored on request.state by the logging middleware, if any."""
    if request and hasattr(request.state, "request_id"):
        return request.state.request_id
    return None


def sanitize_log_message(message: str, **kwargs: Any) -> str:
    """
    Build a log line from a message and masked key/value context.

    A RequestID keyword is appended last so RequestIDFormatter can move
    it into the record prefix.

    Example:
        sanitize_log_message("Access link created", TenantID=1, LinkID=link.id)
        -> "Access link created | TenantID: 1 | LinkID: ..."
    """
    request_id = kwargs.pop('RequestID', None) or kwargs.pop('request_id', None)

    context_parts = []
    for key, value in mask_sensitive_data(kwargs).items():
        if isinstance(value, (dict, list)):
            value = str(value)[:200]
        context_parts.append(f"{key}: {value}")

    formatted_message = message
    if context_parts:
        formatted_message = f"{message} | {' | '.join(context_parts)}"
    if request_id:
        formatted_message = f"{formatted_message} | RequestID: {request_id}"
    return formatted_message
