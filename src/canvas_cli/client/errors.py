"""Classify failed API exchanges into typed errors.

=========================  ==============  =========
status                     kind            retryable
=========================  ==============  =========
401, 403                   AUTH            no
404                        NOT_FOUND       no
409                        CONFLICT        no
422                        VALIDATION      no
429                        RATE_LIMIT      yes
500-599                    SERVER_FAULT    yes
no response (transport)    NETWORK         yes
any other 4xx              UNKNOWN         no
=========================  ==============  =========

Canvas reports errors in several shapes. :func:`extract_messages` folds all
of them into a flat list of strings:

* ``{"errors": [{"message": "..."}]}``
* ``{"errors": {"name": ["can't be blank"]}}`` (values may be strings or
  ``{"message": ...}`` objects)
* ``{"name": ["can't be blank"]}`` (bare field mapping)
* ``[{"message": "..."}]`` or ``["..."]``
* ``{"message": "..."}``

A body that cannot be parsed is not an error in itself; the status reason
phrase is used instead.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Mapping, Optional, Union

import httpx

from canvas_cli.exceptions import (
    APIError,
    AuthError,
    ConflictError,
    ConnectionError_,
    NotFoundError,
    RateLimitError,
    ServerError,
    UnknownAPIError,
    ValidationError,
)

_SUGGESTIONS: dict[int, str] = {
    401: "Your access token may be expired or invalid. Run 'canvas auth login' again.",
    403: "You don't have permission to access this resource. Check your Canvas role and permissions.",
    404: "The requested resource was not found. Verify the ID and try again.",
    422: "The request was invalid. Check the required fields and data format.",
    429: "Rate limit exceeded. Requests are slowed down automatically; wait a moment and retry.",
}
_SERVER_SUGGESTION = "Canvas is experiencing issues. Please try again in a few moments."


def classify(
    status_code: int,
    body: Union[bytes, str, Any, None] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> APIError:
    """Map an HTTP error status and body to a classified :class:`APIError`.

    Args:
        status_code: HTTP status of the response (expected to be >= 400).
        body: Raw response bytes/text, or an already decoded JSON value.
        headers: Response headers; ``Retry-After`` is read when present.

    Returns:
        An instance of the :class:`APIError` subclass matching the status.
    """
    messages = extract_messages(_decode(body))
    reason = httpx.codes.get_reason_phrase(status_code) or "Error"
    detail = "; ".join(messages) if messages else reason
    message = f"HTTP {status_code}: {detail}"

    if status_code in (401, 403):
        cls: type[APIError] = AuthError
    elif status_code == 404:
        cls = NotFoundError
    elif status_code == 409:
        cls = ConflictError
    elif status_code == 422:
        cls = ValidationError
    elif status_code == 429:
        cls = RateLimitError
    elif 500 <= status_code <= 599:
        cls = ServerError
    else:
        cls = UnknownAPIError

    suggestion = _SUGGESTIONS.get(status_code)
    if cls is ServerError:
        suggestion = _SERVER_SUGGESTION

    return cls(
        message,
        status_code=status_code,
        messages=messages,
        retry_after=parse_retry_after(headers.get("Retry-After") if headers else None),
        suggestion=suggestion,
    )


def classify_response(response: httpx.Response) -> APIError:
    """Classify a completed :class:`httpx.Response` with an error status."""
    return classify(response.status_code, response.content, response.headers)


def classify_transport_error(exc: Exception) -> APIError:
    """Classify a failure where no HTTP response was received."""
    if isinstance(exc, httpx.TimeoutException):
        detail = f"request timed out ({type(exc).__name__})"
    else:
        detail = str(exc) or type(exc).__name__
    return ConnectionError_(
        f"Network error: {detail}",
        messages=[detail],
        suggestion="Check your network connection and the instance URL.",
    )


def extract_messages(payload: Any) -> list[str]:
    """Flatten any supported Canvas error body into a list of messages."""
    if payload is None:
        return []
    if isinstance(payload, str):
        return [payload] if payload.strip() else []
    if isinstance(payload, list):
        out: list[str] = []
        for item in payload:
            out.extend(_message_of(item))
        return out
    if isinstance(payload, dict):
        if "errors" in payload:
            return _fold_errors(payload["errors"])
        if isinstance(payload.get("message"), str):
            return [payload["message"]]
        return _fold_field_mapping(payload)
    return []


def _fold_errors(errors: Any) -> list[str]:
    if isinstance(errors, dict):
        return _fold_field_mapping(errors)
    return extract_messages(errors)


def _fold_field_mapping(mapping: dict[str, Any]) -> list[str]:
    out: list[str] = []
    for field, value in mapping.items():
        items = value if isinstance(value, list) else [value]
        for item in items:
            for text in _message_of(item):
                out.append(f"{field}: {text}")
    return out


def _message_of(item: Any) -> list[str]:
    if isinstance(item, str):
        return [item]
    if isinstance(item, dict):
        msg = item.get("message")
        return [str(msg)] if msg is not None else []
    return []


def _decode(body: Any) -> Any:
    """Best-effort JSON decode; non-JSON text is returned trimmed."""
    if body is None:
        return None
    if isinstance(body, (bytes, bytearray)):
        if not body:
            return None
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None
    if isinstance(body, str):
        stripped = body.strip()
        if not stripped:
            return None
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            # HTML error pages carry nothing worth showing.
            if stripped.startswith("<"):
                return None
            return stripped[:200]
    return body


def parse_retry_after(value: Optional[str], now: Optional[datetime] = None) -> Optional[float]:
    """Parse a ``Retry-After`` header given in seconds or as an HTTP date.

    Returns:
        The wait in seconds (never negative), or ``None`` if absent or
        unparseable.
    """
    if not value:
        return None
    value = value.strip()
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max(0.0, (when - now).total_seconds())
