"""Exception hierarchy for canvas-cli.

All exceptions inherit from :class:`CanvasCLIError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`canvas_cli.exit_codes`.
The top-level error handler in :func:`canvas_cli.app.main` catches
``CanvasCLIError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Errors raised by the API client are :class:`APIError` subclasses. Each one
is a *classified* error: it carries an :class:`ErrorKind`, the HTTP status
(``None`` when no response arrived), the server's messages, and whether the
failure is worth retrying.

Subclass hierarchy::

    CanvasCLIError (exit 1)
    +-- InvalidUsageError        (exit 2)
    +-- ConfigError              (exit 1)
    +-- CredentialNotFoundError  (exit 3)
    +-- CredentialBackendError   (exit 1)
    +-- RequestCancelledError    (exit 130)
    +-- UnexpectedResponseError  (exit 1)
    +-- APIError
        +-- AuthError            (exit 3)
        +-- NotFoundError        (exit 4)
        +-- ServerError          (exit 5)
        +-- ConnectionError_     (exit 6)
        +-- RateLimitError       (exit 9)
        +-- RequestRejectedError (exit 8)
            +-- ConflictError
            +-- ValidationError
            +-- UnknownAPIError
"""

from __future__ import annotations

import enum
from typing import Optional

from canvas_cli.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CANCELLED,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_RATE_LIMITED,
    EXIT_REQUEST_REJECTED,
    EXIT_SERVER_ERROR,
)


class CanvasCLIError(Exception):
    """Base exception for all canvas-cli errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`canvas_cli.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE
    suggestion: Optional[str] = None

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(CanvasCLIError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(CanvasCLIError):
    """Raised for configuration problems (missing instances, invalid JSON, bad env values)."""

    exit_code = EXIT_GENERIC_FAILURE


class CredentialNotFoundError(CanvasCLIError):
    """Raised when no credential is stored for an instance.

    This is the expected "not logged in yet" condition and is reported
    with a hint to run ``canvas auth login``.
    """

    exit_code = EXIT_AUTH_FAILURE

    def __init__(self, instance: str):
        super().__init__(f"Not authenticated with '{instance}'.")
        self.instance = instance
        self.suggestion = f"Run: canvas auth login --instance {instance}"


class CredentialBackendError(CanvasCLIError):
    """Raised when the credential backend itself fails (I/O, keyring, corrupted record)."""

    exit_code = EXIT_GENERIC_FAILURE


class RequestCancelledError(CanvasCLIError):
    """Raised when a request is abandoned because its deadline expired.

    Cancellation is never retried.
    """

    exit_code = EXIT_CANCELLED


class UnexpectedResponseError(CanvasCLIError):
    """Raised when a successful response does not have the expected shape."""

    exit_code = EXIT_GENERIC_FAILURE


# --- Classified API errors ---


class ErrorKind(str, enum.Enum):
    """Taxonomy of API failures used for retry decisions and exit codes."""

    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    SERVER_FAULT = "server_fault"
    NETWORK = "network"
    UNKNOWN = "unknown"


RETRYABLE_KINDS = frozenset({ErrorKind.RATE_LIMIT, ErrorKind.SERVER_FAULT, ErrorKind.NETWORK})


class APIError(CanvasCLIError):
    """A classified failure of a single API exchange.

    Instances are produced by :func:`canvas_cli.client.errors.classify`
    (one per failed attempt) and surface to the caller only once the retry
    loop gives up.

    Args:
        message: Display message, already folded from the server's error body.
        status_code: HTTP status, or ``None`` for transport failures.
        messages: Individual server-provided messages, in body order.
        retry_after: Server-supplied wait hint in seconds, if any.
        suggestion: Optional next step shown to the user.
    """

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        messages: Optional[list[str]] = None,
        retry_after: Optional[float] = None,
        suggestion: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.messages = list(messages or [])
        self.retry_after = retry_after
        self.suggestion = suggestion

    @property
    def retryable(self) -> bool:
        """Whether the failure is transient and may succeed on a later attempt."""
        return self.kind in RETRYABLE_KINDS

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self.kind.value!r}, "
            f"status_code={self.status_code!r}, message={str(self)!r})"
        )


class AuthError(APIError):
    """Raised when the API returns HTTP 401 or 403."""

    kind = ErrorKind.AUTH
    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(APIError):
    """Raised when the API returns HTTP 404 (resource not found)."""

    kind = ErrorKind.NOT_FOUND
    exit_code = EXIT_NOT_FOUND


class ServerError(APIError):
    """Raised when the API returns an HTTP 5xx server error."""

    kind = ErrorKind.SERVER_FAULT
    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(APIError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    kind = ErrorKind.NETWORK
    exit_code = EXIT_CONNECTION_ERROR


class RateLimitError(APIError):
    """Raised when the API throttles the request with HTTP 429."""

    kind = ErrorKind.RATE_LIMIT
    exit_code = EXIT_RATE_LIMITED


class RequestRejectedError(APIError):
    """Base for deterministic 4xx rejections other than auth and not-found."""

    exit_code = EXIT_REQUEST_REJECTED


class ConflictError(RequestRejectedError):
    """Raised when the API returns HTTP 409."""

    kind = ErrorKind.CONFLICT


class ValidationError(RequestRejectedError):
    """Raised when the API returns HTTP 422 with field errors."""

    kind = ErrorKind.VALIDATION


class UnknownAPIError(RequestRejectedError):
    """Raised for any other 4xx status."""

    kind = ErrorKind.UNKNOWN
