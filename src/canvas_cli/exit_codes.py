"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~canvas_cli.exceptions.CanvasCLIError` subclass.
External tooling (CI scripts, shell wrappers) can inspect the exit code to
determine the failure class without parsing stderr.

Example::

    $ canvas api GET /api/v1/courses/999
    $ echo $?
    4   # EXIT_NOT_FOUND -- the course does not exist
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Authentication or authorisation failed, or no credential is stored."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_REQUEST_REJECTED = 8
"""The API rejected the request (409 conflict, 422 validation, other 4xx)."""

EXIT_RATE_LIMITED = 9
"""The API kept throttling the request (HTTP 429) until retries ran out."""

EXIT_CANCELLED = 130
"""The operation was cancelled (Ctrl-C or timeout)."""
