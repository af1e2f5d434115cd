"""Render a request as a copy-pasteable ``curl`` command instead of sending it.

Used by ``--dry-run``. The bearer token is redacted unless ``--show-token``
was given explicitly.
"""

from __future__ import annotations

import json
import shlex
from typing import Any, Iterable, Optional

import httpx

REDACTED = "Bearer [REDACTED]"


def build_curl(
    method: str,
    url: str,
    headers: Iterable[tuple[str, str]],
    json_body: Optional[Any] = None,
    show_token: bool = False,
) -> str:
    """Build a multi-line ``curl`` command for *method* and *url*.

    Example::

        >>> print(build_curl("GET", "https://x.test/api/v1/courses",
        ...                  [("Authorization", "Bearer abc")]))
        curl -X GET https://x.test/api/v1/courses \\
          -H 'Authorization: Bearer [REDACTED]'
    """
    parts = [f"curl -X {method.upper()} {shlex.quote(url)}"]
    for key, value in headers:
        if key.lower() == "authorization" and not show_token:
            value = REDACTED
        parts.append(f"-H {shlex.quote(f'{key}: {value}')}")
    if json_body is not None:
        parts.append(f"-d {shlex.quote(json.dumps(json_body, ensure_ascii=False))}")
    return " \\\n  ".join(parts)


def synthetic_response(method: str, url: str) -> httpx.Response:
    """A ``200`` response with an empty JSON array, as if the server sent no items."""
    return httpx.Response(
        status_code=200,
        headers={"content-type": "application/json"},
        content=b"[]",
        request=httpx.Request(method=method, url=url),
    )
