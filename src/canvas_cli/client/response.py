"""Bridge from :class:`httpx.Response` to the output system.

Commands hand a finished response (or a list of paginated items) to these
helpers; the status line goes to stderr and the body to stdout through
:meth:`~canvas_cli.output.OutputManager.format_response`.
"""

from __future__ import annotations

from typing import Any

import httpx

from canvas_cli.output import get_output


def format_api_response(response: httpx.Response) -> None:
    """Print the status line to stderr and the decoded body to stdout."""
    output = get_output()
    output.info(f"HTTP {response.status_code} {response.reason_phrase or ''}".rstrip())

    data = extract_response_data(response)
    if data is not None:
        output.format_response(data)


def extract_response_data(response: httpx.Response) -> Any:
    """Decode the body as JSON, falling back to text; ``None`` when empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
