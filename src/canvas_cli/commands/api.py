"""Raw API command -- send any request to any Canvas endpoint.

Covers endpoints that have no dedicated command::

    canvas api GET /api/v1/courses --paginate
    canvas api GET /api/v1/users -q search_term=john -q per_page=50
    canvas api POST /api/v1/accounts/1/courses -d '{"course": {"name": "Test"}}'
    canvas api DELETE /api/v1/courses/123/assignments/456
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Optional

import typer

from canvas_cli.commands import helpers
from canvas_cli.commands.confirm import confirm_action
from canvas_cli.exceptions import InvalidUsageError
from canvas_cli.models import InvocationOptions, RequestSpec

METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD")


def api_command(
    ctx: typer.Context,
    method: str = typer.Argument(help="HTTP method: GET, POST, PUT, DELETE, PATCH or HEAD."),
    path: str = typer.Argument(help="API path, e.g. /api/v1/courses."),
    query: Optional[list[str]] = typer.Option(
        None, "--query", "-q", help="Query parameter key=value (repeatable)."
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Extra header key:value (repeatable)."
    ),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="JSON request body."),
    data_file: Optional[str] = typer.Option(
        None, "--data-file", help="Read the JSON body from a file ('-' for stdin)."
    ),
    paginate: bool = typer.Option(
        False, "--paginate", help="Follow pagination links and print every item (GET only)."
    ),
    per_page: Optional[int] = typer.Option(
        None, "--per-page", min=1, help="Page size when paginating."
    ),
) -> None:
    """Make a raw API request.

    DELETE asks for confirmation unless ``--force`` is given. With
    ``--dry-run`` the request is printed as a curl command and not sent.
    """
    from canvas_cli.client.response import format_api_response
    from canvas_cli.output import format_response, info

    options = helpers.get_options(ctx)
    with helpers.handle_errors():
        spec = build_spec(method, path, query or [], header or [], _read_body(data, data_file))
        if paginate and spec.method != "GET":
            raise InvalidUsageError("--paginate is only supported for GET requests")

        if spec.method == "DELETE" and not options.dry_run:
            if not confirm_action(options, f"send DELETE {spec.path}"):
                info("Cancelled.")
                raise typer.Exit()

        if paginate:
            items = helpers.run(_collect(options, spec, per_page))
            format_response(items)
        else:
            response = helpers.run(_send(options, spec))
            format_api_response(response)


async def _send(options: InvocationOptions, spec: RequestSpec) -> Any:
    async with helpers.open_client(options) as client:
        return await client.do(spec)


async def _collect(options: InvocationOptions, spec: RequestSpec, per_page: Optional[int]) -> list[Any]:
    async with helpers.open_client(options) as client:
        return await client.paginate(spec, per_page=per_page).collect()


def build_spec(
    method: str,
    path: str,
    query: list[str],
    headers: list[str],
    body: Any = None,
) -> RequestSpec:
    """Validate raw command input and build a :class:`RequestSpec`.

    Raises:
        InvalidUsageError: Unknown method or malformed ``key=value`` /
            ``key:value`` pairs.
    """
    method = method.upper()
    if method not in METHODS:
        raise InvalidUsageError(
            f"Unsupported HTTP method: {method} (use {', '.join(METHODS)})"
        )
    if not path.startswith("/"):
        path = "/" + path

    params: list[tuple[str, str]] = []
    for item in query:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise InvalidUsageError(f"Invalid query parameter format: {item} (use key=value)")
        params.append((key, value))

    extra_headers: list[tuple[str, str]] = []
    for item in headers:
        key, sep, value = item.partition(":")
        if not sep or not key.strip():
            raise InvalidUsageError(f"Invalid header format: {item} (use key:value)")
        extra_headers.append((key.strip(), value.strip()))

    return RequestSpec(
        method=method, path=path, params=params, headers=extra_headers, json_body=body
    )


def _read_body(data: Optional[str], data_file: Optional[str]) -> Any:
    if data is not None and data_file is not None:
        raise InvalidUsageError("Cannot use both --data and --data-file")
    if data_file is not None:
        try:
            data = sys.stdin.read() if data_file == "-" else Path(data_file).read_text(encoding="utf-8")
        except OSError as exc:
            raise InvalidUsageError(f"Failed to read data file: {exc}") from exc
        source = "data file"
    else:
        source = "--data"
    if data is None:
        return None
    try:
        return json.loads(data)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"Invalid JSON in {source}: {exc}") from exc
