"""Plumbing shared by the command modules.

Commands never build clients, caches or stores themselves; they go through
:func:`open_client`, :func:`open_cache` and :func:`open_store` so that tests
can swap any of them with ``monkeypatch``.
"""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from typing import Any, Coroutine, Iterator, Optional, TypeVar

import typer

from canvas_cli.auth.credential_store import CredentialStore
from canvas_cli.cache import ResponseCache
from canvas_cli.client.api_client import APIClient
from canvas_cli.client.factory import resolve_client_config
from canvas_cli.exceptions import CanvasCLIError
from canvas_cli.models import ClientConfig, InvocationOptions
from canvas_cli.output import error, suggest

T = TypeVar("T")


def get_options(ctx: typer.Context) -> InvocationOptions:
    """Return the :class:`InvocationOptions` stored by the root callback."""
    obj = ctx.obj
    if isinstance(obj, InvocationOptions):
        return obj
    return InvocationOptions()


def report_error(exc: CanvasCLIError) -> None:
    error(str(exc))
    if exc.suggestion:
        suggest(exc.suggestion)


@contextmanager
def handle_errors() -> Iterator[None]:
    """Turn a :class:`CanvasCLIError` into an error message and its exit code."""
    try:
        yield
    except CanvasCLIError as exc:
        report_error(exc)
        raise typer.Exit(code=exc.exit_code) from None


def run(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


def open_store() -> CredentialStore:
    return CredentialStore.create()


def open_cache(ttl_seconds: int) -> ResponseCache:
    from canvas_cli.config import get_cache_dir

    return ResponseCache(get_cache_dir(), ttl_seconds)


def response_cache(config: ClientConfig) -> Optional[ResponseCache]:
    """The cache for *config*, or ``None`` when caching is off for this run."""
    if config.cache_ttl <= 0:
        return None
    return open_cache(config.cache_ttl)


def client_for(config: ClientConfig) -> APIClient:
    return APIClient(config, cache=response_cache(config))


def open_client(options: InvocationOptions) -> APIClient:
    """Resolve the client configuration for *options* and build an :class:`APIClient`."""
    return client_for(resolve_client_config(options, store_factory=open_store))
