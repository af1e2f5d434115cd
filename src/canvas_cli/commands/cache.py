"""Cache commands -- inspect and clear the GET response cache.

The cache is off unless ``cache.enabled`` is set in the configuration::

    canvas config set cache.enabled true
    canvas cache stats
    canvas cache clear --all
"""

from __future__ import annotations

import typer

from canvas_cli.commands import helpers
from canvas_cli.models import CacheConfig
from canvas_cli.output import format_response, info, success

cache_app = typer.Typer(no_args_is_help=True)


def _load_cache_config() -> CacheConfig:
    from canvas_cli.config import load_global_config

    with helpers.handle_errors():
        return load_global_config().cache


@cache_app.command("stats")
def cache_stats() -> None:
    """Show where the cache lives and how much it holds.

    Example::

        canvas cache stats
    """
    cache_config = _load_cache_config()
    cache = helpers.open_cache(cache_config.ttl_seconds)
    try:
        stats = cache.stats()
    finally:
        cache.close()
    stats["enabled"] = cache_config.enabled
    format_response(stats)


@cache_app.command("clear")
def cache_clear(
    all_entries: bool = typer.Option(
        False, "--all", help="Remove every entry, not only expired ones."
    ),
) -> None:
    """Remove expired cache entries, or all of them with ``--all``.

    Example::

        canvas cache clear
        canvas cache clear --all
    """
    cache_config = _load_cache_config()
    cache = helpers.open_cache(cache_config.ttl_seconds)
    try:
        removed = cache.clear(expired_only=not all_entries)
    finally:
        cache.close()
    if removed:
        success(f"Removed {removed} cached response(s).")
    else:
        info("Nothing to remove.")
