"""GET response cache."""

from canvas_cli.cache.cache import ResponseCache

__all__ = ["ResponseCache"]
