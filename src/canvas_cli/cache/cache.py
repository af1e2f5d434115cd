"""Disk-based cache for successful GET responses.

Uses :mod:`diskcache` to keep Canvas GET responses on the filesystem for a
fixed time-to-live. Only 2xx GET responses are stored; every other method
and every error passes straight through.

Keys are SHA-256 hashes of ``METHOD|URL`` where the URL is the final
request URL: base URL, path and the merged query, including ``per_page``,
``page`` and ``as_user_id``. Each instance, masqueraded user and page of
a collection therefore gets its own entry. The access token is never part
of an entry.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any, Optional

import diskcache

SUBDIRECTORY = "responses"


class ResponseCache:
    """Disk-backed cache for Canvas GET responses.

    Entries are dicts with ``status_code``, ``headers`` (a list of
    ``(name, value)`` pairs, so repeated headers survive) and ``content``
    (the raw body bytes).

    Args:
        cache_dir: Root directory; entries live in ``<cache_dir>/responses``.
        ttl_seconds: Lifetime of each entry.

    Example::

        cache = ResponseCache(get_cache_dir(), ttl_seconds=900)
        cache.set("GET", url, {"status_code": 200, "headers": [], "content": b"[]"})
        hit = cache.get("GET", url)
    """

    def __init__(self, cache_dir: str | Path, ttl_seconds: int) -> None:
        self._directory = Path(cache_dir) / SUBDIRECTORY
        self._ttl = ttl_seconds
        self._cache = diskcache.Cache(str(self._directory))

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    def get(self, method: str, url: str) -> Optional[dict[str, Any]]:
        """Return the stored response for *url*, or ``None`` on a miss or non-GET."""
        if method.upper() != "GET":
            return None
        return self._cache.get(self._make_key(method, url))

    def set(self, method: str, url: str, response_data: dict[str, Any]) -> None:
        """Store *response_data*; non-GET methods and non-2xx statuses are ignored."""
        if method.upper() != "GET":
            return
        status = response_data.get("status_code", 0)
        if not (200 <= status < 300):
            return
        self._cache.set(self._make_key(method, url), response_data, expire=self._ttl)

    def invalidate(self, method: str, url: str) -> None:
        self._cache.delete(self._make_key(method, url))

    def clear(self, expired_only: bool = False) -> int:
        """Remove entries and return how many were removed.

        With *expired_only* only entries past their TTL go.
        """
        if expired_only:
            return self._cache.expire()
        return self._cache.clear()

    def stats(self) -> dict[str, Any]:
        return {
            "directory": str(self._directory),
            "entries": len(self._cache),
            "size_bytes": self._cache.volume(),
            "ttl_seconds": self._ttl,
        }

    def close(self) -> None:
        self._cache.close()

    @staticmethod
    def _make_key(method: str, url: str) -> str:
        return hashlib.sha256(f"{method.upper()}|{url}".encode()).hexdigest()
