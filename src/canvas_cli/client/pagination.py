"""Lazy, forward-only pagination over server-driven pages.

Canvas paginates collections with an RFC 8288 ``Link`` header::

    Link: <https://x.instructure.com/api/v1/courses?page=2&per_page=10>; rel="next",
          <https://x.instructure.com/api/v1/courses?page=1&per_page=10>; rel="first"

The server decides where the next page lives; the client only follows the
``next`` relation until it disappears.

:class:`Paginator` turns a single-page fetch function into an async iterator
of items. Pages are fetched on demand: a consumer that stops after the first
few items never triggers a request for later pages. Iteration cannot be
restarted; once the last page is consumed (or a fetch fails) the paginator
stays exhausted.
"""

from __future__ import annotations

import re
from collections import deque
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar("T")

_LINK_RE = re.compile(r'<([^>]+)>\s*;\s*rel="?([^";,]+)"?')


@dataclass(frozen=True)
class PaginationLinks:
    """Relations parsed from a ``Link`` header."""

    current: Optional[str] = None
    next: Optional[str] = None
    prev: Optional[str] = None
    first: Optional[str] = None
    last: Optional[str] = None

    @property
    def has_next(self) -> bool:
        return bool(self.next)


def parse_link_header(value: Optional[str]) -> PaginationLinks:
    """Parse a ``Link`` header into :class:`PaginationLinks`.

    Unknown relations are ignored. A relation value listing several
    space-separated names (``rel="next last"``) sets each of them.
    """
    if not value:
        return PaginationLinks()
    found: dict[str, str] = {}
    for url, rels in _LINK_RE.findall(value):
        for rel in rels.split():
            if rel in ("current", "next", "prev", "first", "last"):
                found.setdefault(rel, url.strip())
    return PaginationLinks(**found)


@dataclass(frozen=True)
class Page(Generic[T]):
    """One fetched page: its items and where the next page lives (if anywhere)."""

    items: list[T]
    next_cursor: Optional[str] = None


PageFetcher = Callable[[Optional[str]], Awaitable[Page[T]]]


@dataclass
class PageCursor:
    """Position in a paginated collection.

    ``next_url`` of ``None`` before the first fetch means "first page";
    after a fetch it means "no more pages" and :attr:`exhausted` is set.
    """

    next_url: Optional[str] = None
    exhausted: bool = False
    pages_fetched: int = 0

    def advance(self, next_url: Optional[str]) -> None:
        if self.exhausted:
            return
        self.pages_fetched += 1
        self.next_url = next_url
        if not next_url:
            self.exhausted = True

    def finish(self) -> None:
        self.next_url = None
        self.exhausted = True


@dataclass
class Paginator(Generic[T]):
    """Async iterator over every item of a paginated collection.

    Args:
        fetch: Coroutine function ``fetch(cursor) -> Page``. Called with
            ``None`` for the first page and with the previous page's
            ``next_cursor`` afterwards.
        max_results: Stop after this many items (``None`` or ``0`` means
            unlimited). Later pages are never requested once reached.

    Example::

        async for course in client.paginate(RequestSpec(path="/api/v1/courses")):
            print(course["name"])
    """

    fetch: PageFetcher[T]
    max_results: Optional[int] = None
    cursor: PageCursor = field(default_factory=PageCursor)
    _buffer: deque = field(default_factory=deque, init=False, repr=False)
    _yielded: int = field(default=0, init=False)

    def __aiter__(self) -> Paginator[T]:
        return self

    async def __anext__(self) -> T:
        if self.max_results and self._yielded >= self.max_results:
            self.cursor.finish()
            self._buffer.clear()
            raise StopAsyncIteration

        while not self._buffer:
            if self.cursor.exhausted:
                raise StopAsyncIteration
            try:
                page = await self.fetch(self.cursor.next_url)
            except BaseException:
                self.cursor.finish()
                raise
            self.cursor.advance(page.next_cursor)
            self._buffer.extend(page.items)

        self._yielded += 1
        return self._buffer.popleft()

    async def collect(self) -> list[T]:
        """Consume the remaining items into a list."""
        return [item async for item in self]
