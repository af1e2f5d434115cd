"""Tests for Link header parsing and the lazy paginator."""

from __future__ import annotations

from typing import Optional

import pytest

from canvas_cli.client.pagination import Page, PageCursor, Paginator, parse_link_header


class TestParseLinkHeader:
    def test_canvas_header(self) -> None:
        header = (
            '<https://x.test/api/v1/courses?page=2&per_page=10>; rel="next", '
            '<https://x.test/api/v1/courses?page=1&per_page=10>; rel="current", '
            '<https://x.test/api/v1/courses?page=1&per_page=10>; rel="first", '
            '<https://x.test/api/v1/courses?page=5&per_page=10>; rel="last"'
        )
        links = parse_link_header(header)
        assert links.next == "https://x.test/api/v1/courses?page=2&per_page=10"
        assert links.last == "https://x.test/api/v1/courses?page=5&per_page=10"
        assert links.prev is None
        assert links.has_next

    def test_missing_header(self) -> None:
        assert parse_link_header(None).has_next is False
        assert parse_link_header("").next is None

    def test_unquoted_and_multiple_rels(self) -> None:
        links = parse_link_header("</a?page=3>; rel=next, </a?page=9>; rel=\"last first\"")
        assert links.next == "/a?page=3"
        assert links.last == "/a?page=9"
        assert links.first == "/a?page=9"

    def test_unknown_relations_ignored(self) -> None:
        links = parse_link_header('</a>; rel="alternate"')
        assert links.next is None


class PageSource:
    """Serves pre-built pages and records every cursor requested."""

    def __init__(self, pages: list[list[int]]) -> None:
        self.pages = pages
        self.calls: list[Optional[str]] = []

    async def fetch(self, cursor: Optional[str]) -> Page[int]:
        self.calls.append(cursor)
        index = 0 if cursor is None else int(cursor)
        next_cursor = str(index + 1) if index + 1 < len(self.pages) else None
        return Page(items=self.pages[index], next_cursor=next_cursor)


class TestPaginator:
    @pytest.mark.asyncio
    async def test_yields_every_item_in_order(self) -> None:
        source = PageSource([[1, 2], [3, 4], [5]])
        items = await Paginator(source.fetch).collect()
        assert items == [1, 2, 3, 4, 5]
        assert source.calls == [None, "1", "2"]

    @pytest.mark.asyncio
    async def test_is_lazy(self) -> None:
        source = PageSource([[1, 2], [3, 4]])
        paginator = Paginator(source.fetch)
        assert source.calls == []

        assert await paginator.__anext__() == 1
        assert await paginator.__anext__() == 2
        assert source.calls == [None]

    @pytest.mark.asyncio
    async def test_max_results_stops_fetching(self) -> None:
        source = PageSource([[1, 2], [3, 4], [5, 6]])
        items = await Paginator(source.fetch, max_results=3).collect()
        assert items == [1, 2, 3]
        assert source.calls == [None, "1"]

    @pytest.mark.asyncio
    async def test_max_results_on_page_boundary(self) -> None:
        source = PageSource([[1, 2], [3, 4]])
        items = await Paginator(source.fetch, max_results=2).collect()
        assert items == [1, 2]
        assert source.calls == [None]

    @pytest.mark.asyncio
    async def test_empty_first_page(self) -> None:
        source = PageSource([[]])
        assert await Paginator(source.fetch).collect() == []

    @pytest.mark.asyncio
    async def test_empty_middle_page_is_skipped(self) -> None:
        source = PageSource([[1], [], [2]])
        assert await Paginator(source.fetch).collect() == [1, 2]

    @pytest.mark.asyncio
    async def test_cannot_restart(self) -> None:
        source = PageSource([[1], [2]])
        paginator = Paginator(source.fetch)
        assert await paginator.collect() == [1, 2]
        assert await paginator.collect() == []
        assert len(source.calls) == 2

    @pytest.mark.asyncio
    async def test_fetch_error_exhausts(self) -> None:
        calls = 0

        async def failing(cursor: Optional[str]) -> Page[int]:
            nonlocal calls
            calls += 1
            if cursor is None:
                return Page(items=[1], next_cursor="next")
            raise RuntimeError("boom")

        paginator = Paginator(failing)
        assert await paginator.__anext__() == 1
        with pytest.raises(RuntimeError):
            await paginator.__anext__()
        with pytest.raises(StopAsyncIteration):
            await paginator.__anext__()
        assert calls == 2
        assert paginator.cursor.exhausted


class TestPageCursor:
    def test_advance_and_exhaust(self) -> None:
        cursor = PageCursor()
        cursor.advance("page-2")
        assert cursor.next_url == "page-2"
        assert not cursor.exhausted
        cursor.advance(None)
        assert cursor.exhausted
        assert cursor.pages_fetched == 2

    def test_advance_after_finish_is_ignored(self) -> None:
        cursor = PageCursor()
        cursor.finish()
        cursor.advance("page-2")
        assert cursor.next_url is None
        assert cursor.pages_fetched == 0
