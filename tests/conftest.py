"""Shared test fixtures for canvas-cli.

Provides isolated config/data directories, a keyring that never touches
the developer's real one, output managers and a fake Canvas server. These fixtures are
discovered by pytest automatically.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import keyring
import pytest
from keyring.backends import fail

from canvas_cli.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file"). Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _no_os_keyring() -> None:
    """Force the ``fail`` keyring so no test reads or writes a real keyring."""
    keyring.set_keyring(fail.Keyring())


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration and data to a temporary directory.

    Points the XDG config, data and cache homes at subdirectories of
    tmp_path, clears the CANVAS_* environment overrides and changes the
    working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setattr("canvas_cli.config._is_xdg_platform", lambda: True)

    for var in ["CANVAS_URL", "CANVAS_TOKEN", "CANVAS_REQUESTS_PER_SEC", "NO_COLOR"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.JSON, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()


# ---------------------------------------------------------------------------
# Fake Canvas server
# ---------------------------------------------------------------------------


class FakeCanvas:
    """Routes requests by path to canned JSON and records what was asked.

    Unrouted paths answer 404 with a Canvas-shaped error body. Use it as the
    handler of an :class:`httpx.MockTransport`.
    """

    base_url = "https://canvas.test"

    def __init__(self) -> None:
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def json(
        self, path: str, payload: Any, status: int = 200, headers: Optional[dict] = None
    ) -> None:
        self.routes[path] = lambda request: httpx.Response(status, json=payload, headers=headers)

    def pages(self, path: str, pages: list[list[Any]]) -> None:
        """Serve *pages* at *path*, linked with absolute ``rel="next"`` URLs."""

        def handler(request: httpx.Request) -> httpx.Response:
            page = int(request.url.params.get("page", "1"))
            headers = {}
            if page < len(pages):
                headers["Link"] = f'<{self.base_url}{path}?page={page + 1}>; rel="next"'
            return httpx.Response(200, json=pages[page - 1], headers=headers)

        self.routes[path] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(request.url.path)
        if handler is None:
            return httpx.Response(
                404, json={"errors": [{"message": "The specified resource does not exist."}]}
            )
        return handler(request)

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


@pytest.fixture
def canvas() -> FakeCanvas:
    return FakeCanvas()
