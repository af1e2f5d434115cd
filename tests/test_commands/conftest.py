"""Fixtures wiring the CLI to the fake Canvas server."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from canvas_cli.client.api_client import APIClient
from canvas_cli.client.retry import RetryPolicy
from canvas_cli.commands import helpers
from canvas_cli.models import ClientConfig

SECRET = "tok-very-secret-1234"


@pytest.fixture(autouse=True)
def _wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Stop Rich from wrapping diagnostics at 80 columns inside CliRunner."""
    monkeypatch.setenv("COLUMNS", "250")


@pytest.fixture
def fake_transport(monkeypatch: pytest.MonkeyPatch, canvas) -> None:
    """Make every client the CLI builds talk to ``canvas`` without backoff sleeps."""

    def client_for(config: ClientConfig) -> APIClient:
        return APIClient(
            config,
            transport=httpx.MockTransport(canvas),
            retry_policy=RetryPolicy(max_attempts=config.max_attempts, base_delay=0.0, jitter=0.0),
            cache=helpers.response_cache(config),
        )

    monkeypatch.setattr(helpers, "client_for", client_for)


@pytest.fixture
def env_credentials(isolated_config: Path, monkeypatch: pytest.MonkeyPatch, fake_transport) -> Path:
    """Point the CLI at the fake server through CANVAS_URL and CANVAS_TOKEN."""
    monkeypatch.setenv("CANVAS_URL", "https://canvas.test")
    monkeypatch.setenv("CANVAS_TOKEN", SECRET)
    monkeypatch.setenv("CANVAS_REQUESTS_PER_SEC", "0")
    return isolated_config
