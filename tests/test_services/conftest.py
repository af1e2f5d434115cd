"""A mock-transport APIClient factory for the service tests."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from canvas_cli.client.api_client import APIClient
from canvas_cli.client.retry import RetryPolicy
from canvas_cli.models import ClientConfig


@pytest.fixture
def make_client(canvas) -> Callable[..., APIClient]:
    def factory(**overrides: Any) -> APIClient:
        values: dict[str, Any] = {
            "base_url": "https://canvas.test",
            "token": "service-token",
            "requests_per_second": 0,
        }
        values.update(overrides)
        return APIClient(
            ClientConfig(**values),
            transport=httpx.MockTransport(canvas),
            retry_policy=RetryPolicy(base_delay=0.0, jitter=0.0),
        )

    return factory
