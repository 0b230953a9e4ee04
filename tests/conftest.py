"""Shared test fixtures and configuration."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from searchbridge.config.settings import Settings

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingTransport(httpx.MockTransport):
    """``httpx.MockTransport`` that keeps every request it served."""

    def __init__(self, handler: Handler) -> None:
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


@pytest.fixture
def mock_transport() -> type[RecordingTransport]:
    """Factory for recording mock transports: ``mock_transport(handler)``."""
    return RecordingTransport


@pytest.fixture
def settings() -> Settings:
    """Create a test Settings instance with defaults."""
    return Settings(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def sample_product() -> dict[str, Any]:
    return {"name": "laptop", "price": 999, "color": "silver", "tags": ["electronics", "computers"]}
