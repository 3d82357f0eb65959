"""Shared pytest fixtures for uqfree tests.

The custodian, asset and rsa_private_key fixtures come from
uqfree.testing.fixtures; this module adds fixtures for HTTP-level tests.
"""

from __future__ import annotations

from typing import Callable

import httpx
import pytest

from tests.factories import TEST_API_KEY, TEST_BASE_URL
from uqfree.config import Settings

# Load uqfree.testing fixtures (rsa_private_key, custodian, asset)
pytest_plugins = ["uqfree.testing.fixtures"]


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at a fake API, independent of the environment."""
    return Settings(api_url=TEST_BASE_URL, api_key=TEST_API_KEY, timeout=5.0)


@pytest.fixture
def recorded_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def mock_transport_factory(
    recorded_requests: list[httpx.Request],
) -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.MockTransport]:
    """Wrap a handler in an httpx.MockTransport that records every request."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.MockTransport:
        def recording(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            return handler(request)

        return httpx.MockTransport(recording)

    return factory
