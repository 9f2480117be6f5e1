from collections.abc import Callable
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from endpoint_gateway.core.gateway.ratelimit import SlidingWindowRateLimiter
from endpoint_gateway.core.gateway.resolver import EndpointsConfigSnapshot
from endpoint_gateway.main import create_app
from tests.utils.endpoints import FakeRunner


@pytest.fixture
def rate_limiter() -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter()


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def deliver() -> AsyncMock:
    """Stands in for deliver_callback; records every callback POST."""
    return AsyncMock()


@pytest.fixture
def make_client(
    runner: FakeRunner, rate_limiter: SlidingWindowRateLimiter, deliver: AsyncMock
) -> Callable[[EndpointsConfigSnapshot | None], TestClient]:
    """Build a TestClient for an app serving the given snapshot (None = disabled)."""

    def _make(snapshot: EndpointsConfigSnapshot | None) -> TestClient:
        app = create_app(
            get_config=lambda: snapshot,
            runner=runner,
            rate_limiter=rate_limiter,
            deliver=deliver,
        )
        return TestClient(app)

    return _make
