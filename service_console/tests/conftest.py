"""
Shared fixtures for Console service tests.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from shared.config import get_config
from shared.errors import BackendError
from service_console.app.adapters.backend_client import BackendClient
from service_console.app.caching.response_cache import ResponseCache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class DummyMetrics:
    """Minimal metrics collector stub."""

    def __init__(self):
        self.counters = []
        self.histograms = []

    def increment_counter(self, metric_name: str, **labels):
        self.counters.append((metric_name, labels))

    def observe_histogram(self, metric_name: str, value: float, **labels):
        self.histograms.append((metric_name, value, labels))


def _backend_error(reason: str = "Something went wrong", status: int = 400, body=None) -> BackendError:
    return BackendError(reason, backend_status=status, body=body if body is not None else {"error": reason})


@pytest.fixture
def backend_error():
    """Factory for BackendError as the client raises it for an HTTP error response."""
    return _backend_error


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def console_config():
    """Console configuration with fast, deterministic backend settings."""
    return get_config(
        "console",
        8000,
        backend_server_url="http://backend.test",
        backend_retry_attempts=1,
        backend_retry_base_delay=0,
        list_cache_ttl=30,
        detail_cache_ttl=300,
        session_secret="test-session-secret",
    )


@pytest.fixture
def metrics():
    return DummyMetrics()


@pytest.fixture
def cache(clock, metrics):
    return ResponseCache(clock=clock, metrics=metrics)


@pytest.fixture
def backend():
    """BackendClient double whose calls are AsyncMocks."""
    mock_backend = MagicMock(spec=BackendClient)
    mock_backend.request = AsyncMock(return_value=None)
    mock_backend.post = AsyncMock(return_value=None)
    return mock_backend
