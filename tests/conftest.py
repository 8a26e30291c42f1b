from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from goupc.config import ConfigStore

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def store(tmp_path: Path) -> ConfigStore:
    """An empty config store in a temporary directory."""
    return ConfigStore(tmp_path / "goupc" / "config.yaml")


@pytest.fixture
def configured_store(store: ConfigStore) -> ConfigStore:
    store.set("apiKey", "test-key-123456")
    return store


@pytest.fixture
def requests_seen() -> list[httpx.Request]:
    return []


@pytest.fixture
def make_transport(requests_seen: list[httpx.Request]) -> Callable[[Handler], httpx.MockTransport]:
    """Wrap a handler in a MockTransport that records every request."""

    def factory(handler: Handler) -> httpx.MockTransport:
        def recording(request: httpx.Request) -> httpx.Response:
            requests_seen.append(request)
            return handler(request)

        return httpx.MockTransport(recording)

    return factory
