"""Pytest configuration and fixtures for cache_control_policy tests."""
from typing import Dict, List, Optional

import pytest

from cache_control_policy import (
    MemoryTokenStore,
    RequestContext,
    TokenStore,
    TokenStoreUnavailable,
)


class RecordingTokenStore(MemoryTokenStore):
    """Memory store that records every read."""

    def __init__(self) -> None:
        super().__init__()
        self.reads: List[str] = []

    async def get(self, key: str) -> Optional[str]:
        self.reads.append(key)
        return await super().get(key)


class FailingTokenStore(TokenStore):
    """Store whose every command fails like an unreachable Redis."""

    def __init__(self) -> None:
        self.reads = 0

    async def get(self, key: str) -> Optional[str]:
        self.reads += 1
        raise TokenStoreUnavailable("connection refused", key=key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        raise TokenStoreUnavailable("connection refused", key=key)

    async def close(self) -> None:
        pass


@pytest.fixture
async def store():
    """Recording memory store, closed after the test."""
    s = RecordingTokenStore()
    yield s
    await s.close()


class BrokenTokenStore(TokenStore):
    """Store whose driver raises its own exception type."""

    async def get(self, key: str) -> Optional[str]:
        raise RuntimeError("driver blew up")

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        raise RuntimeError("driver blew up")

    async def close(self) -> None:
        pass


@pytest.fixture
def failing_store():
    return FailingTokenStore()


@pytest.fixture
def broken_store():
    return BrokenTokenStore()


@pytest.fixture
def make_request():
    """Build a RequestContext from a URL and headers."""

    def _make(
        url: str = "https://example.com/",
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
    ) -> RequestContext:
        return RequestContext.from_url(method, url, headers or {})

    return _make
