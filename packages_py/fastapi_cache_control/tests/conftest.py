"""Pytest configuration and fixtures for fastapi_cache_control tests."""
from typing import Optional

import httpx
import pytest
from fastapi import FastAPI, HTTPException
from fastapi.responses import RedirectResponse

from cache_control_policy import MemoryTokenStore, TokenStore, TokenStoreUnavailable
from fastapi_cache_control.settings import get_settings

SETTINGS_ENV = [
    "CACHE_CONTROL_ENABLED",
    "CACHE_CONTROL_STRATEGY",
    "CACHE_CONTROL_MAX_AGE",
    "CACHE_CONTROL_S_MAXAGE",
    "CACHE_CONTROL_ROUTES",
    "CACHE_CONTROL_METHODS",
    "CACHE_CONTROL_TOKEN_KEY",
    "CACHE_CONTROL_TOKEN_TTL",
    "CACHE_CONTROL_REDIS_URL",
    "REDIS_URL",
]


class FailingTokenStore(TokenStore):
    """Store whose every command fails like an unreachable Redis."""

    async def get(self, key: str) -> Optional[str]:
        raise TokenStoreUnavailable("connection refused", key=key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        raise TokenStoreUnavailable("connection refused", key=key)

    async def close(self) -> None:
        pass


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Isolate tests from CACHE_CONTROL_* variables of the host."""
    for name in SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def token_store():
    return MemoryTokenStore()


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
def app() -> FastAPI:
    """Application with one route per response kind the middleware sees."""
    app = FastAPI()

    @app.get("/")
    async def home():
        return {"page": "home"}

    @app.get("/blog/{slug}")
    async def blog(slug: str):
        return {"page": slug}

    @app.get("/missing")
    async def missing():
        raise HTTPException(status_code=404, detail="Not found")

    @app.get("/moved")
    async def moved():
        return RedirectResponse("/", status_code=301)

    @app.post("/comments")
    async def comment():
        return {"ok": True}

    return app


@pytest.fixture
def make_client():
    """Create an httpx client bound to an ASGI app."""

    def _make(app: FastAPI) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _make
