"""
Factory functions for wiring the cache policy into a FastAPI application.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Callable, Optional

from fastapi import FastAPI

from cache_control_policy import (
    CachePolicyEngine,
    ErrorSink,
    InvalidationTrigger,
    RedisTokenStore,
    TokenStore,
)

from .middleware import CacheControlMiddleware
from .routes import create_invalidation_router
from .settings import CacheControlSettings, get_settings

logger = logging.getLogger(__name__)


def create_token_store(settings: CacheControlSettings) -> Optional[TokenStore]:
    """
    Create the token store described by settings.

    Args:
        settings: Cache control settings

    Returns:
        A lazily connecting RedisTokenStore, or None when no Redis URL is set
    """
    if not settings.REDIS_URL:
        logger.info("create_token_store: no Redis URL configured, entity tags disabled")
        return None
    return RedisTokenStore(url=settings.REDIS_URL, key_prefix=settings.REDIS_KEY_PREFIX)


def create_cache_control_engine(
    settings: Optional[CacheControlSettings] = None,
    *,
    token_store: Optional[TokenStore] = None,
    on_error: Optional[ErrorSink] = None,
) -> CachePolicyEngine:
    """
    Create a cache policy engine from settings.

    Args:
        settings: Cache control settings (defaults to environment settings)
        token_store: Token store overriding the one described by settings
        on_error: External error sink for token store failures

    Returns:
        CachePolicyEngine instance
    """
    if settings is None:
        settings = get_settings()
    if token_store is None:
        token_store = create_token_store(settings)
    return CachePolicyEngine(settings.to_overrides(), token_store, on_error=on_error)


def add_cache_control(
    app: FastAPI,
    *,
    engine: Optional[CachePolicyEngine] = None,
    settings: Optional[CacheControlSettings] = None,
    token_store: Optional[TokenStore] = None,
    on_error: Optional[ErrorSink] = None,
    invalidation_prefix: Optional[str] = None,
) -> CachePolicyEngine:
    """
    Install the cache control middleware on an application.

    Args:
        app: FastAPI application
        engine: Prebuilt engine (built from settings when omitted)
        settings: Cache control settings
        token_store: Token store overriding the one described by settings
        on_error: External error sink for token store failures
        invalidation_prefix: Mount POST {prefix}/invalidate when given

    Returns:
        The engine used by the middleware
    """
    if engine is None:
        engine = create_cache_control_engine(settings, token_store=token_store, on_error=on_error)

    app.add_middleware(CacheControlMiddleware, engine=engine)
    # Closed by create_lifespan() on shutdown
    app.state.cache_control_engine = engine

    if invalidation_prefix is not None:
        if engine.token_store is None:
            logger.warning("add_cache_control: no token store, invalidation endpoint not mounted")
        else:
            trigger = InvalidationTrigger.from_config(engine.config, engine.token_store)
            app.include_router(create_invalidation_router(trigger, prefix=invalidation_prefix))

    return engine


def create_lifespan(
    setup: Optional[Callable[[FastAPI], Any]] = None,
) -> Callable[..., AsyncGenerator[None, None]]:
    """
    Factory to create a FastAPI lifespan that closes the cache policy engine.

    Args:
        setup: Async function run at startup, e.g. to warm the token store.
               Receives the application.

    Example:
        app = FastAPI(lifespan=create_lifespan())
        add_cache_control(app, invalidation_prefix="/cache-control")
    """

    @asynccontextmanager
    async def lifespan(app: Any) -> AsyncGenerator[None, None]:
        if setup:
            await setup(app)

        yield

        engine = getattr(app.state, "cache_control_engine", None)
        if engine is not None:
            await engine.close()
            logger.info("create_lifespan: cache policy engine closed")

    return lifespan
