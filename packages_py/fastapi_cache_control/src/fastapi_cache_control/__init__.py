"""
FastAPI integration for cache_control_policy.
"""
from .middleware import CacheControlMiddleware, build_request_context
from .settings import CacheControlSettings, get_settings
from .routes import (
    InvalidationRequest,
    InvalidationResponse,
    create_invalidation_router,
)
from .factory import (
    add_cache_control,
    create_cache_control_engine,
    create_lifespan,
    create_token_store,
)

__all__ = [
    "CacheControlMiddleware",
    "build_request_context",
    "CacheControlSettings",
    "get_settings",
    "InvalidationRequest",
    "InvalidationResponse",
    "create_invalidation_router",
    "add_cache_control",
    "create_cache_control_engine",
    "create_lifespan",
    "create_token_store",
]

__version__ = "1.0.0"
