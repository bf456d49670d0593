"""
HTTP response caching policy.

Decides Cache-Control directives per request, revalidates entity tags against a
shared token, and rotates that token to invalidate every cached representation.
"""
from .types import (
    CacheStrategy,
    Visibility,
    PolicyConfiguration,
    RequestContext,
    DecisionOutcome,
    CacheControlDirectives,
    TokenStore,
    CachePolicyEventType,
    CachePolicyEvent,
    CachePolicyEventListener,
    ErrorSink,
    get_header_value,
)
from .exceptions import (
    CachePolicyError,
    ConfigurationError,
    TokenStoreUnavailable,
)
from .config import (
    DEFAULT_POLICY_CONFIGURATION,
    OPTION_ALIASES,
    coerce_strategy,
    compile_route_patterns,
    resolve_policy_configuration,
    validate_policy_configuration,
)
from .eligibility import (
    is_eligible,
    is_policy_method,
    matches_route,
    has_excluded_query_param,
)
from .directives import (
    resolve_visibility,
    compose_directives,
    build_cache_control,
    compose,
    compose_cache_control,
)
from .revalidation import (
    revalidate,
    should_revalidate,
    matches_token,
)
from .invalidation import (
    ContentMutationEvent,
    InvalidationTrigger,
    create_invalidation_trigger,
    generate_token,
    is_qualifying_mutation,
)
from .engine import (
    CachePolicyEngine,
    create_cache_policy_engine,
)
from .stores import (
    MemoryTokenStore,
    RedisTokenStore,
    create_memory_token_store,
    create_redis_token_store,
)


__all__ = [
    # Types
    "CacheStrategy",
    "Visibility",
    "PolicyConfiguration",
    "RequestContext",
    "DecisionOutcome",
    "CacheControlDirectives",
    "TokenStore",
    "CachePolicyEventType",
    "CachePolicyEvent",
    "CachePolicyEventListener",
    "ErrorSink",
    "get_header_value",
    # Errors
    "CachePolicyError",
    "ConfigurationError",
    "TokenStoreUnavailable",
    # Configuration
    "DEFAULT_POLICY_CONFIGURATION",
    "OPTION_ALIASES",
    "coerce_strategy",
    "compile_route_patterns",
    "resolve_policy_configuration",
    "validate_policy_configuration",
    # Eligibility
    "is_eligible",
    "is_policy_method",
    "matches_route",
    "has_excluded_query_param",
    # Directives
    "resolve_visibility",
    "compose_directives",
    "build_cache_control",
    "compose",
    "compose_cache_control",
    # Revalidation
    "revalidate",
    "should_revalidate",
    "matches_token",
    # Invalidation
    "ContentMutationEvent",
    "InvalidationTrigger",
    "create_invalidation_trigger",
    "generate_token",
    "is_qualifying_mutation",
    # Engine
    "CachePolicyEngine",
    "create_cache_policy_engine",
    # Stores
    "MemoryTokenStore",
    "RedisTokenStore",
    "create_memory_token_store",
    "create_redis_token_store",
]

__version__ = "1.0.0"
