"""
Types for the HTTP cache control policy engine.
"""
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Pattern, Tuple
from urllib.parse import parse_qs, urlsplit


class CacheStrategy(str, Enum):
    """Named policy governing which visibility/age directives are emitted."""

    PRIVATE_ONLY = "private-only"
    PRIVATE_AND_PUBLIC = "private-and-public"
    FORCE_PUBLIC = "force-public"
    NO_CACHE = "no-cache"


class Visibility(str, Enum):
    """Audience allowed to store a response."""

    PRIVATE = "private"
    SHARED = "shared"
    """Cacheable by shared caches without an explicit ``public`` token."""
    PUBLIC = "public"
    NONE = "none"

    @property
    def permits_caching(self) -> bool:
        return self is not Visibility.NONE


@dataclass(frozen=True)
class PolicyConfiguration:
    """Fully resolved cache policy options."""

    enabled: bool = True
    """Whether caching logic applies at all."""

    strategy: CacheStrategy = CacheStrategy.PRIVATE_AND_PUBLIC
    """Directive strategy. Default: private-and-public."""

    max_age: Optional[int] = 60
    """max-age in seconds. None omits the directive."""

    s_maxage: Optional[int] = None
    """s-maxage in seconds. None omits the directive."""

    must_revalidate: bool = False
    """Append must-revalidate where the strategy allows it."""

    visibility_public: bool = True
    """Allow shared (public) caches to store responses."""

    visibility_private: bool = True
    """Allow private (single-client) caches to store responses."""

    token_key: Optional[str] = "cache-control-etag"
    """Token store key holding the current entity tag. Empty disables ETags."""

    token_ttl: int = 60 * 60 * 24 * 365
    """Expiry written with a rotated token, in seconds. Default: 1 year."""

    route_patterns: Tuple[Pattern[str], ...] = (re.compile(".*"),)
    """Compiled regular expressions matched against the request path."""

    methods: FrozenSet[str] = frozenset({"GET"})
    """Request methods the policy applies to."""

    excluded_if_query_param_present: FrozenSet[str] = frozenset({"preview"})
    """Query parameters whose presence disables caching for the request."""

    revalidate_authenticated: bool = True
    """Serve entity tags (and 304s) to requests carrying credentials."""


def get_header_value(headers: Optional[Mapping[str, str]], key: str) -> Optional[str]:
    """Get header value case-insensitively."""
    if not headers:
        return None
    lower_key = key.lower()
    for k, v in headers.items():
        if k.lower() == lower_key:
            return v
    return None


@dataclass(frozen=True)
class RequestContext:
    """The parts of an inbound request the policy looks at."""

    method: str
    path: str
    query_params: Mapping[str, List[str]] = field(default_factory=dict)
    if_none_match: Optional[str] = None
    has_authorization: bool = False

    @classmethod
    def from_url(
        cls,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> "RequestContext":
        """Build a context from a full URL and request headers."""
        parts = urlsplit(url)
        return cls(
            method=method.upper(),
            path=parts.path or "/",
            query_params=parse_qs(parts.query, keep_blank_values=True),
            if_none_match=get_header_value(headers, "if-none-match"),
            has_authorization=get_header_value(headers, "authorization") is not None,
        )


@dataclass(frozen=True)
class DecisionOutcome:
    """Result of applying the policy to an eligible 200 response."""

    short_circuit: bool
    """Whether the response must be replaced by a bodiless 304."""

    status: Optional[int] = None
    """304 when short-circuiting."""

    headers: Dict[str, str] = field(default_factory=dict)
    """Headers to merge into the outgoing 200 response, or to send with the 304."""

    @classmethod
    def not_modified(
        cls, cache_control: str = "", etag: Optional[str] = None
    ) -> "DecisionOutcome":
        # A 304 repeats the validator and freshness headers of the 200 it replaces.
        return cls(short_circuit=True, status=304, headers=cls._headers(cache_control, etag))

    @classmethod
    def decorate(cls, cache_control: str, etag: Optional[str] = None) -> "DecisionOutcome":
        return cls(short_circuit=False, headers=cls._headers(cache_control, etag))

    @staticmethod
    def _headers(cache_control: str, etag: Optional[str]) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if cache_control:
            headers["Cache-Control"] = cache_control
        if etag:
            headers["ETag"] = etag
        return headers


@dataclass
class CacheControlDirectives:
    """Cache-Control response directives emitted by the policy."""

    no_cache: bool = False
    """Response must be revalidated before use."""

    private: bool = False
    """Response is private (user-specific)."""

    public: bool = False
    """Response may be stored by shared caches."""

    max_age: Optional[int] = None
    """Maximum age in seconds."""

    s_maxage: Optional[int] = None
    """Shared cache maximum age in seconds."""

    must_revalidate: bool = False
    """Response must be revalidated once stale."""


class TokenStore(ABC):
    """Key-value store holding the shared revalidation token."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Get the token stored under key, or None when absent."""
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        """Store a token with an expiry. A ttl of 0 stores without expiry."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the store and release resources."""
        pass


class CachePolicyEventType(str, Enum):
    """Event types emitted by the engine and the invalidation trigger."""

    BYPASS = "policy:bypass"
    DECORATE = "policy:decorate"
    NOT_MODIFIED = "policy:not-modified"
    TOKEN_ERROR = "policy:token-error"
    INVALIDATE = "policy:invalidate"


@dataclass
class CachePolicyEvent:
    """Cache policy event."""

    type: CachePolicyEventType
    path: Optional[str]
    timestamp: float
    metadata: Optional[Dict[str, Any]] = None


CachePolicyEventListener = Callable[[CachePolicyEvent], None]
"""Event listener type."""

ErrorSink = Callable[[BaseException], None]
"""External error reporting callback."""
