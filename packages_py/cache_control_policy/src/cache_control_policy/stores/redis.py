"""
Redis token store implementation
Shares the revalidation token across processes/servers
"""
import logging
from typing import Any, Optional, Protocol
from urllib.parse import urlsplit

from redis import asyncio as redis_asyncio
from redis.exceptions import RedisError

from ..exceptions import ConfigurationError, TokenStoreUnavailable
from ..types import TokenStore

logger = logging.getLogger(__name__)

REDIS_URL_SCHEMES = frozenset({"redis", "rediss", "unix"})


class RedisClientProtocol(Protocol):
    """Protocol for Redis client (compatible with redis-py async)"""

    async def get(self, name: str) -> Any:
        ...

    async def set(self, name: str, value: str, ex: Optional[int] = None) -> Any:
        ...

    async def ping(self) -> Any:
        ...

    async def aclose(self) -> None:
        ...


def validate_redis_url(url: str) -> str:
    """
    Check a Redis URL before any client is created.

    Raises:
        ConfigurationError: When the scheme is not redis://, rediss:// or unix://
    """
    scheme = urlsplit(url).scheme.lower()
    if scheme not in REDIS_URL_SCHEMES:
        raise ConfigurationError(
            f"Invalid Redis URL {url!r}: expected a redis://, rediss:// or unix:// scheme",
            option="redis_url",
        )
    return url


class RedisTokenStore(TokenStore):
    """
    Redis implementation of TokenStore.

    Either wraps an existing async client or creates one from a URL on first
    use. A client created here is owned by the store and closed with it.
    """

    def __init__(
        self,
        client: Optional[RedisClientProtocol] = None,
        *,
        url: Optional[str] = None,
        key_prefix: str = "",
        socket_connect_timeout_s: float = 1.0,
        socket_timeout_s: float = 1.0,
    ) -> None:
        """
        Create a new RedisTokenStore.

        Args:
            client: Redis client (async redis-py instance)
            url: Redis URL used to create a client lazily when none is given
            key_prefix: Prefix for all keys. Default: ''
            socket_connect_timeout_s: Connect timeout for a lazily created client
            socket_timeout_s: Command timeout for a lazily created client
        """
        if client is None and not url:
            raise ValueError("RedisTokenStore requires a client or a url")
        if client is None:
            validate_redis_url(url)
        self._client = client
        self._owns_client = client is None
        self._url = url
        self._key_prefix = key_prefix
        self._socket_connect_timeout_s = socket_connect_timeout_s
        self._socket_timeout_s = socket_timeout_s

    def _get_key(self, key: str) -> str:
        """Get the full key with prefix"""
        return f"{self._key_prefix}{key}"

    def _ensure_client(self) -> RedisClientProtocol:
        """Create the client on first use and reuse it afterwards"""
        if self._client is None:
            self._client = redis_asyncio.Redis.from_url(
                self._url,
                decode_responses=True,
                socket_connect_timeout=float(self._socket_connect_timeout_s),
                socket_timeout=float(self._socket_timeout_s),
            )
            logger.info("RedisTokenStore: client created")
        return self._client

    async def get(self, key: str) -> Optional[str]:
        """Get the token stored under key"""
        full_key = self._get_key(key)
        try:
            value = await self._ensure_client().get(full_key)
        except (RedisError, OSError) as e:
            raise TokenStoreUnavailable(f"Redis GET failed for '{full_key}': {e}", key=key) from e

        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        """
        Store a token.
        Uses a single SET with EX so concurrent readers never see a torn value.
        """
        full_key = self._get_key(key)
        try:
            if ttl_seconds > 0:
                result = await self._ensure_client().set(full_key, value, ex=int(ttl_seconds))
            else:
                result = await self._ensure_client().set(full_key, value)
        except (RedisError, OSError) as e:
            raise TokenStoreUnavailable(f"Redis SET failed for '{full_key}': {e}", key=key) from e
        return bool(result)

    async def ping(self) -> bool:
        """Check if Redis is reachable"""
        try:
            return bool(await self._ensure_client().ping())
        except (RedisError, OSError) as e:
            logger.warning(f"RedisTokenStore: ping failed: {e}")
            return False

    async def close(self) -> None:
        """Close the store and cleanup resources"""
        if self._client is None or not self._owns_client:
            return
        client, self._client = self._client, None
        await client.aclose()


def create_redis_token_store(
    client: Optional[RedisClientProtocol] = None,
    *,
    url: Optional[str] = None,
    key_prefix: str = "",
) -> RedisTokenStore:
    """
    Create a new RedisTokenStore instance.

    Args:
        client: Redis client (async redis-py instance)
        url: Redis URL for a lazily created client
        key_prefix: Prefix for all keys

    Returns:
        RedisTokenStore instance
    """
    return RedisTokenStore(client, url=url, key_prefix=key_prefix)
