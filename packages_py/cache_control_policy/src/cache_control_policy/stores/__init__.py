"""
Token store implementations.
"""
from .memory import MemoryTokenStore, TokenEntry, create_memory_token_store
from .redis import (
    RedisClientProtocol,
    RedisTokenStore,
    create_redis_token_store,
    validate_redis_url,
)

__all__ = [
    "MemoryTokenStore",
    "TokenEntry",
    "create_memory_token_store",
    "RedisClientProtocol",
    "RedisTokenStore",
    "create_redis_token_store",
    "validate_redis_url",
]
