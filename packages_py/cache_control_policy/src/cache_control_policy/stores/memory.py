"""
In-memory token store.
Suitable for tests and single-process deployments.
"""
import time
from dataclasses import dataclass
from typing import Dict, Optional

from ..types import TokenStore


@dataclass
class TokenEntry:
    """Stored token with its expiry (None for no expiry)."""

    value: str
    expires_at: Optional[float]

    def is_expired(self, now: Optional[float] = None) -> bool:
        if self.expires_at is None:
            return False
        if now is None:
            now = time.time()
        return self.expires_at <= now


class MemoryTokenStore(TokenStore):
    """
    In-memory implementation of TokenStore.

    Writes replace the whole entry, so readers see either the old or the new
    token, never a mix.
    """

    def __init__(self) -> None:
        self._tokens: Dict[str, TokenEntry] = {}
        self._closed = False

    async def get(self, key: str) -> Optional[str]:
        """Get the token stored under key"""
        entry = self._tokens.get(key)
        if entry is None:
            return None

        if entry.is_expired():
            del self._tokens[key]
            return None

        return entry.value

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        """Store a token; a ttl of 0 keeps it until overwritten"""
        expires_at = time.time() + ttl_seconds if ttl_seconds > 0 else None
        self._tokens[key] = TokenEntry(value=value, expires_at=expires_at)
        return True

    async def delete(self, key: str) -> bool:
        """Delete a token"""
        return self._tokens.pop(key, None) is not None

    async def clear(self) -> None:
        """Remove all tokens"""
        self._tokens.clear()

    def size(self) -> int:
        """Number of live tokens"""
        now = time.time()
        return sum(1 for entry in self._tokens.values() if not entry.is_expired(now))

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        """Close the store and release resources"""
        self._closed = True
        self._tokens.clear()


def create_memory_token_store() -> MemoryTokenStore:
    """Create a new MemoryTokenStore instance."""
    return MemoryTokenStore()
