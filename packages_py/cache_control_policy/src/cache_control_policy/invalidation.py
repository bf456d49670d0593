"""
Token rotation for global cache invalidation.

Any content save that qualifies writes a fresh unpredictable token under the
configured key. Every entity tag issued before the write stops matching, so
all cached representations become stale at once.
"""
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Optional, Set

from .exceptions import ConfigurationError, TokenStoreUnavailable
from .types import (
    CachePolicyEvent,
    CachePolicyEventListener,
    CachePolicyEventType,
    PolicyConfiguration,
    TokenStore,
)

logger = logging.getLogger(__name__)


@dataclass
class ContentMutationEvent:
    """A content save reported by the host system."""

    is_draft: bool = False
    """The saved record is a draft."""

    is_revision: bool = False
    """The saved record is a stored revision of another record."""

    propagating: bool = False
    """The save is a copy propagated to another site."""

    resaving: bool = False
    """The save is part of a bulk resave pass."""

    source: Optional[str] = None
    """Free-form label of the originating record, for logs."""


def is_qualifying_mutation(event: ContentMutationEvent) -> bool:
    """Only canonical, first-hand saves rotate the token."""
    return not (event.is_draft or event.is_revision or event.propagating or event.resaving)


def generate_token() -> str:
    """Generate an unpredictable opaque token."""
    return str(uuid.uuid4())


class InvalidationTrigger:
    """
    Rotates the shared revalidation token.

    Example:
        trigger = InvalidationTrigger(store, "cache-control-etag", 31536000)

        # In the host's after-save hook
        await trigger.handle(ContentMutationEvent(is_draft=entry.is_draft))
    """

    def __init__(
        self,
        token_store: TokenStore,
        token_key: Optional[str],
        token_ttl: int,
        *,
        token_factory: Callable[[], str] = generate_token,
    ) -> None:
        if isinstance(token_ttl, bool) or not isinstance(token_ttl, int) or token_ttl < 0:
            raise ConfigurationError(
                f"token_ttl must be a non-negative integer, got {token_ttl!r}",
                option="token_ttl",
            )
        self._token_store = token_store
        self._token_key = token_key
        self._token_ttl = token_ttl
        self._token_factory = token_factory
        self._listeners: Set[CachePolicyEventListener] = set()

    @classmethod
    def from_config(
        cls, config: PolicyConfiguration, token_store: TokenStore
    ) -> "InvalidationTrigger":
        """Create a trigger writing the key and TTL of a policy configuration."""
        return cls(token_store, config.token_key, config.token_ttl)

    @property
    def enabled(self) -> bool:
        return bool(self._token_key) and self._token_ttl > 0

    async def invalidate(self) -> Optional[str]:
        """
        Write a fresh token.

        Returns:
            The new token, or None when no key or TTL is configured

        Raises:
            TokenStoreUnavailable: When the write fails
        """
        if not self.enabled:
            logger.debug("InvalidationTrigger.invalidate: no token key/ttl configured, skipping")
            return None

        token = self._token_factory()
        try:
            await self._token_store.set(self._token_key, token, self._token_ttl)
        except TokenStoreUnavailable as e:
            logger.warning(f"InvalidationTrigger.invalidate: token rotation failed: {e}")
            raise

        logger.info(
            f"InvalidationTrigger.invalidate: rotated '{self._token_key}' "
            f"(ttl={self._token_ttl}s)"
        )
        self._emit(
            CachePolicyEvent(
                type=CachePolicyEventType.INVALIDATE,
                path=None,
                timestamp=time.time(),
                metadata={"token_key": self._token_key, "ttl": self._token_ttl},
            )
        )
        return token

    async def handle(self, event: ContentMutationEvent) -> Optional[str]:
        """Rotate the token if the mutation qualifies."""
        if not is_qualifying_mutation(event):
            logger.debug(
                f"InvalidationTrigger.handle: ignoring non-canonical save "
                f"source={event.source!r}"
            )
            return None
        return await self.invalidate()

    def on(self, listener: CachePolicyEventListener) -> Callable[[], None]:
        """Add event listener."""
        self._listeners.add(listener)
        return lambda: self._listeners.discard(listener)

    def off(self, listener: CachePolicyEventListener) -> None:
        """Remove event listener."""
        self._listeners.discard(listener)

    def _emit(self, event: CachePolicyEvent) -> None:
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"InvalidationTrigger: event listener failed: {e}")


def create_invalidation_trigger(
    token_store: TokenStore,
    config: PolicyConfiguration,
) -> InvalidationTrigger:
    """Create an invalidation trigger for a policy configuration."""
    return InvalidationTrigger.from_config(config, token_store)
