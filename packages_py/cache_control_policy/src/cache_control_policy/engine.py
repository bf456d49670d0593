"""
Cache policy engine.
"""
import logging
import time
from typing import Any, Callable, Dict, Optional, Set

from .config import PolicyOverrides, resolve_policy_configuration
from .directives import build_cache_control, compose_directives, resolve_visibility
from .eligibility import is_eligible
from .exceptions import TokenStoreUnavailable
from .revalidation import revalidate, should_revalidate
from .types import (
    CachePolicyEvent,
    CachePolicyEventListener,
    CachePolicyEventType,
    DecisionOutcome,
    ErrorSink,
    PolicyConfiguration,
    RequestContext,
    TokenStore,
)

logger = logging.getLogger(__name__)


class CachePolicyEngine:
    """
    Decides the caching headers of each eligible response.

    Implements:
    - Eligibility filtering by method, route, query parameters
    - Cache-Control composition per strategy
    - Entity-tag revalidation against a shared token
    - Degradation to directive-only headers when the token store fails

    Example:
        engine = CachePolicyEngine({"strategy": "force-public"}, RedisTokenStore(url=redis_url))

        request = RequestContext.from_url("GET", str(url), headers)
        response = await render(request)

        outcome = await engine.decide(request, response.status_code)
        if outcome is None:
            return response  # untouched
        if outcome.short_circuit:
            return empty_response(status=304, headers=outcome.headers)
        response.headers.update(outcome.headers)
    """

    def __init__(
        self,
        config: Optional[PolicyOverrides] = None,
        token_store: Optional[TokenStore] = None,
        *,
        on_error: Optional[ErrorSink] = None,
    ) -> None:
        self._config = resolve_policy_configuration(config)
        self._token_store = token_store
        self._on_error = on_error
        self._listeners: Set[CachePolicyEventListener] = set()

    @property
    def config(self) -> PolicyConfiguration:
        return self._config

    @property
    def token_store(self) -> Optional[TokenStore]:
        return self._token_store

    def is_eligible(self, request: RequestContext) -> bool:
        """Check whether the policy applies to a request."""
        return is_eligible(self._config, request)

    def compose(self, request: RequestContext) -> str:
        """Compose the Cache-Control value for a request."""
        return build_cache_control(compose_directives(self._config, request))

    async def decide(
        self, request: RequestContext, status_code: int = 200
    ) -> Optional[DecisionOutcome]:
        """
        Apply the policy to a downstream response.

        Args:
            request: Request context
            status_code: Status of the downstream response

        Returns:
            None when the response must pass through untouched, otherwise a
            304 short-circuit or the headers to merge into the response
        """
        if not self.is_eligible(request):
            self._bypass(request, "ineligible")
            return None

        # Errors and redirects are never decorated as cacheable content.
        if status_code != 200:
            self._bypass(request, "status", status_code=status_code)
            return None

        visibility = resolve_visibility(self._config, request)
        cache_control = self.compose(request)

        outcome = DecisionOutcome.decorate(cache_control)
        if self._token_store is not None and should_revalidate(
            self._config, request, visibility
        ):
            try:
                outcome = await revalidate(
                    self._config, request, self._token_store, cache_control
                )
            except TokenStoreUnavailable as e:
                self._report(e, request)
            except Exception as e:
                # Third-party stores and client construction raise their own errors.
                error = TokenStoreUnavailable(
                    f"Token store read failed: {type(e).__name__}: {e}",
                    key=self._config.token_key,
                )
                error.__cause__ = e
                self._report(error, request)

        if outcome.short_circuit:
            self._emit_event(CachePolicyEventType.NOT_MODIFIED, request)
        else:
            self._emit_event(
                CachePolicyEventType.DECORATE,
                request,
                {"visibility": visibility.value, "headers": dict(outcome.headers)},
            )

        logger.debug(
            f"CachePolicyEngine.decide: {request.method} {request.path} "
            f"visibility={visibility.value} short_circuit={outcome.short_circuit}"
        )
        return outcome

    def _bypass(self, request: RequestContext, reason: str, **metadata: Any) -> None:
        self._emit_event(
            CachePolicyEventType.BYPASS, request, {"reason": reason, **metadata}
        )

    def _report(self, error: TokenStoreUnavailable, request: RequestContext) -> None:
        """Send a token store failure to the log and the error sink."""
        logger.warning(
            f"CachePolicyEngine.decide: token store unavailable, continuing without ETag: {error}"
        )
        self._emit_event(
            CachePolicyEventType.TOKEN_ERROR, request, {"error": str(error)}
        )
        if self._on_error is None:
            return
        try:
            self._on_error(error)
        except Exception as sink_error:
            logger.error(f"CachePolicyEngine: error sink failed: {sink_error}")

    def on(self, listener: CachePolicyEventListener) -> Callable[[], None]:
        """Add event listener."""
        self._listeners.add(listener)
        return lambda: self._listeners.discard(listener)

    def off(self, listener: CachePolicyEventListener) -> None:
        """Remove event listener."""
        self._listeners.discard(listener)

    def _emit_event(
        self,
        event_type: CachePolicyEventType,
        request: RequestContext,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        if not self._listeners:
            return
        event = CachePolicyEvent(
            type=event_type,
            path=request.path,
            timestamp=time.time(),
            metadata=metadata,
        )
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"CachePolicyEngine: event listener failed: {e}")

    async def close(self) -> None:
        """Close the token store and drop listeners."""
        if self._token_store is not None:
            await self._token_store.close()
        self._listeners.clear()


def create_cache_policy_engine(
    config: Optional[PolicyOverrides] = None,
    token_store: Optional[TokenStore] = None,
    *,
    on_error: Optional[ErrorSink] = None,
) -> CachePolicyEngine:
    """Create a cache policy engine instance."""
    return CachePolicyEngine(config, token_store, on_error=on_error)
