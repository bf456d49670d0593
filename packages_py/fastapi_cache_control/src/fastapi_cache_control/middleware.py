"""
Cache control middleware for FastAPI/Starlette.

Decorates eligible 200 responses with Cache-Control and ETag headers and
answers matching conditional requests with a bodiless 304 carrying the same
headers.
"""
import logging
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from cache_control_policy import (
    CachePolicyEngine,
    ErrorSink,
    RequestContext,
    TokenStore,
)
from cache_control_policy.config import PolicyOverrides

logger = logging.getLogger(__name__)


def build_request_context(request: Request) -> RequestContext:
    """Extract the policy-relevant parts of a Starlette request."""
    query_params = request.query_params
    return RequestContext(
        method=request.method.upper(),
        path=request.url.path,
        query_params={key: query_params.getlist(key) for key in query_params.keys()},
        if_none_match=request.headers.get("if-none-match"),
        has_authorization="authorization" in request.headers,
    )


class CacheControlMiddleware(BaseHTTPMiddleware):
    """
    Applies a CachePolicyEngine to every response.

    Example:
        app = FastAPI()
        app.add_middleware(
            CacheControlMiddleware,
            config={"strategy": "force-public", "max_age": 120},
            token_store=RedisTokenStore(url="redis://localhost:6379/0"),
        )
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        engine: Optional[CachePolicyEngine] = None,
        config: Optional[PolicyOverrides] = None,
        token_store: Optional[TokenStore] = None,
        on_error: Optional[ErrorSink] = None,
    ) -> None:
        super().__init__(app)
        self.engine = engine or CachePolicyEngine(config, token_store, on_error=on_error)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        context = build_request_context(request)
        if not self.engine.is_eligible(context):
            return await call_next(request)

        response = await call_next(request)

        outcome = await self.engine.decide(context, response.status_code)
        if outcome is None:
            return response

        if outcome.short_circuit:
            logger.debug(f"CacheControlMiddleware: 304 for {context.method} {context.path}")
            return Response(status_code=outcome.status or 304, headers=outcome.headers)

        for name, value in outcome.headers.items():
            response.headers[name] = value
        return response
