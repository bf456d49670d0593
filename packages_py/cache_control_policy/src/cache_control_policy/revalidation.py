"""
Entity-tag revalidation against the shared token.

The token is content identity for the whole site, not per resource and not
per visibility. Visibility only decides whether revalidation runs at all.
"""
import logging
from typing import Optional

from .directives import compose, resolve_visibility
from .types import (
    CacheStrategy,
    DecisionOutcome,
    PolicyConfiguration,
    RequestContext,
    TokenStore,
    Visibility,
)

logger = logging.getLogger(__name__)


def should_revalidate(
    config: PolicyConfiguration,
    request: RequestContext,
    visibility: Optional[Visibility] = None,
) -> bool:
    """Check the preconditions for entity-tag handling."""
    if config.strategy == CacheStrategy.NO_CACHE or not config.token_key:
        return False
    if visibility is None:
        visibility = resolve_visibility(config, request)
    if not visibility.permits_caching:
        return False
    if request.has_authorization and not config.revalidate_authenticated:
        return False
    return True


def matches_token(token: str, if_none_match: Optional[str]) -> bool:
    """Exact string comparison, no weak-validator semantics."""
    return if_none_match is not None and if_none_match == token


async def revalidate(
    config: PolicyConfiguration,
    request: RequestContext,
    token_store: TokenStore,
    cache_control: Optional[str] = None,
) -> DecisionOutcome:
    """
    Compare the current token with the request's If-None-Match header.

    Args:
        config: Resolved policy configuration
        request: Request context
        token_store: Store holding the current token
        cache_control: Already composed directive (composed here when omitted)

    Returns:
        A 304 short-circuit carrying the same headers when the tags match,
        otherwise the headers to attach to the 200 response

    Raises:
        TokenStoreUnavailable: When the token cannot be read
    """
    if cache_control is None:
        cache_control = compose(config, request)

    token = await token_store.get(config.token_key)
    if not token:
        logger.debug(f"revalidate: no token under '{config.token_key}', directive only")
        return DecisionOutcome.decorate(cache_control)

    if matches_token(token, request.if_none_match):
        logger.debug(f"revalidate: If-None-Match matches token {token[:8]}..., not modified")
        return DecisionOutcome.not_modified(cache_control, etag=token)

    return DecisionOutcome.decorate(cache_control, etag=token)
