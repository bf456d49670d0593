"""
Cache-Control directive composition.

Each strategy selects the visibility of a response and the age directives that
go with it. Parts are joined in a fixed order: visibility token, max-age,
s-maxage, must-revalidate.
"""
from typing import List

from .types import (
    CacheControlDirectives,
    CacheStrategy,
    PolicyConfiguration,
    RequestContext,
    Visibility,
)


def _strategy_visibility(config: PolicyConfiguration, request: RequestContext) -> Visibility:
    strategy = config.strategy
    if strategy == CacheStrategy.NO_CACHE:
        return Visibility.NONE
    if strategy == CacheStrategy.PRIVATE_ONLY:
        return Visibility.PRIVATE
    if strategy == CacheStrategy.FORCE_PUBLIC:
        return Visibility.PUBLIC
    # Shared caches must never store authenticated responses.
    if request.has_authorization:
        return Visibility.PRIVATE
    return Visibility.SHARED


def resolve_visibility(config: PolicyConfiguration, request: RequestContext) -> Visibility:
    """Decide which caches may store the response to this request."""
    visibility = _strategy_visibility(config, request)

    if visibility in (Visibility.SHARED, Visibility.PUBLIC) and not config.visibility_public:
        visibility = Visibility.PRIVATE
    if visibility == Visibility.PRIVATE and not config.visibility_private:
        visibility = Visibility.NONE

    return visibility


def compose_directives(
    config: PolicyConfiguration, request: RequestContext
) -> CacheControlDirectives:
    """Select the directives for a request according to the configured strategy."""
    visibility = resolve_visibility(config, request)

    if visibility == Visibility.NONE:
        return CacheControlDirectives(no_cache=True)

    if visibility == Visibility.PRIVATE:
        return CacheControlDirectives(private=True, max_age=config.max_age)

    return CacheControlDirectives(
        public=visibility == Visibility.PUBLIC,
        max_age=config.max_age,
        s_maxage=config.s_maxage,
        must_revalidate=config.must_revalidate,
    )


def build_cache_control(directives: CacheControlDirectives) -> str:
    """Build Cache-Control header from directives."""
    if directives.no_cache:
        return "no-cache"

    parts: List[str] = []

    if directives.private:
        parts.append("private")
    elif directives.public:
        parts.append("public")
    if directives.max_age is not None:
        parts.append(f"max-age={directives.max_age}")
    if directives.s_maxage is not None:
        parts.append(f"s-maxage={directives.s_maxage}")
    if directives.must_revalidate:
        parts.append("must-revalidate")

    return ", ".join(parts)


def compose(config: PolicyConfiguration, request: RequestContext) -> str:
    """Compose the literal Cache-Control value for a request."""
    return build_cache_control(compose_directives(config, request))


compose_cache_control = compose
