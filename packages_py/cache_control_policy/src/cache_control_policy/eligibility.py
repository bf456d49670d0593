"""
Eligibility filter: decides whether the cache policy applies to a request.
"""
from .types import PolicyConfiguration, RequestContext


def is_policy_method(config: PolicyConfiguration, method: str) -> bool:
    """Check if the request method is covered by the policy."""
    return method.upper() in config.methods


def matches_route(config: PolicyConfiguration, path: str) -> bool:
    """Check the request path (never the full URL) against the route patterns."""
    return any(pattern.search(path) for pattern in config.route_patterns)


def has_excluded_query_param(config: PolicyConfiguration, request: RequestContext) -> bool:
    """Check for a query parameter that disables caching, e.g. ``preview``."""
    return any(param in request.query_params for param in config.excluded_if_query_param_present)


def is_eligible(config: PolicyConfiguration, request: RequestContext) -> bool:
    """
    Decide whether caching logic applies to a request.

    All of the following must hold: the policy is enabled, the method is
    covered, a route pattern matches the path, and no excluded query
    parameter is present.
    """
    return (
        config.enabled
        and is_policy_method(config, request.method)
        and matches_route(config, request.path)
        and not has_excluded_query_param(config, request)
    )
