"""
Configuration utilities for cache_control_policy.

Overrides are merged key-by-key onto documented defaults. camelCase option
names (``maxAge``, ``etagCacheKey``, ``routes`` ...) are accepted as aliases of
the snake_case field names.
"""
import logging
import re
from dataclasses import fields
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Pattern, Tuple, Union

from .exceptions import ConfigurationError
from .types import CacheStrategy, PolicyConfiguration

logger = logging.getLogger(__name__)

DEFAULT_ROUTE_PATTERN = ".*"

DEFAULT_POLICY_CONFIGURATION = PolicyConfiguration(
    enabled=True,
    strategy=CacheStrategy.PRIVATE_AND_PUBLIC,
    max_age=60,
    s_maxage=None,
    must_revalidate=False,
    visibility_public=True,
    visibility_private=True,
    token_key="cache-control-etag",
    token_ttl=60 * 60 * 24 * 365,  # 1 year
    route_patterns=(re.compile(DEFAULT_ROUTE_PATTERN),),
    methods=frozenset({"GET"}),
    excluded_if_query_param_present=frozenset({"preview"}),
    revalidate_authenticated=True,
)

OPTION_ALIASES: Dict[str, str] = {
    "maxAge": "max_age",
    "sMaxAge": "s_maxage",
    "mustRevalidate": "must_revalidate",
    "public": "visibility_public",
    "private": "visibility_private",
    "etagCacheKey": "token_key",
    "etagTTL": "token_ttl",
    "routes": "route_patterns",
    "noCacheSearchParams": "excluded_if_query_param_present",
    "revalidateAuthenticated": "revalidate_authenticated",
}

_FIELD_NAMES = frozenset(f.name for f in fields(PolicyConfiguration))

PolicyOverrides = Union[Mapping[str, Any], PolicyConfiguration]


def coerce_strategy(value: Union[str, CacheStrategy]) -> CacheStrategy:
    """Turn an enum member or its wire name into a CacheStrategy."""
    if isinstance(value, CacheStrategy):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower().replace("_", "-")
        for strategy in CacheStrategy:
            if strategy.value == normalized:
                return strategy
    raise ConfigurationError(f"Unknown cache strategy: {value!r}", option="strategy")


def _coerce_seconds(option: str, value: Any, *, optional: bool) -> Optional[int]:
    if value is None:
        if optional:
            return None
        raise ConfigurationError(f"{option} is required", option=option)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(
            f"{option} must be a non-negative integer number of seconds, got {value!r}",
            option=option,
        )
    if value < 0:
        raise ConfigurationError(f"{option} must not be negative, got {value}", option=option)
    return value


def _as_iterable(value: Any) -> Iterable[Any]:
    if value is None:
        return ()
    if isinstance(value, (str, bytes)) or hasattr(value, "pattern"):
        return (value,)
    return value


def compile_route_patterns(patterns: Any) -> Tuple[Pattern[str], ...]:
    """Compile route patterns once; malformed expressions fail here."""
    compiled = []
    for pattern in _as_iterable(patterns):
        if hasattr(pattern, "search"):
            compiled.append(pattern)
            continue
        # Glob-style catch-all from early deployments.
        source = DEFAULT_ROUTE_PATTERN if pattern == "*" else str(pattern)
        try:
            compiled.append(re.compile(source))
        except re.error as e:
            raise ConfigurationError(
                f"Invalid route pattern {source!r}: {e}", option="route_patterns"
            ) from e
    return tuple(compiled)


def normalize_methods(methods: Any) -> FrozenSet[str]:
    return frozenset(str(m).strip().upper() for m in _as_iterable(methods))


def normalize_query_params(params: Any) -> FrozenSet[str]:
    return frozenset(str(p) for p in _as_iterable(params))


def _normalize(option: str, value: Any) -> Any:
    if option == "strategy":
        return coerce_strategy(value)
    if option in ("max_age", "s_maxage"):
        return _coerce_seconds(option, value, optional=True)
    if option == "token_ttl":
        return _coerce_seconds(option, value, optional=False)
    if option == "token_key":
        return str(value) if value else None
    if option == "route_patterns":
        return compile_route_patterns(value)
    if option == "methods":
        return normalize_methods(value)
    if option == "excluded_if_query_param_present":
        return normalize_query_params(value)
    return bool(value)


def _canonical_overrides(overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Map aliases onto field names; canonical names win over aliases."""
    canonical: Dict[str, Any] = {}
    for key, value in overrides.items():
        if key in _FIELD_NAMES:
            canonical[key] = value
        elif key in OPTION_ALIASES:
            canonical.setdefault(OPTION_ALIASES[key], value)
        elif key != "noCache":
            logger.debug(f"resolve_policy_configuration: ignoring unknown option '{key}'")

    # Boolean flag variant: noCache=True selects the no-cache strategy.
    if "strategy" not in canonical and overrides.get("noCache"):
        canonical["strategy"] = CacheStrategy.NO_CACHE
    return canonical


def resolve_policy_configuration(
    overrides: Optional[PolicyOverrides] = None,
    defaults: PolicyConfiguration = DEFAULT_POLICY_CONFIGURATION,
) -> PolicyConfiguration:
    """
    Merge caller overrides onto defaults.

    Args:
        overrides: Mapping of option name to value, or a PolicyConfiguration
        defaults: Configuration supplying every absent option

    Returns:
        Fully resolved, immutable PolicyConfiguration

    Raises:
        ConfigurationError: For negative ages/TTL, unknown strategies or
            malformed route patterns
    """
    if overrides is None:
        return validate_policy_configuration(defaults)

    if isinstance(overrides, PolicyConfiguration):
        overrides = {f.name: getattr(overrides, f.name) for f in fields(overrides)}

    values = {f.name: getattr(defaults, f.name) for f in fields(defaults)}
    for option, value in _canonical_overrides(overrides).items():
        values[option] = _normalize(option, value)

    config = PolicyConfiguration(**values)
    logger.debug(
        f"resolve_policy_configuration: strategy={config.strategy.value} max_age={config.max_age} "
        f"s_maxage={config.s_maxage} enabled={config.enabled}"
    )
    return validate_policy_configuration(config)


def validate_policy_configuration(config: PolicyConfiguration) -> PolicyConfiguration:
    """Check numeric options of a configuration that was built directly."""
    _coerce_seconds("max_age", config.max_age, optional=True)
    _coerce_seconds("s_maxage", config.s_maxage, optional=True)
    _coerce_seconds("token_ttl", config.token_ttl, optional=False)
    if not isinstance(config.strategy, CacheStrategy):
        raise ConfigurationError(
            f"Unknown cache strategy: {config.strategy!r}", option="strategy"
        )
    return config
