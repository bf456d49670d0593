"""Cache control configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheControlSettings(BaseSettings):
    """Cache policy settings loaded from CACHE_CONTROL_* environment variables.

    List options are read as JSON, e.g. CACHE_CONTROL_ROUTES='["^/blog", "^/news"]'.
    """

    ENABLED: bool = True
    STRATEGY: str = "private-and-public"
    MAX_AGE: Optional[int] = 60
    S_MAXAGE: Optional[int] = None
    MUST_REVALIDATE: bool = False
    PUBLIC: bool = True
    PRIVATE: bool = True
    REVALIDATE_AUTHENTICATED: bool = True

    # Entity tags
    TOKEN_KEY: str = "cache-control-etag"
    TOKEN_TTL: int = 60 * 60 * 24 * 365  # 1 year

    # Request filters
    ROUTES: List[str] = [".*"]
    METHODS: List[str] = ["GET"]
    NO_CACHE_SEARCH_PARAMS: List[str] = ["preview"]

    # Token store
    REDIS_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CACHE_CONTROL_REDIS_URL", "REDIS_URL"),
    )
    REDIS_KEY_PREFIX: str = ""

    model_config = SettingsConfigDict(
        env_prefix="CACHE_CONTROL_",
        case_sensitive=True,
        env_file=None,  # Use system env only
        extra="ignore",
        populate_by_name=True,
    )

    def to_overrides(self) -> Dict[str, Any]:
        """Policy overrides for resolve_policy_configuration."""
        return {
            "enabled": self.ENABLED,
            "strategy": self.STRATEGY,
            "max_age": self.MAX_AGE,
            "s_maxage": self.S_MAXAGE,
            "must_revalidate": self.MUST_REVALIDATE,
            "visibility_public": self.PUBLIC,
            "visibility_private": self.PRIVATE,
            "token_key": self.TOKEN_KEY,
            "token_ttl": self.TOKEN_TTL,
            "route_patterns": self.ROUTES,
            "methods": self.METHODS,
            "excluded_if_query_param_present": self.NO_CACHE_SEARCH_PARAMS,
            "revalidate_authenticated": self.REVALIDATE_AUTHENTICATED,
        }


@lru_cache()
def get_settings() -> CacheControlSettings:
    """Get cached settings instance."""
    return CacheControlSettings()
