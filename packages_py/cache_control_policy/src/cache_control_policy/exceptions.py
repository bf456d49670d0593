"""
Errors raised by the cache control policy engine.
"""
from typing import Optional


class CachePolicyError(Exception):
    """Base error for cache control policy failures."""

    code = "CACHE_POLICY_ERROR"


class ConfigurationError(CachePolicyError, ValueError):
    """Error thrown when a policy option has an invalid value."""

    code = "CONFIGURATION_ERROR"

    def __init__(self, message: str, option: Optional[str] = None) -> None:
        super().__init__(message)
        self.option = option


class TokenStoreUnavailable(CachePolicyError):
    """Error thrown when the revalidation token store cannot be reached."""

    code = "TOKEN_STORE_UNAVAILABLE"

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.key = key
