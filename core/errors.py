"""
Engine-level exceptions.

Transport-level failures live in data_sources.base_api (APIError,
RateLimitExceeded, AuthSkewError). The classes here are what callers of
the engine see.
"""

from __future__ import annotations

from typing import Optional


class ConfigurationError(Exception):
    """Mandatory configuration is missing; the process must not serve requests."""
    pass


class ProviderUnavailable(Exception):
    """The primary provider failed during a search.

    Distinct from an empty result so callers can tell "nothing found"
    apart from "provider down".
    """

    def __init__(self, provider: str, reason: str, cause: Optional[BaseException] = None):
        self.provider = provider
        self.reason = reason
        self.cause = cause
        super().__init__(f"{provider} unavailable: {reason}")
