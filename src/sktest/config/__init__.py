from __future__ import annotations

from sktest.config.models import (
    DEFAULT_TIMEOUT_SEC,
    DEFAULT_USER_AGENT,
    DNS_CACHE_TIMEOUT_SEC,
    SamplerConfig,
)

__all__ = [
    "DEFAULT_TIMEOUT_SEC",
    "DEFAULT_USER_AGENT",
    "DNS_CACHE_TIMEOUT_SEC",
    "SamplerConfig",
]
