"""
Utility modules for ingestion.

Provides request pacing shared by the sync orchestrator.
"""

from steam_catalog.ingestion.utils.rate_limiter import (
    RateLimiter,
    RateLimiterConfig,
)

__all__ = [
    "RateLimiter",
    "RateLimiterConfig",
]
