"""Stateful helpers owned by an engine instance: rate limiting and response caching."""

from .rate_limiter import RateLimiter
from .response_cache import CacheEntry, ResponseCache


__all__ = [
    "CacheEntry",
    "RateLimiter",
    "ResponseCache",
]
