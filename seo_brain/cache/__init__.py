"""
LLM Response Caching Layer

Content-addressed cache in front of expensive generation calls.

Usage:
    cache = LLMCache()
    text = await cache.cached_text(prompt, {"temperature": 0.7}, generate)

    # Bulk eviction per service
    await cache.invalidate_service("claude")
"""

from seo_brain.cache.config import CacheConfig, CacheTTL, get_cache_config
from seo_brain.cache.llm_cache import (
    CacheStats,
    CircuitBreaker,
    LLMCache,
    NullCache,
    make_cache_key,
)

__all__ = [
    "CacheConfig",
    "CacheTTL",
    "get_cache_config",
    "CacheStats",
    "CircuitBreaker",
    "LLMCache",
    "NullCache",
    "make_cache_key",
]
