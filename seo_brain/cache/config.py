"""
Cache Configuration

Centralized configuration for the LLM response cache.
TTLs are per service: text generations turn over daily, translations
weekly, image URLs monthly.
"""

import os
from dataclasses import dataclass, field
from datetime import timedelta
from functools import lru_cache


@dataclass(frozen=True)
class CacheTTL:
    """
    Cache TTL configuration by service.

    Only image URLs are cached for the image service, never image bytes.
    """

    TEXT_GENERATION: timedelta = timedelta(hours=24)
    TRANSLATION: timedelta = timedelta(days=7)
    IMAGE_URL: timedelta = timedelta(days=30)

    @classmethod
    def for_service(cls, service: str) -> timedelta:
        """Get TTL for a service name."""
        mapping = {
            "claude": cls.TEXT_GENERATION,
            "ollama": cls.TEXT_GENERATION,
            "text": cls.TEXT_GENERATION,
            "translation": cls.TRANSLATION,
            "image": cls.IMAGE_URL,
        }
        return mapping.get(service, cls.TEXT_GENERATION)


@dataclass
class CacheConfig:
    """
    Main cache configuration.

    Settings can be overridden via environment variables:
    - CACHE_ENABLED: Enable/disable caching globally
    - CACHE_NAMESPACE: Key prefix (default: llm)
    - REDIS_URL: Redis connection string
    """

    # Cache namespace (for key prefixes)
    namespace: str = field(default_factory=lambda: os.getenv(
        "CACHE_NAMESPACE",
        "llm"
    ))

    # Global cache toggle
    enabled: bool = field(default_factory=lambda: os.getenv(
        "CACHE_ENABLED",
        "true"
    ).lower() == "true")

    # Redis connection
    redis_url: str = field(default_factory=lambda: os.getenv(
        "REDIS_URL",
        "redis://localhost:6379/0"
    ))
    redis_max_connections: int = 20
    redis_socket_timeout: float = 5.0
    redis_connect_timeout: float = 2.0

    # Circuit breaker (stop calling a dead Redis)
    circuit_breaker_enabled: bool = True
    circuit_breaker_threshold: int = 5
    circuit_breaker_timeout: int = 60


@lru_cache(maxsize=1)
def get_cache_config() -> CacheConfig:
    """Get cached cache configuration."""
    return CacheConfig()
