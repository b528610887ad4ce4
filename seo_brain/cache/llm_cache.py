"""
LLM Response Cache

Content-addressed Redis cache in front of LLM and image generation calls:
- Keys derived from (service, prompt, options), namespaced by service
- Per-service TTLs (text 24h, translations 7d, image URLs 30d)
- Circuit breaker for resilience
- Graceful degradation: an unreachable Redis behaves as an always-miss cache
"""

import asyncio
import hashlib
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from seo_brain.cache.config import CacheConfig, CacheTTL, get_cache_config


logger = logging.getLogger(__name__)


def make_cache_key(
    service: str,
    prompt: str,
    options: Optional[Dict[str, Any]] = None,
    namespace: str = "llm",
) -> str:
    """
    Derive the cache key for a (service, prompt, options) triple.

    Options are serialized with sorted keys so dict ordering never changes
    the key, while any difference in option values does.
    """
    options_str = (
        json.dumps(options, sort_keys=True, separators=(",", ":"), default=str)
        if options else ""
    )
    digest = hashlib.sha256(f"{prompt}\x00{options_str}".encode("utf-8")).hexdigest()
    return f"{namespace}:{service}:{digest}"


@dataclass
class CacheStats:
    """Cache operation statistics."""
    hits: int = 0
    misses: int = 0
    writes: int = 0
    errors: int = 0
    latency_samples: List[float] = field(default_factory=list)

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    @property
    def avg_latency_ms(self) -> float:
        if not self.latency_samples:
            return 0.0
        recent = self.latency_samples[-100:]
        return sum(recent) / len(recent) * 1000

    def record_latency(self, seconds: float):
        self.latency_samples.append(seconds)
        if len(self.latency_samples) > 1000:
            self.latency_samples = self.latency_samples[-1000:]


class CircuitBreaker:
    """
    Fails fast after `threshold` consecutive Redis failures, then lets
    a request through again once `timeout` seconds have passed.
    """

    def __init__(self, threshold: int = 5, timeout: int = 60):
        self.threshold = threshold
        self.timeout = timeout
        self.failures = 0
        self.is_open = False
        self.opened_at = 0.0
        self._lock = asyncio.Lock()

    async def is_available(self) -> bool:
        if not self.is_open:
            return True

        if time.time() - self.opened_at >= self.timeout:
            async with self._lock:
                self.is_open = False
                self.failures = 0
                logger.info("Cache circuit breaker closed, allowing requests")
            return True

        return False

    async def record_success(self):
        async with self._lock:
            self.failures = 0
            self.is_open = False

    async def record_failure(self):
        async with self._lock:
            self.failures += 1
            if self.failures >= self.threshold and not self.is_open:
                self.is_open = True
                self.opened_at = time.time()
                logger.warning(
                    f"Cache circuit breaker opened after {self.failures} failures. "
                    f"Will retry in {self.timeout} seconds."
                )


class LLMCache:
    """
    Redis-backed cache for generated text and image URLs.

    Constructed explicitly and passed to the components that need it.
    Every public operation swallows backend errors: `get` degrades to a
    miss, `set` to a no-op, `invalidate` to 0.
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        redis: Optional[Redis] = None,
    ):
        self.config = config or get_cache_config()
        self._pool: Optional[ConnectionPool] = None
        self._redis: Optional[Redis] = redis
        self._initialized = redis is not None
        self._circuit_breaker = CircuitBreaker(
            threshold=self.config.circuit_breaker_threshold,
            timeout=self.config.circuit_breaker_timeout,
        ) if self.config.circuit_breaker_enabled else None
        self._stats = CacheStats()
        self._lock = asyncio.Lock()

    async def initialize(self):
        """Open the Redis connection pool. Raises if Redis is unreachable."""
        if self._initialized:
            return

        async with self._lock:
            if self._initialized:
                return

            self._pool = ConnectionPool.from_url(
                self.config.redis_url,
                max_connections=self.config.redis_max_connections,
                socket_timeout=self.config.redis_socket_timeout,
                socket_connect_timeout=self.config.redis_connect_timeout,
                decode_responses=True,
            )
            self._redis = Redis(connection_pool=self._pool)
            await self._redis.ping()
            self._initialized = True
            logger.info(f"LLM cache connected: {self.config.redis_url}")

    async def close(self):
        """Close the Redis connection pool."""
        if self._redis is not None:
            await self._redis.aclose()
        if self._pool is not None:
            await self._pool.disconnect()
        self._redis = None
        self._pool = None
        self._initialized = False

    async def _available(self) -> bool:
        """True when the cache is enabled and Redis can be reached."""
        if not self.config.enabled:
            return False

        if self._circuit_breaker and not await self._circuit_breaker.is_available():
            return False

        if self._initialized:
            return True

        try:
            await self.initialize()
            return True
        except (RedisError, OSError) as e:
            self._stats.errors += 1
            logger.warning(f"Redis unavailable, cache disabled for this call: {e}")
            await self._record_failure()
            return False

    async def _record_failure(self):
        if self._circuit_breaker:
            await self._circuit_breaker.record_failure()

    async def _record_success(self):
        if self._circuit_breaker:
            await self._circuit_breaker.record_success()

    def key_for(
        self,
        service: str,
        prompt: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> str:
        return make_cache_key(service, prompt, options, namespace=self.config.namespace)

    # =========================================================================
    # Core Operations
    # =========================================================================

    async def get(
        self,
        service: str,
        prompt: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> Optional[Any]:
        """Get a cached value. Returns None on miss or when Redis is unavailable."""
        if not await self._available():
            return None

        key = self.key_for(service, prompt, options)
        start_time = time.time()

        try:
            data = await self._redis.get(key)
            self._stats.record_latency(time.time() - start_time)
            await self._record_success()

            if data is None:
                self._stats.misses += 1
                logger.debug(f"Cache MISS: {service}")
                return None

            self._stats.hits += 1
            logger.debug(f"Cache HIT: {service}")
            return json.loads(data)

        except Exception as e:
            self._stats.errors += 1
            await self._record_failure()
            logger.warning(f"Cache get error for {service}: {e}")
            return None

    async def set(
        self,
        service: str,
        prompt: str,
        value: Any,
        ttl_seconds: Optional[Union[int, timedelta]] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Store a value. Returns False (without raising) on failure."""
        if not await self._available():
            return False

        key = self.key_for(service, prompt, options)
        if ttl_seconds is None:
            ttl_seconds = CacheTTL.for_service(service)

        try:
            await self._redis.setex(key, ttl_seconds, json.dumps(value))
            self._stats.writes += 1
            await self._record_success()
            logger.debug(f"Cache SET: {service} (TTL: {ttl_seconds})")
            return True

        except Exception as e:
            self._stats.errors += 1
            await self._record_failure()
            logger.warning(f"Cache set error for {service}: {e}")
            return False

    async def invalidate(self, pattern: str) -> int:
        """Delete all keys matching a glob pattern. Returns count deleted."""
        if not await self._available():
            return 0

        try:
            keys = [key async for key in self._redis.scan_iter(match=pattern, count=100)]
            if not keys:
                return 0

            deleted = await self._redis.delete(*keys)
            logger.info(f"Invalidated {deleted} cache keys matching {pattern}")
            return deleted

        except Exception as e:
            self._stats.errors += 1
            await self._record_failure()
            logger.warning(f"Cache invalidate error for {pattern}: {e}")
            return 0

    async def invalidate_service(self, service: str) -> int:
        """Evict every entry cached for one service."""
        return await self.invalidate(f"{self.config.namespace}:{service}:*")

    # =========================================================================
    # Read-through helpers
    # =========================================================================

    async def cached_text(
        self,
        prompt: str,
        options: Optional[Dict[str, Any]],
        generator: Callable[[], Awaitable[str]],
        service: str = "claude",
        ttl_seconds: Optional[Union[int, timedelta]] = None,
    ) -> str:
        """Return cached text for the prompt, or generate and cache it."""
        cached = await self.get(service, prompt, options)
        if cached is not None:
            return cached

        text = await generator()
        await self.set(
            service, prompt, text,
            ttl_seconds=ttl_seconds or CacheTTL.TEXT_GENERATION,
            options=options,
        )
        return text

    async def cached_image_url(
        self,
        prompt: str,
        options: Optional[Dict[str, Any]],
        generator: Callable[[], Awaitable[str]],
        ttl_seconds: Optional[Union[int, timedelta]] = None,
    ) -> str:
        """Return a cached image URL for the prompt, or generate and cache it."""
        cached = await self.get("image", prompt, options)
        if cached is not None:
            return cached

        image_url = await generator()
        await self.set(
            "image", prompt, image_url,
            ttl_seconds=ttl_seconds or CacheTTL.IMAGE_URL,
            options=options,
        )
        return image_url

    # =========================================================================
    # Statistics and Health
    # =========================================================================

    def get_stats(self) -> Dict[str, Any]:
        return {
            "enabled": self.config.enabled,
            "initialized": self._initialized,
            "hits": self._stats.hits,
            "misses": self._stats.misses,
            "writes": self._stats.writes,
            "errors": self._stats.errors,
            "hit_rate_percent": round(self._stats.hit_rate * 100, 2),
            "avg_latency_ms": round(self._stats.avg_latency_ms, 2),
            "circuit_breaker_open": (
                self._circuit_breaker.is_open if self._circuit_breaker else False
            ),
        }

    async def health_check(self) -> Dict[str, Any]:
        if not self.config.enabled:
            return {"healthy": True, "status": "disabled"}

        if not await self._available():
            return {"healthy": False, "status": "unavailable", "stats": self.get_stats()}

        try:
            start = time.time()
            await self._redis.ping()
            return {
                "healthy": True,
                "status": "connected",
                "latency_ms": round((time.time() - start) * 1000, 2),
                "stats": self.get_stats(),
            }
        except Exception as e:
            return {"healthy": False, "status": "error", "error": str(e)}


class NullCache(LLMCache):
    """Always-miss cache. Every read misses and every write is dropped."""

    def __init__(self):
        super().__init__(config=CacheConfig(enabled=False, circuit_breaker_enabled=False))
