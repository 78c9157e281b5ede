"""Redis-backed read cache for rental queries.

Every worker process shares the same Redis, so a write in one worker
invalidates the reads of all of them. Keys carry a generation number that
``invalidate()`` bumps: a read that was loading while a write committed
stores its result under the old generation, where no later read looks.
"""

import logging
from typing import Any, Callable, Hashable, TypeVar

import redis
from pydantic import TypeAdapter

from app.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ReadCache:
    """TTL cache of pydantic-serializable values keyed by hashable tuples."""

    def __init__(
        self,
        redis_url: str | None,
        ttl_seconds: int,
        *,
        prefix: str = "rental",
        client: redis.Redis | None = None,
    ):
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix
        self._redis = client
        self._generation_key = f"{prefix}:generation"
        self._data_pattern = f"{prefix}:data:*"

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0 and (self._redis is not None or bool(self.redis_url))

    def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.Redis.from_url(
                self.redis_url,
                socket_connect_timeout=5,
                socket_timeout=5,
                health_check_interval=30,
            )
        return self._redis

    def _make_key(self, generation: int, key: Hashable) -> str:
        parts = key if isinstance(key, tuple) else (key,)
        return f"{self.prefix}:data:{generation}:" + ":".join(str(part) for part in parts)

    def _generation(self, client: redis.Redis) -> int:
        return int(client.get(self._generation_key) or 0)

    def get_or_load(self, key: Hashable, loader: Callable[[], T], adapter: TypeAdapter) -> T:
        """Return the cached value for ``key``, calling ``loader`` on a miss.

        ``adapter`` (de)serializes the value; Redis errors fall back to the loader.
        """
        if not self.enabled:
            return loader()

        try:
            client = self._get_redis()
            generation = self._generation(client)
            cache_key = self._make_key(generation, key)
            cached = client.get(cache_key)
        except redis.RedisError as e:
            logger.warning("Rental cache read failed, loading from database: %s", e)
            return loader()

        if cached is not None:
            return adapter.validate_json(cached)

        value = loader()
        try:
            # A write committed while loading: the value may predate it.
            if self._generation(client) == generation:
                client.setex(cache_key, self.ttl_seconds, adapter.dump_json(value))
        except redis.RedisError as e:
            logger.warning("Rental cache store failed: %s", e)
        return value

    def invalidate(self) -> None:
        """Start a new generation and drop the cached entries of older ones."""
        if not self.enabled:
            return
        try:
            client = self._get_redis()
            client.incr(self._generation_key)
            keys: list[Any] = list(client.scan_iter(match=self._data_pattern))
            if keys:
                client.delete(*keys)
                logger.debug("Invalidated %d cached rental entries", len(keys))
        except redis.RedisError as e:
            # Entries of the old generation then live until their TTL runs out.
            logger.error("Rental cache invalidation failed: %s", e)


rental_cache = ReadCache(settings.redis_url, settings.rental_cache_ttl_seconds)
