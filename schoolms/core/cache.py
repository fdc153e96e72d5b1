# schoolms/core/cache.py
"""Redis caching implementation."""
import functools
import hashlib
import logging
import pickle
from typing import Any, Awaitable, Callable, Optional, Union
from datetime import timedelta
import redis.asyncio as redis
from .config import settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "schoolms"


class CacheManager:
    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.redis_url
        self.redis: Optional[redis.Redis] = None

    async def connect(self):
        """Initialize Redis connection."""
        if not self.redis:
            self.redis = redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=False
            )

    async def disconnect(self):
        """Close Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None

    @staticmethod
    def make_key(*parts: Any) -> str:
        return ":".join([KEY_PREFIX, *[str(p) for p in parts]])

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache."""
        if not self.redis:
            await self.connect()

        try:
            value = await self.redis.get(key)
            if value is not None:
                return pickle.loads(value)
        except Exception as e:
            logger.warning(f"Cache get failed for {key}: {e}")
        return None

    async def set(
        self,
        key: str,
        value: Any,
        expire: Optional[Union[int, timedelta]] = None
    ) -> bool:
        """Set value in cache."""
        if not self.redis:
            await self.connect()

        try:
            serialized = pickle.dumps(value)
            if expire:
                if isinstance(expire, timedelta):
                    expire = int(expire.total_seconds())
                return bool(await self.redis.setex(key, expire, serialized))
            return bool(await self.redis.set(key, serialized))
        except Exception as e:
            logger.warning(f"Cache set failed for {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        """Delete key from cache."""
        if not self.redis:
            await self.connect()

        try:
            return bool(await self.redis.delete(key))
        except Exception as e:
            logger.warning(f"Cache delete failed for {key}: {e}")
            return False

    async def exists(self, key: str) -> bool:
        """Check if key exists in cache."""
        if not self.redis:
            await self.connect()

        try:
            return bool(await self.redis.exists(key))
        except Exception as e:
            logger.warning(f"Cache exists failed for {key}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern, returns the count removed."""
        if not self.redis:
            await self.connect()

        deleted = 0
        try:
            async for key in self.redis.scan_iter(match=pattern):
                deleted += await self.redis.delete(key)
        except Exception as e:
            logger.warning(f"Cache pattern delete failed for {pattern}: {e}")
        return deleted

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        expire: Optional[Union[int, timedelta]] = None
    ) -> Any:
        """Cache-aside read: return the cached value or compute, store and return it."""
        cached_value = await self.get(key)
        if cached_value is not None:
            return cached_value

        value = await factory()
        if value is not None:
            await self.set(key, value, expire or settings.cache_ttl_seconds)
        return value

    async def ping(self) -> bool:
        if not self.redis:
            await self.connect()
        try:
            return bool(await self.redis.ping())
        except Exception as e:
            logger.warning(f"Cache ping failed: {e}")
            return False


# Global cache instance
cache = CacheManager()


async def get_cache() -> CacheManager:
    """Dependency to get cache instance."""
    return cache


def cache_key_generator(prefix: str, *args, **kwargs) -> str:
    """Generate cache key from function arguments."""
    key_data = f"{args}:{sorted(kwargs.items())}"
    return CacheManager.make_key(prefix, hashlib.md5(key_data.encode()).hexdigest())


def cached(
    prefix: str,
    expire: Optional[Union[int, timedelta]] = None,
):
    """Cache decorator for service methods; keyed on the method name and its arguments, not on self."""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            cache_key = cache_key_generator(f"{prefix}:{func.__qualname__}", *args, **kwargs)
            return await cache.get_or_set(cache_key, lambda: func(self, *args, **kwargs), expire)

        return wrapper
    return decorator


async def invalidate_prefix(prefix: str) -> int:
    return await cache.delete_pattern(CacheManager.make_key(prefix, "*"))
