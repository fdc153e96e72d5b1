import pytest

from schoolms.core.cache import CacheManager, cache, cached, cache_key_generator


class BrokenRedis:
    async def get(self, key):
        raise ConnectionError("redis is down")

    async def set(self, key, value):
        raise ConnectionError("redis is down")

    async def setex(self, key, ttl, value):
        raise ConnectionError("redis is down")

    async def delete(self, *keys):
        raise ConnectionError("redis is down")


def test_make_key():
    assert CacheManager.make_key("rooms", "id", 1) == "schoolms:rooms:id:1"


def test_key_generator_is_stable_per_arguments():
    assert cache_key_generator("rooms", 1, a=2) == cache_key_generator("rooms", 1, a=2)
    assert cache_key_generator("rooms", 1) != cache_key_generator("rooms", 2)


async def test_get_or_set_calls_factory_once_until_deleted():
    calls = 0

    async def factory():
        nonlocal calls
        calls += 1
        return {"value": calls}

    key = cache.make_key("test", "value")
    assert await cache.get_or_set(key, factory) == {"value": 1}
    assert await cache.get_or_set(key, factory) == {"value": 1}
    assert calls == 1

    await cache.delete(key)
    assert await cache.get_or_set(key, factory) == {"value": 2}
    assert calls == 2


async def test_none_is_not_cached():
    calls = 0

    async def factory():
        nonlocal calls
        calls += 1
        return None

    key = cache.make_key("test", "missing")
    await cache.get_or_set(key, factory)
    await cache.get_or_set(key, factory)

    assert calls == 2
    assert not await cache.exists(key)


async def test_delete_pattern_only_removes_matching_keys():
    await cache.set("schoolms:rooms:list:1", [1])
    await cache.set("schoolms:rooms:id:2", {"id": 2})
    await cache.set("schoolms:session:3", {"id": 3})

    removed = await cache.delete_pattern("schoolms:rooms:*")

    assert removed == 2
    assert await cache.get("schoolms:session:3") == {"id": 3}


async def test_backend_errors_degrade_to_misses():
    manager = CacheManager()
    manager.redis = BrokenRedis()

    async def factory():
        return "fresh"

    assert await manager.get("k") is None
    assert await manager.set("k", "v", 10) is False
    assert await manager.delete("k") is False
    assert await manager.get_or_set("k", factory) == "fresh"


class Counter:
    def __init__(self):
        self.calls = 0

    @cached("counter")
    async def lookup(self, value):
        self.calls += 1
        return {"value": value}

    @cached("counter")
    async def describe(self, value):
        return {"described": value}


async def test_cached_decorator_keys_on_arguments():
    counter = Counter()

    assert await counter.lookup(1) == {"value": 1}
    assert await counter.lookup(1) == {"value": 1}
    assert counter.calls == 1

    await counter.lookup(2)
    assert counter.calls == 2


async def test_cached_methods_sharing_a_prefix_keep_separate_entries(fake_redis):
    counter = Counter()

    assert await counter.lookup(1) == {"value": 1}
    assert await counter.describe(1) == {"described": 1}
    assert await counter.lookup(1) == {"value": 1}
    assert counter.calls == 1
    assert sorted(k.split(":")[2] for k in fake_redis.store) == ["Counter.describe", "Counter.lookup"]


@pytest.mark.parametrize("ttl", [30, None])
async def test_set_honours_expiry(ttl, fake_redis):
    assert await cache.set("schoolms:ttl", "v", ttl) is True
    assert await cache.get("schoolms:ttl") == "v"
