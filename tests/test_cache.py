from datetime import date

import redis

from seasonality_engine.cache import MemoryCache, RedisCache, build_cache, make_cache_key
from seasonality_engine.config import Settings


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class _DictRedis:
    def __init__(self) -> None:
        self.data = {}
        self.ttls = {}

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl


class _BrokenRedis:
    def get(self, key):
        raise redis.ConnectionError("down")

    def setex(self, key, ttl, value):
        raise redis.ConnectionError("down")


def test_cache_key_is_order_independent():
    a = make_cache_key("daily", {"symbol": "TEST", "start_date": date(2024, 1, 1)})
    b = make_cache_key("daily", {"start_date": date(2024, 1, 1), "symbol": "TEST"})
    assert a == b
    assert a.startswith("analysis:daily:")
    assert len(a.rsplit(":", 1)[1]) == 32
    assert make_cache_key("weekly", {"symbol": "TEST"}) != make_cache_key("daily", {"symbol": "TEST"})


def test_memory_cache_expiry():
    clock = _Clock()
    cache = MemoryCache(clock=clock)
    assert cache.set("k", {"years": {2024: [1, 2]}}, ttl_seconds=10)
    assert cache.get("k") == {"years": {"2024": [1, 2]}}
    clock.now = 10.0
    assert cache.get("k") is None
    assert cache.get("missing") is None


def test_redis_cache_round_trip():
    client = _DictRedis()
    cache = RedisCache(client)
    assert cache.set("k", {"value": 1.5}, ttl_seconds=60)
    assert client.ttls["k"] == 60
    assert cache.get("k") == {"value": 1.5}
    client.data["bad"] = b"{not json"
    assert cache.get("bad") is None


def test_redis_errors_are_misses():
    cache = RedisCache(_BrokenRedis())
    assert cache.get("k") is None
    assert cache.set("k", {"value": 1}, ttl_seconds=60) is False


def test_build_cache_defaults_to_memory():
    assert isinstance(build_cache(Settings()), MemoryCache)
