"""Result cache.

Analysis results are memoised under ``analysis:{prefix}:{md5(params)}``.
Two backends are provided: a process-local TTL map and Redis.  Values are
serialised with orjson.  A cache failure is logged and treated as a miss;
the computation itself never depends on the cache.
"""
from __future__ import annotations

import hashlib
import logging
import threading
import time
from datetime import date, datetime
from typing import Any, Dict, Optional, Protocol, Tuple

import orjson
import redis

from .config import Settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "analysis"
_DUMP_OPTIONS = orjson.OPT_SERIALIZE_NUMPY | orjson.OPT_NON_STR_KEYS


def _default(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if hasattr(obj, "item"):
        return obj.item()
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def dumps(value: Any) -> bytes:
    return orjson.dumps(value, default=_default, option=_DUMP_OPTIONS)


def make_cache_key(prefix: str, params: Dict[str, Any]) -> str:
    """Return a stable key for ``params`` (key order does not matter)."""

    payload = orjson.dumps(params, default=_default, option=_DUMP_OPTIONS | orjson.OPT_SORT_KEYS)
    return f"{KEY_PREFIX}:{prefix}:{hashlib.md5(payload).hexdigest()}"


class ResultCache(Protocol):
    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        ...


class MemoryCache:
    """Thread-safe in-process cache with per-entry expiry."""

    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._data: Dict[str, Tuple[float, bytes]] = {}

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            expires, payload = entry
            if expires <= self._clock():
                del self._data[key]
                return None
        return orjson.loads(payload)

    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        payload = dumps(value)
        with self._lock:
            self._data[key] = (self._clock() + ttl_seconds, payload)
        return True

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


class RedisCache:
    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCache":
        return cls(redis.Redis.from_url(url, decode_responses=False))

    def get(self, key: str) -> Optional[Any]:
        try:
            data = self._client.get(key)
        except redis.RedisError as e:
            logger.warning("Redis GET error: %s", e)
            return None
        if data is None:
            return None
        try:
            return orjson.loads(data)
        except orjson.JSONDecodeError as e:
            logger.warning("Discarding undecodable cache entry %s: %s", key, e)
            return None

    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        try:
            self._client.setex(key, ttl_seconds, dumps(value))
            return True
        except redis.RedisError as e:
            logger.warning("Redis SET error: %s", e)
            return False


def build_cache(settings: Settings) -> ResultCache:
    """Return a Redis cache when ``CACHE_URL`` is set, else an in-memory one."""

    if settings.cache_url:
        logger.info("Using Redis result cache at %s", settings.cache_url)
        return RedisCache.from_url(settings.cache_url)
    return MemoryCache()


__all__ = [
    "KEY_PREFIX",
    "dumps",
    "make_cache_key",
    "ResultCache",
    "MemoryCache",
    "RedisCache",
    "build_cache",
]
