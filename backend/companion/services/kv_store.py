"""Durable key-value persistence for learning counters and trigger cooldowns."""

import json
import logging
from typing import Any, Protocol

import redis

from companion.config import settings

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """get/set/delete over JSON-serializable values. Missing keys return None."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> bool: ...

    def delete(self, key: str) -> bool: ...


class InMemoryKeyValueStore:
    """Process-local store used in tests and when Redis is not configured."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> bool:
        self._data[key] = json.dumps(value, default=str)
        return True

    def delete(self, key: str) -> bool:
        self._data.pop(key, None)
        return True

    def keys(self) -> list[str]:
        return list(self._data)


class RedisKeyValueStore:
    """Redis-backed store. Connection and command errors are logged, never raised."""

    def __init__(self, url: str | None = None):
        self._url = url or settings.redis_url
        self._redis: redis.Redis | None = None

    def _get_redis(self) -> redis.Redis | None:
        if self._redis is None:
            try:
                self._redis = redis.Redis.from_url(
                    self._url,
                    encoding="utf-8",
                    decode_responses=True,
                )
                self._redis.ping()
            except Exception as e:
                logger.warning(f"Redis unavailable, learning persistence disabled: {e}")
                self._redis = None
                return None
        return self._redis

    def get(self, key: str) -> Any | None:
        """Get a value. Returns None on miss or error."""
        try:
            r = self._get_redis()
            if r is None:
                return None
            raw = r.get(key)
            if raw is None:
                return None
            return json.loads(raw)
        except Exception as e:
            logger.warning(f"Redis read failed for {key}: {e}")
            return None

    def set(self, key: str, value: Any) -> bool:
        """Persist a value without expiry. Returns False on error."""
        try:
            r = self._get_redis()
            if r is None:
                return False
            r.set(key, json.dumps(value, default=str))
            return True
        except Exception as e:
            logger.warning(f"Redis write failed for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        try:
            r = self._get_redis()
            if r is None:
                return False
            r.delete(key)
            return True
        except Exception as e:
            logger.warning(f"Redis delete failed for {key}: {e}")
            return False

    def close(self):
        if self._redis:
            self._redis.close()
            self._redis = None


def create_key_value_store(backend: str | None = None) -> KeyValueStore:
    backend = (backend or settings.learning_store_backend).lower()
    if backend == "redis":
        return RedisKeyValueStore()
    return InMemoryKeyValueStore()
