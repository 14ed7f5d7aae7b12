"""
Fast local key/value tier.

Holds per-user plan caches, migration flags and the legacy single-tier blobs
written by older clients. Every operation degrades gracefully: a failed read
behaves like a miss and a failed write returns ``False``, because the durable
tier always holds the canonical copy.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Dict, Optional, Protocol, Tuple

import redis
from redis.exceptions import RedisError

from aligned.core.config import settings

logger = logging.getLogger(__name__)


def user_storage_key(base_key: str, user_id: object) -> str:
    """Scope ``base_key`` to one user, e.g. ``aligned_journal_<uuid>``."""
    if not user_id:
        return base_key
    return f"{base_key}_{user_id}"


class LocalStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool: ...

    def set_if_absent(self, key: str, value: str, ttl: Optional[int] = None) -> bool: ...

    def delete(self, key: str) -> bool: ...


class RedisLocalStore:
    """Local tier backed by Redis."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisLocalStore":
        client = redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        return cls(client)

    def get(self, key: str) -> Optional[str]:
        try:
            return self._client.get(key)
        except RedisError as exc:
            logger.warning("Local tier read failed for %s: %s", key, exc)
            return None

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        try:
            return bool(self._client.set(key, value, ex=ttl))
        except RedisError as exc:
            # OOM (maxmemory) surfaces here as a ResponseError.
            logger.warning("Local tier write failed for %s: %s", key, exc)
            return False

    def set_if_absent(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        try:
            return bool(self._client.set(key, value, ex=ttl, nx=True))
        except RedisError as exc:
            logger.warning("Local tier conditional write failed for %s: %s", key, exc)
            return False

    def delete(self, key: str) -> bool:
        try:
            self._client.delete(key)
            return True
        except RedisError as exc:
            logger.warning("Local tier delete failed for %s: %s", key, exc)
            return False


class InMemoryLocalStore:
    """Process-local tier for development and tests. Thread-safe; honours TTLs."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: Dict[str, Tuple[str, Optional[float]]] = {}

    def _live(self, key: str) -> Optional[str]:
        item = self._items.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and expires_at <= time.monotonic():
            del self._items[key]
            return None
        return value

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._live(key)

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        expires_at = time.monotonic() + ttl if ttl else None
        with self._lock:
            self._items[key] = (value, expires_at)
        return True

    def set_if_absent(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        expires_at = time.monotonic() + ttl if ttl else None
        with self._lock:
            if self._live(key) is not None:
                return False
            self._items[key] = (value, expires_at)
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            self._items.pop(key, None)
        return True

    def keys(self) -> list[str]:
        with self._lock:
            return [key for key in list(self._items) if self._live(key) is not None]


_default_store: Optional[LocalStore] = None
_default_lock = threading.Lock()


def get_local_store() -> LocalStore:
    """Return the process-wide local tier (Redis when ``REDIS_URL`` is set)."""
    global _default_store
    with _default_lock:
        if _default_store is None:
            if settings.redis_url:
                _default_store = RedisLocalStore.from_url(settings.redis_url)
                logger.info("Local tier backed by Redis")
            else:
                _default_store = InMemoryLocalStore()
                logger.info("REDIS_URL not set; local tier is in-process")
        return _default_store
