from __future__ import annotations

import time

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from aligned.cache.local_store import InMemoryLocalStore, RedisLocalStore, user_storage_key


class _DownRedis:
    """Stands in for a Redis client whose server is unreachable."""

    def get(self, key):
        raise RedisConnectionError("connection refused")

    def set(self, key, value, ex=None, nx=False):
        raise RedisConnectionError("connection refused")

    def delete(self, key):
        raise RedisConnectionError("connection refused")


class _RecordingRedis:
    def __init__(self) -> None:
        self.calls = []

    def set(self, key, value, ex=None, nx=False):
        self.calls.append((key, value, ex, nx))
        return True


def test_user_storage_key_scopes_per_user() -> None:
    assert user_storage_key("aligned_journal", "abc") == "aligned_journal_abc"
    assert user_storage_key("aligned_journal", None) == "aligned_journal"


def test_in_memory_set_get_delete() -> None:
    store = InMemoryLocalStore()

    assert store.get("missing") is None
    assert store.set("k", "v") is True
    assert store.get("k") == "v"
    assert store.delete("k") is True
    assert store.get("k") is None


def test_in_memory_ttl_expires(monkeypatch: pytest.MonkeyPatch) -> None:
    store = InMemoryLocalStore()
    now = time.monotonic()
    monkeypatch.setattr("aligned.cache.local_store.time.monotonic", lambda: now)
    store.set("k", "v", ttl=10)

    monkeypatch.setattr("aligned.cache.local_store.time.monotonic", lambda: now + 11)

    assert store.get("k") is None
    assert store.keys() == []


def test_set_if_absent_acts_as_lock(monkeypatch: pytest.MonkeyPatch) -> None:
    store = InMemoryLocalStore()
    now = time.monotonic()
    monkeypatch.setattr("aligned.cache.local_store.time.monotonic", lambda: now)

    assert store.set_if_absent("lock", "a", ttl=5) is True
    assert store.set_if_absent("lock", "b", ttl=5) is False
    assert store.get("lock") == "a"

    monkeypatch.setattr("aligned.cache.local_store.time.monotonic", lambda: now + 6)
    assert store.set_if_absent("lock", "b", ttl=5) is True


def test_redis_store_degrades_when_unreachable() -> None:
    store = RedisLocalStore(_DownRedis())

    assert store.get("k") is None
    assert store.set("k", "v") is False
    assert store.set_if_absent("k", "v") is False
    assert store.delete("k") is False


def test_redis_store_passes_ttl_and_nx() -> None:
    client = _RecordingRedis()
    store = RedisLocalStore(client)

    assert store.set("k", "v", ttl=30) is True
    assert store.set_if_absent("lock", "owner", ttl=60) is True
    assert client.calls == [("k", "v", 30, False), ("lock", "owner", 60, True)]
