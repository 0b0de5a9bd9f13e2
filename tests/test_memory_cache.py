"""Tests for the in-memory engine."""

import time

import pytest

from sentinel_cache.cache.base import EngineState
from sentinel_cache.cache.memory_cache import MemoryEngine
from sentinel_cache.core.exceptions import EngineNotReadyError


@pytest.fixture
def memory():
    engine = MemoryEngine()
    engine.init({"prefix": "app_", "duration": 60, "groups": ["posts"]})
    return engine


class TestMemoryEngine:
    def test_requires_init(self):
        with pytest.raises(EngineNotReadyError):
            MemoryEngine().get("key")

    def test_ttl_requires_init(self, memory):
        with pytest.raises(EngineNotReadyError):
            MemoryEngine().ttl("key")
        memory.close()
        with pytest.raises(EngineNotReadyError):
            memory.ttl("key")

    def test_set_get_delete(self, memory):
        assert memory.set("key", {"a": [1, None]}) is True
        assert memory.get("key") == {"a": [1, None]}
        assert memory.delete("key") is True
        assert memory.delete("key") is False
        assert memory.get("key", "fallback") == "fallback"

    def test_zero_ttl_has_no_expiry(self, memory):
        memory.set("forever", 1, ttl=0)
        memory.set("short", 1)
        assert memory.ttl("forever") is None
        assert 0 < memory.ttl("short") <= 60

    def test_expired_items_are_misses(self, memory, monkeypatch):
        memory.set("key", "value", ttl=1)
        later = time.time() + 5
        monkeypatch.setattr(time, "time", lambda: later)
        assert memory.get("key") is None

    def test_add(self, memory):
        assert memory.add("key", "first") is True
        assert memory.add("key", "second") is False
        assert memory.get("key") == "first"

    def test_counters(self, memory):
        assert memory.increment("hits") == 1
        assert memory.increment("hits", 4) == 5
        assert memory.decrement("hits", 2) == 3
        memory.set("name", "Alice")
        assert memory.increment("name") is False

    def test_clear(self, memory):
        memory.set("a", 1)
        assert memory.clear(check=True) is True
        assert memory.get("a") == 1
        assert memory.clear() is True
        assert memory.get("a") is None
        memory.set("b", 2)
        assert memory.clear_blocking() is True
        assert memory.get("b") is None

    def test_groups(self, memory):
        assert memory.groups() == ["posts1"]
        assert memory.clear_group("posts") is True
        assert memory.groups() == ["posts2"]

    def test_close(self, memory):
        memory.set("a", 1)
        memory.close()
        assert memory.state == EngineState.CLOSED
        assert memory.get_info()["total_keys"] == 0
