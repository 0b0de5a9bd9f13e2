"""Shared fixtures and a FakeRedis stub for the cache engine tests."""

import fnmatch
from typing import Dict, List, Optional, Tuple, Union

import pytest
from redis.exceptions import ResponseError

from sentinel_cache.cache.redis_cache import RedisEngine

KeyT = Union[str, bytes]


def _key(key: KeyT) -> str:
    return key.decode() if isinstance(key, bytes) else key


def _value(value) -> bytes:
    return value if isinstance(value, bytes) else str(value).encode()


class FakeRedis:
    """Minimal in-memory stub matching the sync redis.Redis interface."""

    def __init__(self) -> None:
        self._store: Dict[str, bytes] = {}
        self._expiry: Dict[str, int] = {}
        self._scan_snapshot: List[str] = []
        self.closed = False
        self.commands: List[str] = []

    def ping(self) -> bool:
        return True

    def get(self, key: KeyT) -> Optional[bytes]:
        self.commands.append("get")
        return self._store.get(_key(key))

    def set(self, key: KeyT, value, ex: Optional[int] = None, nx: bool = False) -> Optional[bool]:
        self.commands.append("set")
        key = _key(key)
        if nx and key in self._store:
            return None
        self._store[key] = _value(value)
        self._expiry.pop(key, None)
        if ex is not None:
            self._expiry[key] = ex
        return True

    def setex(self, key: KeyT, time: int, value) -> bool:
        self.commands.append("setex")
        return bool(self.set(key, value, ex=time))

    def incrby(self, key: KeyT, amount: int = 1) -> int:
        self.commands.append("incrby")
        key = _key(key)
        try:
            value = int(self._store.get(key, b"0")) + amount
        except ValueError:
            raise ResponseError("value is not an integer or out of range")
        self._store[key] = str(value).encode()
        return value

    def incr(self, key: KeyT, amount: int = 1) -> int:
        return self.incrby(key, amount)

    def decrby(self, key: KeyT, amount: int = 1) -> int:
        self.commands.append("decrby")
        return self.incrby(key, -amount)

    def expire(self, key: KeyT, time: int) -> bool:
        self.commands.append("expire")
        key = _key(key)
        if key not in self._store:
            return False
        self._expiry[key] = time
        return True

    def ttl(self, key: KeyT) -> int:
        key = _key(key)
        if key not in self._store:
            return -2
        return self._expiry.get(key, -1)

    def delete(self, *keys: KeyT) -> int:
        self.commands.append("delete")
        count = 0
        for key in map(_key, keys):
            if key in self._store:
                del self._store[key]
                self._expiry.pop(key, None)
                count += 1
        return count

    def unlink(self, *keys: KeyT) -> int:
        self.commands.append("unlink")
        count = 0
        for key in map(_key, keys):
            if key in self._store:
                del self._store[key]
                self._expiry.pop(key, None)
                count += 1
        return count

    def keys(self, pattern: str = "*") -> List[bytes]:
        self.commands.append("keys")
        return [k.encode() for k in sorted(self._store) if fnmatch.fnmatchcase(k, pattern)]

    def scan(self, cursor: int = 0, match: Optional[str] = None, count: Optional[int] = None) -> Tuple[int, List[bytes]]:
        self.commands.append("scan")
        # Keys present when the scan started are all returned, even if others are deleted meanwhile
        if cursor == 0:
            self._scan_snapshot = sorted(self._store)
        names = self._scan_snapshot
        count = count or 10
        batch = [k for k in names[cursor:cursor + count] if k in self._store]
        next_cursor = cursor + count if cursor + count < len(names) else 0
        return next_cursor, [k.encode() for k in batch if fnmatch.fnmatchcase(k, match or "*")]

    def info(self, *args, **kwargs) -> dict:
        return {"redis_version": "7.2.0", "redis_mode": "standalone", "role": "master", "db0": {"keys": len(self._store)}}

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def engine(fake_redis):
    engine = RedisEngine(connector=lambda plan: fake_redis)
    engine.init({
        "server": "localhost",
        "prefix": "app_",
        "duration": 3600,
        "groups": ["posts", "users"],
    })
    return engine
