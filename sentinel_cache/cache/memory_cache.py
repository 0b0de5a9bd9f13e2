"""
In-memory cache engine for development/testing and as a fallback when
redis is unavailable
"""
import fnmatch
import threading
import time
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from sentinel_cache.cache.base import TTL, CacheEngine, EngineState
from sentinel_cache.cache.codec import decode, encode
from sentinel_cache.core.config import EngineConfig
from sentinel_cache.core.logging_config import get_logger

Item = Tuple[bytes, Optional[float]]


class MemoryEngine(CacheEngine):
    """In-memory cache engine with TTL support

    Values are stored encoded, so counters and group versions behave the
    same way they do on redis.
    """

    def __init__(self):
        super().__init__()
        self.logger = get_logger("sentinel_cache.cache.memory")
        self._cache: Dict[str, Item] = {}
        self._lock = threading.Lock()

    def init(self, config: Union[EngineConfig, Mapping[str, Any], None] = None) -> bool:
        self.config = self._configure(config)
        self.state = EngineState.READY
        self.logger.info("Memory cache initialized")
        return True

    def _live(self, key: str) -> Optional[bytes]:
        item = self._cache.get(key)
        if item is None:
            return None
        data, expires_at = item
        if expires_at is not None and time.time() > expires_at:
            del self._cache[key]
            return None
        return data

    def _store(self, key: str, data: bytes, duration: int):
        expires_at = time.time() + duration if duration > 0 else None
        self._cache[key] = (data, expires_at)

    def _cleanup_expired(self):
        """Remove expired items"""
        current_time = time.time()
        expired_keys = [
            key for key, (_, expires_at) in self._cache.items()
            if expires_at is not None and current_time > expires_at
        ]
        for key in expired_keys:
            del self._cache[key]

    def ttl(self, key: str) -> Optional[int]:
        """Remaining seconds for a key, None when it has no expiry or is missing"""
        self._ensure_ready()
        key = self.prefixed_key(key)
        with self._lock:
            if self._live(key) is None:
                return None
            expires_at = self._cache[key][1]
            return None if expires_at is None else max(0, int(expires_at - time.time()))

    def set(self, key: str, value: Any, ttl: TTL = None) -> bool:
        self._ensure_ready()
        key = self.prefixed_key(key)
        duration = self.duration(ttl)
        with self._lock:
            self._store(key, encode(value), duration)
        return True

    def get(self, key: str, default: Any = None) -> Any:
        self._ensure_ready()
        key = self.prefixed_key(key)
        with self._lock:
            data = self._live(key)
        if data is None:
            return default
        return decode(data)

    def _counter(self, key: str, offset: int) -> Union[int, bool]:
        self._ensure_ready()
        key = self.prefixed_key(key)
        with self._lock:
            data = self._live(key)
            current = 0 if data is None else decode(data)
            if not isinstance(current, int) or isinstance(current, bool):
                self.logger.error(f"Value at key '{key}' is not an integer")
                return False
            value = current + offset
            if self.config.duration > 0 or data is None:
                self._store(key, encode(value), self.config.duration)
            else:
                self._cache[key] = (encode(value), self._cache[key][1])
            return value

    def increment(self, key: str, offset: int = 1) -> Union[int, bool]:
        return self._counter(key, offset)

    def decrement(self, key: str, offset: int = 1) -> Union[int, bool]:
        return self._counter(key, -offset)

    def add(self, key: str, value: Any, ttl: TTL = None) -> bool:
        self._ensure_ready()
        key = self.prefixed_key(key)
        duration = self.duration(ttl)
        with self._lock:
            if self._live(key) is not None:
                return False
            self._store(key, encode(value), duration)
            return True

    def delete(self, key: str) -> bool:
        self._ensure_ready()
        key = self.prefixed_key(key)
        with self._lock:
            if self._live(key) is None:
                return False
            del self._cache[key]
            return True

    def delete_async(self, key: str) -> bool:
        return self.delete(key)

    def clear(self, check: bool = False) -> bool:
        self._ensure_ready()
        if check:
            return True
        pattern = self.config.prefix + "*"
        with self._lock:
            self._cleanup_expired()
            for key in [k for k in self._cache if fnmatch.fnmatchcase(k, pattern)]:
                del self._cache[key]
        return True

    def clear_blocking(self) -> bool:
        return self.clear(False)

    def groups(self) -> List[str]:
        self._ensure_ready()
        result = []
        with self._lock:
            for group in self.config.groups:
                key = self.config.prefix + group
                data = self._live(key)
                if data is None:
                    data = encode(1)
                    self._store(key, data, 0)
                result.append(f"{group}{decode(data)}")
        return result

    def clear_group(self, group: str) -> bool:
        self._ensure_ready()
        key = self.config.prefix + group
        with self._lock:
            data = self._live(key)
            current = 0 if data is None else decode(data)
            if not isinstance(current, int) or isinstance(current, bool):
                return False
            self._store(key, encode(current + 1), 0)
        return True

    def health_check(self) -> Dict[str, Any]:
        """Check memory cache health and return status"""
        with self._lock:
            self._cleanup_expired()
            total_keys = len(self._cache)
        return {
            "status": "healthy" if self.state == EngineState.READY else "unhealthy",
            "backend": "memory",
            "total_keys": total_keys,
            "timestamp": time.time()
        }

    def get_info(self) -> Dict[str, Any]:
        """Get memory cache backend information"""
        with self._lock:
            self._cleanup_expired()
            total_keys = len(self._cache)
            total_size = sum(len(data) for data, _ in self._cache.values())

        return {
            "backend": "memory",
            "state": self.state.value,
            "prefix": self.config.prefix,
            "default_duration": self.config.duration,
            "groups": list(self.config.groups),
            "total_keys": total_keys,
            "estimated_size_bytes": total_size,
        }

    def close(self):
        with self._lock:
            self._cache.clear()
        self.state = EngineState.CLOSED
        self.logger.info("Memory cache closed")
