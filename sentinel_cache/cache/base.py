"""
Base cache engine interface
"""
import re
from abc import ABC, abstractmethod
from datetime import timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Union

from sentinel_cache.core.config import EngineConfig
from sentinel_cache.core.exceptions import EngineNotReadyError, InvalidKeyError

TTL = Union[int, float, timedelta, str, None]

_UNIT_SECONDS = {
    "second": 1,
    "sec": 1,
    "minute": 60,
    "min": 60,
    "hour": 3600,
    "day": 86400,
    "week": 604800,
}
_RELATIVE_TTL = re.compile(r"^\+?\s*(\d+)\s*(second|sec|minute|min|hour|day|week)s?$")


class EngineState(str, Enum):
    UNCONFIGURED = "unconfigured"
    CONNECTING = "connecting"
    READY = "ready"
    CLOSED = "closed"
    FAILED = "failed"  # store unreachable, re-create the engine to retry
    FATAL = "fatal"  # configuration rejected


def parse_duration(ttl: TTL, default: int) -> int:
    """Normalize a TTL given as seconds, timedelta or relative string like '+1 hour'"""
    if ttl is None:
        return default
    if isinstance(ttl, bool):
        raise ValueError(f"Invalid cache duration {ttl!r}")
    if isinstance(ttl, timedelta):
        return int(ttl.total_seconds())
    if isinstance(ttl, (int, float)):
        return int(ttl)
    if not isinstance(ttl, str):
        raise ValueError(f"Invalid cache duration {ttl!r}")
    text = ttl.strip().lower()
    if text.lstrip("+").isdigit():
        return int(text.lstrip("+"))
    match = _RELATIVE_TTL.match(text)
    if not match:
        raise ValueError(f"Invalid cache duration '{ttl}'")
    return int(match.group(1)) * _UNIT_SECONDS[match.group(2)]


class CacheEngine(ABC):
    """Abstract base class for cache engines"""

    def __init__(self):
        self.config = EngineConfig()
        self.state = EngineState.UNCONFIGURED

    @staticmethod
    def _configure(config: Union[EngineConfig, Mapping[str, Any], None]) -> EngineConfig:
        if isinstance(config, EngineConfig):
            return config
        return EngineConfig(**dict(config or {}))

    def _ensure_ready(self):
        if self.state != EngineState.READY:
            raise EngineNotReadyError(self.state.value)

    def prefixed_key(self, key: str) -> str:
        """Physical key for a cache key"""
        if not isinstance(key, str) or not key:
            raise InvalidKeyError(f"A cache key must be a non-empty string, got {key!r}")
        return self.config.prefix + key

    def duration(self, ttl: TTL = None) -> int:
        """Effective TTL in seconds, falling back to the configured duration"""
        return parse_duration(ttl, self.config.duration)

    @abstractmethod
    def init(self, config: Union[EngineConfig, Mapping[str, Any], None] = None) -> bool:
        """Configure and connect. Returns False when the backend is unavailable"""
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl: TTL = None) -> bool:
        """Set value with optional TTL, 0 means no expiry"""
        pass

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Get value by key, or default when missing"""
        pass

    @abstractmethod
    def increment(self, key: str, offset: int = 1) -> Union[int, bool]:
        """Atomically increment a counter"""
        pass

    @abstractmethod
    def decrement(self, key: str, offset: int = 1) -> Union[int, bool]:
        """Atomically decrement a counter"""
        pass

    @abstractmethod
    def add(self, key: str, value: Any, ttl: TTL = None) -> bool:
        """Set value only if the key does not exist"""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete key"""
        pass

    @abstractmethod
    def delete_async(self, key: str) -> bool:
        """Delete key without blocking the backend"""
        pass

    @abstractmethod
    def clear(self, check: bool = False) -> bool:
        """Delete every key under the prefix, unless check defers to TTLs"""
        pass

    @abstractmethod
    def clear_blocking(self) -> bool:
        """Delete every key under the prefix using incremental scanning"""
        pass

    @abstractmethod
    def groups(self) -> List[str]:
        """Current group tags, a group name followed by its version"""
        pass

    @abstractmethod
    def clear_group(self, group: str) -> bool:
        """Invalidate every key tagged with a group"""
        pass

    @abstractmethod
    def health_check(self) -> Dict[str, Any]:
        """Check cache health and return status"""
        pass

    @abstractmethod
    def get_info(self) -> Dict[str, Any]:
        """Get cache backend information"""
        pass

    @abstractmethod
    def close(self):
        """Release the backend connection"""
        pass

    def get_many(self, keys: Iterable[str], default: Any = None) -> Dict[str, Any]:
        """Get multiple values"""
        return {key: self.get(key, default) for key in keys}

    def set_many(self, mapping: Mapping[str, Any], ttl: TTL = None) -> bool:
        """Set multiple values"""
        results = [self.set(key, value, ttl) for key, value in mapping.items()]
        return all(results)

    def delete_many(self, keys: Iterable[str]) -> bool:
        """Delete multiple keys"""
        results = [self.delete(key) for key in keys]
        return all(results)
