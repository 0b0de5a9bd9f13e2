"""
Redis cache engine supporting single node, replicated and sentinel deployments
"""
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from redis.exceptions import RedisError

from sentinel_cache.cache.base import TTL, CacheEngine, EngineState
from sentinel_cache.cache.codec import decode, encode
from sentinel_cache.cache.connection import connect, describe
from sentinel_cache.cache.topology import ConnectionPlan, resolve_plan
from sentinel_cache.core.config import EngineConfig
from sentinel_cache.core.exceptions import ConfigurationError, ConnectFailure
from sentinel_cache.core.logging_config import get_logger


class RedisEngine(CacheEngine):
    """Redis-based cache engine holding one live connection for its lifetime

    Command failures are logged and reported through return values
    (False, the default, or an empty list) unless the ``exceptions``
    option is set, in which case the redis error propagates.
    """

    def __init__(self, connector: Callable[[ConnectionPlan], Any] = connect):
        super().__init__()
        self.logger = get_logger("sentinel_cache.cache.redis")
        self._connector = connector
        self._redis: Optional[Any] = None
        self._plan: Optional[ConnectionPlan] = None

    @property
    def plan(self) -> Optional[ConnectionPlan]:
        return self._plan

    @property
    def _strict(self) -> bool:
        return bool(self.config.exceptions)

    def init(self, config: Union[EngineConfig, Mapping[str, Any], None] = None) -> bool:
        """Resolve the topology and connect

        Raises ConfigurationError for an unusable topology, returns False
        when the store cannot be reached.
        """
        if self._redis is not None:
            self.close()

        self.config = self._configure(config)
        self.state = EngineState.CONNECTING

        try:
            self._plan = resolve_plan(self.config)
            self._redis = self._connector(self._plan)
        except ConfigurationError as e:
            self.state = EngineState.FATAL
            self.logger.error(f"Invalid cache configuration: {e}")
            raise
        except (ConnectFailure, RedisError) as e:
            self.state = EngineState.FAILED
            self.logger.error(f"Cache engine unavailable: {e}")
            return False

        self.state = EngineState.READY
        return True

    def set(self, key: str, value: Any, ttl: TTL = None) -> bool:
        """Set value, without expiry when the effective TTL is 0"""
        self._ensure_ready()
        key = self.prefixed_key(key)
        duration = self.duration(ttl)
        data = encode(value)

        try:
            if duration == 0:
                return bool(self._redis.set(key, data))
            return bool(self._redis.setex(key, duration, data))
        except RedisError as e:
            if self._strict:
                raise
            self.logger.error(f"Error setting key '{key}': {e}")
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """Get value by key"""
        self._ensure_ready()
        key = self.prefixed_key(key)

        try:
            data = self._redis.get(key)
        except RedisError as e:
            if self._strict:
                raise
            self.logger.error(f"Error getting key '{key}': {e}")
            return default

        if data is None:
            return default

        try:
            return decode(data)
        except ValueError as e:
            self.logger.warning(f"Failed to deserialize cached value for key '{key}': {e}")
            return default

    def _counter(self, key: str, offset: int, decrease: bool) -> Union[int, bool]:
        self._ensure_ready()
        key = self.prefixed_key(key)

        try:
            if decrease:
                value = self._redis.decrby(key, offset)
            else:
                value = self._redis.incrby(key, offset)
            if self.config.duration > 0:
                self._redis.expire(key, self.config.duration)
            return value
        except RedisError as e:
            if self._strict:
                raise
            self.logger.error(f"Error {'decrementing' if decrease else 'incrementing'} key '{key}': {e}")
            return False

    def increment(self, key: str, offset: int = 1) -> Union[int, bool]:
        """Increment counter, refreshing the default expiry"""
        return self._counter(key, offset, decrease=False)

    def decrement(self, key: str, offset: int = 1) -> Union[int, bool]:
        """Decrement counter, refreshing the default expiry"""
        return self._counter(key, offset, decrease=True)

    def add(self, key: str, value: Any, ttl: TTL = None) -> bool:
        """Set value only if absent, in a single SET NX call"""
        self._ensure_ready()
        key = self.prefixed_key(key)
        duration = self.duration(ttl)
        data = encode(value)

        try:
            if duration == 0:
                return bool(self._redis.set(key, data, nx=True))
            return bool(self._redis.set(key, data, nx=True, ex=duration))
        except RedisError as e:
            if self._strict:
                raise
            self.logger.error(f"Error adding key '{key}': {e}")
            return False

    def delete(self, key: str) -> bool:
        """Delete key, True only if something was removed"""
        self._ensure_ready()
        key = self.prefixed_key(key)

        try:
            return self._redis.delete(key) > 0
        except RedisError as e:
            if self._strict:
                raise
            self.logger.error(f"Error deleting key '{key}': {e}")
            return False

    def delete_async(self, key: str) -> bool:
        """Unlink key, letting redis reclaim the memory in the background"""
        self._ensure_ready()
        key = self.prefixed_key(key)

        try:
            return self._redis.unlink(key) > 0
        except RedisError as e:
            if self._strict:
                raise
            self.logger.error(f"Error unlinking key '{key}': {e}")
            return False

    def clear(self, check: bool = False) -> bool:
        """Delete all keys under the prefix

        With ``check`` nothing is removed and expiry is left to redis TTLs.
        """
        self._ensure_ready()
        if check:
            return True

        pattern = self.config.prefix + "*"
        try:
            keys = self._redis.keys(pattern)
            result = True
            for key in keys:
                result = self._redis.delete(key) > 0 and result
        except RedisError as e:
            if self._strict:
                raise
            self.logger.error(f"Error clearing cache with pattern '{pattern}': {e}")
            return False

        self.logger.info(f"Cleared {len(keys)} keys matching '{pattern}'")
        return result

    def clear_blocking(self) -> bool:
        """Delete all keys under the prefix, scanning in batches and unlinking"""
        self._ensure_ready()
        pattern = self.config.prefix + "*"
        result = True
        removed = 0

        try:
            cursor = 0
            while True:
                cursor, keys = self._redis.scan(cursor=cursor, match=pattern, count=self.config.scan_count)
                for key in keys:
                    result = self._redis.unlink(key) > 0 and result
                removed += len(keys)
                if int(cursor) == 0:
                    break
        except RedisError as e:
            if self._strict:
                raise
            self.logger.error(f"Error scanning cache with pattern '{pattern}': {e}")
            return False

        self.logger.info(f"Unlinked {removed} keys matching '{pattern}'")
        return result

    def groups(self) -> List[str]:
        """Group tags for every configured group, creating missing counters at 1"""
        self._ensure_ready()
        result = []

        try:
            for group in self.config.groups:
                key = self.config.prefix + group
                value = self._redis.get(key)
                if value is None:
                    value = encode(1)
                    self._redis.set(key, value)
                result.append(f"{group}{decode(value)}")
        except RedisError as e:
            if self._strict:
                raise
            self.logger.error(f"Error reading cache groups: {e}")
            return []

        return result

    def clear_group(self, group: str) -> bool:
        """Bump the group counter so keys tagged with the old version are never read again"""
        self._ensure_ready()
        key = self.config.prefix + group

        try:
            return bool(self._redis.incr(key))
        except RedisError as e:
            if self._strict:
                raise
            self.logger.error(f"Error clearing group '{group}': {e}")
            return False

    def health_check(self) -> Dict[str, Any]:
        """Check Redis health and return status"""
        if self.state != EngineState.READY:
            return {
                "status": "unhealthy",
                "backend": "redis",
                "error": f"engine is {self.state.value}",
                "timestamp": time.time()
            }

        try:
            start_time = time.time()

            test_key = self.config.prefix + "health_check_test"
            test_value = b"test_value"

            self._redis.set(test_key, test_value, ex=10)
            if self._redis.get(test_key) != test_value:
                raise RedisError("GET operation failed")
            self._redis.delete(test_key)

            info = self._redis.info()
            response_time = (time.time() - start_time) * 1000  # ms

            return {
                "status": "healthy",
                "backend": "redis",
                "topology": describe(self._plan),
                "response_time_ms": round(response_time, 2),
                "connected_clients": info.get("connected_clients", 0),
                "used_memory": info.get("used_memory_human", "unknown"),
                "redis_version": info.get("redis_version", "unknown"),
                "timestamp": time.time()
            }

        except RedisError as e:
            self.logger.error(f"Redis health check failed: {e}")
            return {
                "status": "unhealthy",
                "backend": "redis",
                "error": str(e),
                "timestamp": time.time()
            }

    def get_info(self) -> Dict[str, Any]:
        """Get Redis backend information"""
        result: Dict[str, Any] = {
            "backend": "redis",
            "state": self.state.value,
            "prefix": self.config.prefix,
            "default_duration": self.config.duration,
            "groups": list(self.config.groups),
            "persistent": self.config.persistent,
        }
        if self._plan is not None:
            result["topology"] = describe(self._plan)
            result["replication"] = self._plan.replication
        if self.state != EngineState.READY:
            return result

        try:
            info = self._redis.info()
        except RedisError as e:
            self.logger.error(f"Error getting Redis info: {e}")
            result["error"] = str(e)
            return result

        result.update({
            "version": info.get("redis_version", "unknown"),
            "mode": info.get("redis_mode", "unknown"),
            "role": info.get("role", "unknown"),
            "used_memory": info.get("used_memory_human", "unknown"),
            "uptime_seconds": info.get("uptime_in_seconds", 0),
            "keyspace": {k: v for k, v in info.items() if k.startswith("db")},
        })
        return result

    def close(self):
        """Close the Redis connection unless it was configured persistent"""
        if self._redis is None:
            return
        if self.config.persistent:
            self.logger.info("Leaving persistent Redis connection open")
        else:
            self._redis.close()
            self.logger.info("Redis connection closed")
        self._redis = None
        self.state = EngineState.CLOSED
