from .base import CacheEngine, EngineState
from .redis_cache import RedisEngine
from .memory_cache import MemoryEngine
from .topology import ConnectionPlan, DirectPlan, SentinelPlan, Node, ReplicationOptions, resolve_plan
from .factory import get_cache, close_cache, check_cache_health, CacheFactory

__all__ = [
    "CacheEngine",
    "EngineState",
    "RedisEngine",
    "MemoryEngine",
    "ConnectionPlan",
    "DirectPlan",
    "SentinelPlan",
    "Node",
    "ReplicationOptions",
    "resolve_plan",
    "get_cache",
    "close_cache",
    "check_cache_health",
    "CacheFactory",
]
