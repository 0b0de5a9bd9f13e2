"""
Cache factory for creating engine instances based on configuration
"""
from typing import Optional

from sentinel_cache.cache.base import CacheEngine
from sentinel_cache.cache.memory_cache import MemoryEngine
from sentinel_cache.cache.redis_cache import RedisEngine
from sentinel_cache.core.config import EngineConfig, settings
from sentinel_cache.core.logging_config import get_logger


class CacheFactory:
    """Factory for creating initialized cache engines"""

    @staticmethod
    def create_cache(backend: Optional[str] = None, config: Optional[EngineConfig] = None) -> CacheEngine:
        """Create and initialize an engine, falling back to memory when redis is unreachable

        A ConfigurationError from the redis engine is not caught.
        """
        logger = get_logger("sentinel_cache.cache.factory")

        if backend is None:
            backend = settings.CACHE_BACKEND.lower()
        if config is None:
            config = settings.engine_config()

        logger.info(f"Creating cache backend: {backend}")

        if backend == "redis":
            engine = RedisEngine()
            if engine.init(config):
                return engine
            logger.warning("Redis is unavailable, falling back to memory cache")
        elif backend != "memory":
            logger.warning(f"Unknown cache backend '{backend}', falling back to memory cache")

        memory = MemoryEngine()
        memory.init(config)
        return memory


# Global cache instance
_cache_instance: Optional[CacheEngine] = None


def get_cache() -> CacheEngine:
    """Get global cache instance"""
    global _cache_instance
    if _cache_instance is None:
        _cache_instance = CacheFactory.create_cache()
    return _cache_instance


def close_cache():
    """Close global cache instance"""
    global _cache_instance
    if _cache_instance is not None:
        _cache_instance.close()
        _cache_instance = None


def check_cache_health() -> dict:
    """Check cache health"""
    try:
        cache = get_cache()
        return cache.health_check()
    except Exception as e:
        logger = get_logger("sentinel_cache.cache.factory")
        logger.error(f"Cache health check failed: {e}")
        return {
            "status": "unhealthy",
            "backend": settings.CACHE_BACKEND,
            "error": str(e)
        }
