"""
Cache management API endpoints
"""
from fastapi import APIRouter, HTTPException

from sentinel_cache.cache import get_cache, check_cache_health
from sentinel_cache.core.exceptions import CacheError
from sentinel_cache.core.logging_config import get_logger

router = APIRouter(prefix="/cache", tags=["cache"])
logger = get_logger("sentinel_cache.api.cache")


@router.get("/health")
def cache_health():
    """Get cache health status"""
    return check_cache_health()


@router.get("/info")
def cache_info():
    """Get cache backend information"""
    return get_cache().get_info()


@router.post("/clear")
def clear_cache(check: bool = False, blocking: bool = False):
    """Clear every key under the configured prefix"""
    try:
        cache = get_cache()
        cleared = cache.clear_blocking() if blocking else cache.clear(check)
    except CacheError as e:
        logger.error(f"Error clearing cache: {e}")
        raise HTTPException(status_code=503, detail=str(e))

    logger.info(f"Cache clear requested (check={check}, blocking={blocking}): {cleared}")
    return {"cleared": cleared, "check": check, "blocking": blocking}


@router.get("/groups")
def cache_groups():
    """Get the current group tags"""
    try:
        return {"groups": get_cache().groups()}
    except CacheError as e:
        logger.error(f"Error reading cache groups: {e}")
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/groups/{group}/clear")
def clear_cache_group(group: str):
    """Invalidate every key tagged with a group"""
    cache = get_cache()
    if group not in cache.config.groups:
        raise HTTPException(status_code=404, detail=f"Unknown cache group '{group}'")
    try:
        cleared = cache.clear_group(group)
    except CacheError as e:
        logger.error(f"Error clearing cache group '{group}': {e}")
        raise HTTPException(status_code=503, detail=str(e))

    logger.info(f"Cache group '{group}' cleared: {cleared}")
    return {"group": group, "cleared": cleared}
