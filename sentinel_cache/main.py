from contextlib import asynccontextmanager
from fastapi import FastAPI

from sentinel_cache.api.cache import router as cache_router
from sentinel_cache.cache import get_cache, close_cache, check_cache_health
from sentinel_cache.core.config import settings
from sentinel_cache.core.logging_config import setup_logging, get_logger

# Setup logging FIRST
setup_logging()
logger = get_logger("sentinel_cache.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup, a ConfigurationError here stops the application
    logger.info(f"{settings.PROJECT_NAME} v{settings.VERSION} starting up...")
    get_cache()

    cache_health = check_cache_health()
    if cache_health["status"] == "healthy":
        logger.info(f"Cache ({cache_health['backend']}) is healthy")
    else:
        logger.warning(f"Cache ({cache_health['backend']}) is unhealthy: {cache_health.get('error', 'Unknown error')}")

    yield

    # Shutdown
    logger.info("Shutting down cache connections...")
    close_cache()
    logger.info(f"{settings.PROJECT_NAME} shutting down...")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    lifespan=lifespan,
)

app.include_router(cache_router)


@app.get("/health")
def health_check():
    return {"status": "healthy"}
