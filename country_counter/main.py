"""FastAPI application entry point.

Country Counter - visit scoreboard and map keyed by visitor location.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from country_counter.routes import api_router
from country_counter.services.visits import ensure_schema
from country_counter.settings import get_settings
from country_counter.stores.database import close_db, get_store, init_db, ping_db
from country_counter.stores.redis import close_redis, init_redis

logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    settings = get_settings()

    # Initialize store; the page handler bootstraps the schema again per request
    await init_db()
    try:
        await ping_db()
        await ensure_schema(get_store())
        logger.info("Store connected (%s)", get_store().dialect_name)
    except Exception:
        logger.exception("Store init failed")

    # Initialize Redis only when the geolocation cache is wanted
    if settings.geolocation_cache_enabled:
        try:
            await init_redis()
        except Exception:
            logger.exception("Redis init failed, geolocation lookups will not be cached")

    logger.info("Location strategy: %s", settings.location_strategy.value)

    yield

    # Shutdown
    await close_redis()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Visit scoreboard and map keyed by visitor location",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Exception handler for structured error format
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler returning structured error format."""
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": str(exc) if settings.debug else "Internal server error",
                    "detail": None,
                }
            },
        )

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    # Include routes
    app.include_router(api_router)

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "country_counter.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
