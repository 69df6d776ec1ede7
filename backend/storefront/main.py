"""
Storefront - Main FastAPI Application

Categories, products and orders behind a tag-indexed read cache.
The lifespan owns the database manager and the cache store; services
are built per request from them.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from .api.endpoints.categories import router as categories_router
from .api.endpoints.health import router as health_router
from .api.endpoints.orders import router as orders_router
from .api.endpoints.products import router as products_router
from .constants import APP_NAME, APP_VERSION
from .core.config import Settings, get_settings
from .core.database import DatabaseManager
from .core.logging import configure_logging
from .infrastructure.cache import create_cache_store
from .services.exceptions import StorefrontError

logger = structlog.get_logger()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application; tests pass their own settings."""
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Starting Storefront API", environment=settings.ENVIRONMENT)

        database = DatabaseManager(settings)
        await database.initialize()
        await database.create_tables()

        app.state.settings = settings
        app.state.database = database
        app.state.cache = create_cache_store(settings)

        logger.info(
            "Storefront API started",
            version=APP_VERSION,
            cache_backend=settings.CACHE_BACKEND,
        )

        yield

        logger.info("Shutting down Storefront API")
        try:
            await app.state.cache.close()
        finally:
            await database.close()
        logger.info("Application shutdown completed")

    app = FastAPI(
        title=f"{APP_NAME} API",
        description="Catalogue and order backend with a tag-indexed read cache",
        version=APP_VERSION,
        lifespan=lifespan,
    )

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        logger.warning(
            "Business rule violated",
            path=request.url.path,
            error_code=exc.error_code,
            details=exc.details,
        )
        return JSONResponse(
            status_code=400,
            content={
                "detail": exc.message,
                "error_code": exc.error_code,
                "details": exc.details,
            },
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning(
            "Integrity constraint violated", path=request.url.path, error=str(exc.orig)
        )
        return JSONResponse(
            status_code=400,
            content={"detail": "Data violates a database constraint"},
        )

    app.include_router(health_router)
    app.include_router(categories_router)
    app.include_router(products_router)
    app.include_router(orders_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
