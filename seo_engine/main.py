"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from seo_engine.config import settings
from seo_engine.core.database import check_db_connection, close_db
from seo_engine.core.exceptions import AppException
from seo_engine.core.logging import get_logger, setup_logging
from seo_engine.core.redis import close_redis, init_redis
from seo_engine.middleware import RequestLoggingMiddleware

# Setup logging on module load
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.
    """
    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    if await check_db_connection():
        logger.info("database_connected")
    else:
        logger.error("database_connection_failed")

    # Without Redis, tenant caching and locks stay in-process
    try:
        await init_redis()
    except Exception as e:
        logger.warning("redis_init_failed", error=str(e))

    yield

    logger.info("application_shutting_down")
    await close_redis()
    await close_db()
    logger.info("application_stopped")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="SEO URL resolution, sitemaps and robots.txt for dealer portals",
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)

    _setup_exception_handlers(app)

    _setup_routers(app)

    return app


def _setup_exception_handlers(app: FastAPI) -> None:
    """Configure global exception handlers."""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        """Handle AppException with RFC 7807 format."""
        error_detail = exc.detail
        if isinstance(error_detail, dict):
            error_detail["instance"] = str(request.url.path)

        return JSONResponse(
            status_code=exc.status_code,
            content=error_detail,
            headers={"Content-Type": "application/problem+json"},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("unhandled_exception", error=str(exc), path=request.url.path)

        return JSONResponse(
            status_code=500,
            content={
                "type": "https://api.dealer-seo.local/errors/internal_error",
                "title": "Internal Server Error",
                "status": 500,
                "detail": "An unexpected error occurred" if settings.is_production else str(exc),
                "instance": str(request.url.path),
            },
            headers={"Content-Type": "application/problem+json"},
        )


def _setup_routers(app: FastAPI) -> None:
    """Register API routers."""
    from seo_engine.modules.health.router import router as health_router
    from seo_engine.modules.seo.router import artifacts_router, router as seo_router

    # Health checks (no prefix)
    app.include_router(health_router, tags=["Health"])

    app.include_router(
        seo_router,
        prefix=settings.api_prefix,
        tags=["SEO"],
    )

    # Sitemaps and robots.txt live at the site root
    app.include_router(artifacts_router, tags=["SEO"])


# Create app instance
app = create_app()
