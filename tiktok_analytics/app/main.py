# tiktok_analytics/app/main.py
"""
FastAPI Main Application
TikTok Analytics
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tiktok_analytics import __version__
from tiktok_analytics.api.routers.accounts_router import router as accounts_router
from tiktok_analytics.api.routers.analytics_router import router as analytics_router
from tiktok_analytics.api.routers.session_router import router as session_router
from tiktok_analytics.app.config import get_config, setup_logging, validate_config
from tiktok_analytics.app.database import init_db
from tiktok_analytics.app.dependencies import get_session_store, get_tiktok_client
from tiktok_analytics.app.shared_cache import get_shared_cache

logger = logging.getLogger(__name__)


# ============================================================================
# Application Lifecycle Management
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Handles startup and shutdown events
    """
    # ========== STARTUP ==========
    logger.info("🚀 Starting TikTok Analytics...")

    # 1. Load and validate configuration
    config = get_config()
    setup_logging(config)

    validation_result = validate_config(config)
    if not validation_result["valid"]:
        logger.error("❌ Configuration validation failed!")
        for error in validation_result["errors"]:
            logger.error(f"  - {error}")
        raise RuntimeError("Invalid configuration")

    for warning in validation_result["warnings"]:
        logger.warning(f"  ⚠️  {warning}")

    # 2. Cache directories
    cache = get_shared_cache()
    logger.info(f"📦 Cache initialized: {cache.cache_root}")

    # 3. Database
    init_db()

    # 4. Session
    get_session_store().load()

    client = get_tiktok_client()
    logger.info(f"✅ Application startup complete ({client.mode} mode)")

    yield

    # ========== SHUTDOWN ==========
    logger.info("🛑 Shutting down application...")

    client = get_tiktok_client()
    if hasattr(client, "close"):
        client.close()
    cache.clear_memory_cache()

    logger.info("✅ Application shutdown complete")


# ============================================================================
# FastAPI Application Instance
# ============================================================================


def create_app() -> FastAPI:
    """
    FastAPI application factory
    Creates and configures the FastAPI application
    """
    config = get_config()

    app = FastAPI(
        title="TikTok Analytics",
        description="TikTok video performance dashboard backend with period comparison",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
        debug=config.api.debug,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)
    _register_routers(app)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers"""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions"""
        logger.error(f"HTTP error: {exc.status_code} - {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.detail,
                "status_code": exc.status_code,
                "path": str(request.url),
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """Handle validation errors"""
        logger.error(f"Validation error: {exc.errors()}")
        return JSONResponse(
            status_code=422,
            content={
                "error": "Validation Error",
                "details": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle all other exceptions"""
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "message": str(exc),
                "path": str(request.url),
            },
        )


def _register_routers(app: FastAPI) -> None:
    """Register API routers"""
    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint"""
        client = get_tiktok_client()
        return {
            "status": "healthy",
            "version": __version__,
            "mode": client.mode,
            "cache_root": get_shared_cache().cache_root,
        }

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API information"""
        return {
            "message": "TikTok Analytics API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    app.include_router(analytics_router)
    app.include_router(session_router)
    app.include_router(accounts_router)

    logger.info("✅ API routers registered")


# ============================================================================
# Application Instance
# ============================================================================

app = create_app()


# ============================================================================
# Development Server Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    config = get_config()

    uvicorn.run(
        "tiktok_analytics.app.main:app",
        host=config.api.host,
        port=config.api.port,
        reload=config.api.debug,
        log_level=config.logging.level.lower(),
    )
