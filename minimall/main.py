"""
Main application for the MINIMALL backend
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from minimall.core.config.settings import settings
from minimall.core.database import close_engine, create_all_tables, verify_connection
from minimall.core.exceptions import MinimallException
from minimall.core.logging import get_logger
from minimall.core.redis import check_redis_health, close_redis_client
from minimall.shared.helpers import now_utc

from minimall.api.v1.analytics import router as analytics_router
from minimall.api.v1.assets import router as assets_router
from minimall.api.v1.auth import router as auth_router
from minimall.api.v1.cart import router as cart_router
from minimall.api.v1.configs import router as configs_router
from minimall.api.v1.geo import router as geo_router
from minimall.api.v1.health import router as health_router
from minimall.api.v1.products import router as products_router
from minimall.api.v1.public import router as public_router
from minimall.api.v1.webhooks import router as webhooks_router

logger = get_logger(__name__)


async def initialize_services():
    """Check configuration, the database and Redis before serving"""
    try:
        settings.validate_configuration()

        await verify_connection()
        await create_all_tables()
        logger.info("✅ Database connected and tables ready")

        if await check_redis_health():
            logger.info("✅ Redis connected")
        else:
            logger.warning("⚠️ Redis unavailable - admin sessions will not persist")

        logger.info("✅ All services initialized successfully")

    except Exception as e:
        logger.error(f"❌ Failed to initialize services: {e}")
        logger.error("Application startup failed - critical services are not available")
        raise


async def cleanup_services():
    """Cleanup all services"""
    try:
        await close_redis_client()
        await close_engine()
    except Exception as e:
        logger.error(f"Failed to cleanup services: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    await initialize_services()
    yield
    await cleanup_services()


app = FastAPI(
    title="MINIMALL",
    description="Shopify link-in-bio storefront backend",
    version=settings.VERSION,
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(webhooks_router)
app.include_router(configs_router)
app.include_router(analytics_router)
app.include_router(assets_router)
app.include_router(public_router)
app.include_router(cart_router)
app.include_router(products_router)
app.include_router(geo_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MinimallException)
async def minimall_exception_handler(request: Request, exc: MinimallException):
    logger.error(f"Unhandled application error: {exc}", path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": exc.message,
            "error_code": exc.error_code,
            "timestamp": now_utc().isoformat(),
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}", path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "error_code": "INTERNAL_ERROR",
            "message": str(exc),
            "timestamp": now_utc().isoformat(),
        },
    )


if __name__ == "__main__":
    uvicorn.run(
        "minimall.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.is_development,
    )
