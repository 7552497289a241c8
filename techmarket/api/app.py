"""
FastAPI application factory.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from techmarket.api.dependencies import get_notification_dispatcher
from techmarket.api.middleware.error_handler import add_error_handlers
from techmarket.api.middleware.logging import LoggingMiddleware
from techmarket.api.routes import disputes, health, jobs, risk
from techmarket.config.database import init_models
from techmarket.config.logging import configure_logging, get_logger
from techmarket.config.settings import settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup", environment=settings.ENVIRONMENT)
    if settings.DATABASE_CREATE_TABLES:
        await init_models()

    yield

    # let in-flight notifications finish before the loop goes away
    await get_notification_dispatcher().drain()
    logger.info("Application shutdown")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    configure_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Technician marketplace: job matching, lifecycle and escrow",
        openapi_url=f"{settings.API_PREFIX}/openapi.json" if settings.DEBUG else None,
        docs_url=f"{settings.API_PREFIX}/docs" if settings.DEBUG else None,
        redoc_url=f"{settings.API_PREFIX}/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    add_error_handlers(app)
    LoggingMiddleware(app)

    app.include_router(health.router, prefix=settings.API_PREFIX)
    app.include_router(jobs.router, prefix=settings.API_PREFIX)
    app.include_router(disputes.router, prefix=settings.API_PREFIX)
    app.include_router(risk.router, prefix=settings.API_PREFIX)

    return app
