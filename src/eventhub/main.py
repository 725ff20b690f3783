"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from eventhub.auth.router import router as auth_router
from eventhub.config import get_settings
from eventhub.database import close_db, create_tables, init_db
from eventhub.etherlink.router import router as etherlink_router
from eventhub.events.router import router as events_router
from eventhub.health.router import router as health_router
from eventhub.middleware import setup_middleware
from eventhub.redis_client import close_redis, init_redis
from eventhub.users.router import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url, settings.redis_max_connections)

    if settings.auto_create_tables:
        await create_tables()

    if settings.etherlink_check_on_startup:
        from eventhub.etherlink.service import get_etherlink_service

        try:
            await get_etherlink_service().test_connection()
        except Exception:
            logger.warning("Etherlink startup check failed", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="EventHub API",
        description="Events, participation, posts and prize escrow on Sepolia",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(events_router)
    app.include_router(etherlink_router)

    return app


app = create_app()
