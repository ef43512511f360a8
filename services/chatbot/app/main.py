"""
CFC Push Chatbot - Main Application

WhatsApp menu chatbot for the church: receives Twilio webhooks, answers from
the in-memory menu cache, and records sessions and daily analytics in MongoDB.
"""

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Annotated

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import database
from app.container import ServiceContainer, get_container, set_container
from app.analytics.repository import MongoAnalyticsRepository
from app.analytics.router import router as analytics_router
from app.menus.repository import MongoMenuRepository
from app.menus.router import router as menus_router
from app.sessions.repository import MongoSessionRepository
from app.sessions.router import router as sessions_router
from app.whatsapp.router import router as whatsapp_router
from app.security import validate_security_config

import logging

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup: Validate security configuration
    validate_security_config()
    # Startup: Connect to MongoDB
    await database.connect()
    db = database.get_database()

    container = ServiceContainer(
        menu_repo=MongoMenuRepository(db),
        session_repo=MongoSessionRepository(
            db, reuse_window=timedelta(hours=settings.SESSION_TIMEOUT_HOURS)
        ),
        analytics_repo=MongoAnalyticsRepository(db),
    )
    set_container(container)

    # Startup: menu cache (loads immediately), daily report, session cleanup
    await container.start()
    logger.info("%s started (menu refresh daily at %02d:00)", settings.APP_NAME, settings.CACHE_REFRESH_HOUR)

    yield

    # Shutdown: Stop schedulers
    await container.stop()
    set_container(None)
    # Shutdown: Disconnect from MongoDB
    await database.disconnect()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="WhatsApp menu chatbot for Igreja da Família Cristã",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-API-Key"],
)


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns the service status and version information.
    Used by Docker health checks and the API gateway.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }


@app.get("/", tags=["Root"])
async def root() -> dict:
    """Root endpoint with service information."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs" if settings.DEBUG else "disabled",
        "webhook": "POST /api/chatbot/webhook",
    }


@app.get("/api/chatbot/health", tags=["Health"])
async def chatbot_health(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> dict:
    """Health including the dependencies the bot needs to answer."""
    cache_loaded = container.cache.is_loaded()
    return {
        "status": "healthy" if cache_loaded else "degraded",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "checks": {
            "database": database.is_connected,
            "menu_cache": cache_loaded,
            "twilio": container.adapter.configured,
        },
    }


@app.get("/api/chatbot/status", tags=["Health"])
async def chatbot_status(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> dict:
    return {
        "service": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "cache": container.cache.get_stats(),
        "analytics": container.analytics.get_current_stats(),
        "active_conversations": len(container.store),
    }


app.include_router(whatsapp_router)
app.include_router(menus_router)
app.include_router(sessions_router)
app.include_router(analytics_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
