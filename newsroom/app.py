"""
Newsroom - FastAPI Application Entrypoint

This module initializes the FastAPI application with:
- CORS and security middleware
- Error envelope handlers
- Account, admin and content routes under /api/v1
- Database lifecycle management

Run locally:
    uvicorn newsroom.app:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from newsroom.admin.routes import router as admin_router
from newsroom.auth.routes import router as users_router
from newsroom.config import settings
from newsroom.content.articles import router as articles_router
from newsroom.content.categories import router as categories_router
from newsroom.content.comments import router as comments_router
from newsroom.content.messages import router as messages_router
from newsroom.content.newsletter import router as newsletter_router
from newsroom.content.pages import router as pages_router
from newsroom.content.polls import router as polls_router
from newsroom.content.site_settings import router as settings_router
from newsroom.database import get_engine, get_session_factory, init_db
from newsroom.errors import register_exception_handlers
from newsroom.gateway.middleware import SecurityMiddleware


VERSION = "1.0.0"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
        - Configure logging
        - Create the engine and tables, install the session factory

    Shutdown:
        - Dispose the engine
    """
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    engine = get_engine(settings.DATABASE_URL)
    init_db(engine)
    app.state.db_engine = engine
    app.state.db_session_factory = get_session_factory(engine)
    logger.info("startup env=%s", settings.APP_ENV)

    yield

    engine.dispose()
    logger.info("shutdown")


app = FastAPI(
    title="Newsroom",
    description="News portal API: accounts, articles, comments, polls and site content",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "PUT", "PATCH"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
)

app.add_middleware(SecurityMiddleware)

register_exception_handlers(app)

for router in (
    users_router,
    admin_router,
    articles_router,
    categories_router,
    comments_router,
    polls_router,
    pages_router,
    settings_router,
    messages_router,
    newsletter_router,
):
    app.include_router(router, prefix=settings.API_V1_PREFIX)


@app.get("/health")
async def health_check():
    """Health check endpoint for local dev tooling."""
    return {"status": "healthy", "version": VERSION, "environment": settings.APP_ENV}


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Newsroom",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
    }
