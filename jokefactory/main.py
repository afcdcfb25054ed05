"""Joke Factory API: FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map JokeFactoryError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Error handlers live in api/error_handlers.py
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jokefactory.api.error_handlers import register_error_handlers
from jokefactory.api.routes import admin, health, instructor, market, qc, rounds, session
from jokefactory.config import get_settings
from jokefactory.infrastructure import database
from jokefactory.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    if database.db_manager is None:
        database.init_db(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
    logger.info("Joke Factory API started")
    yield
    if database.db_manager is not None:
        await database.db_manager.dispose()
    logger.info("Joke Factory API shutting down")


app = FastAPI(
    title="Joke Factory API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes: explicit registration
app.include_router(health.router)
app.include_router(session.router)
app.include_router(admin.router)
app.include_router(rounds.router)
app.include_router(qc.router)
app.include_router(market.router)
app.include_router(instructor.router)

register_error_handlers(app)
