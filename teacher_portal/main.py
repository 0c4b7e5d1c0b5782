"""
Teacher Portal - FastAPI Application

Main entry point for the application.
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from teacher_portal.api.v1 import router as api_v1_router
from teacher_portal.core.config import settings
from teacher_portal.core.logging_config import setup_logging
from teacher_portal.middleware.rate_limit import login_limiter
from teacher_portal.services.session_service import session_store


logger = logging.getLogger(__name__)


async def sweep_expired_sessions(interval: float) -> None:
    """Release lapsed sessions even when no request comes in to notice them."""
    while True:
        await asyncio.sleep(interval)
        purged = session_store.purge_expired()
        if purged:
            logger.info("Released %d expired sessions", purged)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Sweeps expired sessions in the background and closes every open
    teacher session on shutdown.
    """
    setup_logging()
    logger.info("Starting Teacher Portal (%s)", settings.ENVIRONMENT)
    sweeper = asyncio.create_task(sweep_expired_sessions(settings.SESSION_SWEEP_SECONDS))
    yield
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper
    logger.info("Shutting down Teacher Portal, closing %d sessions", len(session_store))
    await session_store.close_all()


# Create FastAPI application
app = FastAPI(
    title="Teacher Portal",
    description="Section, student and course analytics for teachers.",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Session cookie must cross origins to the frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns:
        dict: Health status, environment info, session store and login
        throttle statistics.
    """
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": "0.1.0",
        "sessions": session_store.stats(),
        "login_limiter": login_limiter.stats(),
    }


@app.get("/", tags=["Root"])
async def root() -> dict:
    return {
        "message": "Welcome to the Teacher Portal API",
        "docs": "/docs",
        "health": "/health",
    }
