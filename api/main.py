"""
api.main - FastAPI application entry point.

Run with:
    uvicorn api.main:app --reload
    python -m api.main
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__
from api.routers import (
    health_router,
    skins_router,
    exchange_rate_router,
)
from api.middleware import setup_error_handlers

if TYPE_CHECKING:
    from core.interfaces import IAppContext

logger = logging.getLogger(__name__)

# Global app context (initialized at startup)
_app_context: "IAppContext | None" = None


def get_app_context() -> "IAppContext":
    """Get the global app context. Must be called after app startup."""
    if _app_context is None:
        raise RuntimeError("App context not initialized. Server not started?")
    return _app_context


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown."""
    global _app_context

    # Startup; a context installed beforehand (tests, embedding) is reused
    owned = _app_context is None
    if owned:
        logger.info("Starting Skin Market Watch API...")
        from core.app_context import create_app_context

        _app_context = create_app_context()
        logger.info("App context initialized successfully")

    yield

    # Shutdown
    if owned and _app_context is not None:
        logger.info("Shutting down Skin Market Watch API...")
        _app_context.close()
        _app_context = None
        logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Skin Market Watch API",
    description="Cross-marketplace CS2 skin prices, history and exchange rate",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup error handlers
setup_error_handlers(app)

# Include routers
app.include_router(health_router, tags=["Health"])
app.include_router(skins_router, prefix="/api/v1", tags=["Skins"])
app.include_router(exchange_rate_router, prefix="/api/v1", tags=["Exchange Rate"])


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint - redirect to docs."""
    return {
        "message": "Skin Market Watch API",
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    from core.logging_setup import setup_logging

    setup_logging()
    uvicorn.run(
        "api.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
        log_level="info",
    )
