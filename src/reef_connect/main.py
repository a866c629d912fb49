# src/reef_connect/main.py
"""Main entry point for the Reef Connect application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from reef_connect.api.v1 import (
    blocked_router,
    checkins_router,
    conversations_router,
    presence_router,
    profile_router,
    push_router,
    reports_router,
)
from reef_connect.core.errors import register_exception_handlers
from reef_connect.core.settings import settings

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Check-ins, presence and messaging for boaters in the BVI",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

register_exception_handlers(app)

# Include API routers
app.include_router(checkins_router, prefix="/api/v1")
app.include_router(conversations_router, prefix="/api/v1")
app.include_router(blocked_router, prefix="/api/v1")
app.include_router(presence_router, prefix="/api/v1")
app.include_router(profile_router, prefix="/api/v1")
app.include_router(reports_router, prefix="/api/v1")
app.include_router(push_router, prefix="/api/v1")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Check-ins, presence and messaging for boaters in the BVI",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("reef_connect.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
