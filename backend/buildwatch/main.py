"""FastAPI application entry point."""

from fastapi import FastAPI

from buildwatch.api.routes import monitor
from buildwatch.config import get_settings

settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Watch a Next.js site for new builds and summarize what changed",
    version="1.0.0",
)

app.include_router(monitor.router, prefix="/api", tags=["monitor"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": "1.0.0",
        "target_url": settings.target_url,
        "docs": "/docs",
    }
