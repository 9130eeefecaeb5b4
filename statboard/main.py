"""
Statboard - Main FastAPI Application
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from statboard.api import admin, cron, dashboard, downloads, spinwheel
from statboard.core.config import Settings
from statboard.core.fetchers import StatFetcher
from statboard.core.logger import setup_logging
from statboard.core.playstore import PlayStoreScraper
from statboard.core.poller import StatsPoller
from statboard.core.stats import StatsStore

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None) -> FastAPI:
    """Build the application and its collaborators from one Settings object."""
    settings = settings or Settings.from_env()
    client = client or httpx.AsyncClient(follow_redirects=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        logger.info("Statboard starting, stats file: %s", settings.stats_file)
        if settings.poll_enabled:
            await app.state.poller.start()
        yield
        await app.state.poller.stop()
        await client.aclose()

    app = FastAPI(
        title="Statboard",
        description="Live statistics dashboard API",
        version="1.0.0",
        lifespan=lifespan,
    )

    fetcher = StatFetcher(settings, client)
    app.state.settings = settings
    app.state.store = StatsStore(settings.stats_file)
    app.state.fetcher = fetcher
    app.state.scraper = PlayStoreScraper(client)
    app.state.poller = StatsPoller(
        fetcher,
        fast_interval=settings.fast_poll_interval,
        slow_interval=settings.slow_poll_interval,
        subs_baseline=settings.subs_baseline,
    )

    # Include API routers
    app.include_router(downloads.router, prefix="/api/downloads", tags=["downloads"])
    app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
    app.include_router(spinwheel.router, prefix="/api/spinwheel", tags=["spinwheel"])
    app.include_router(cron.router, prefix="/api/cron", tags=["cron"])
    app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint for Docker."""
        return {"status": "healthy"}

    return app


def run():
    """Run the application with uvicorn."""
    import uvicorn

    settings = Settings.from_env()
    setup_logging(settings.log_level)
    uvicorn.run(
        "statboard.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=settings.port,
    )


if __name__ == "__main__":
    run()
