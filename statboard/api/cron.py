"""
API route for the scheduled Play Store scrape.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from statboard.core.playstore import ScrapeError, refresh_playstore_downloads

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/fetch-downloads")
async def fetch_downloads(request: Request, authorization: Optional[str] = Header(default=None)):
    """
    Scrape the Play Store download count and store it.

    When CRON_SECRET is configured the caller must send
    "Authorization: Bearer <secret>".
    """
    settings = request.app.state.settings
    if settings.cron_secret and authorization != f"Bearer {settings.cron_secret}":
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        record = await refresh_playstore_downloads(
            request.app.state.scraper,
            request.app.state.store,
            settings.playstore_package,
        )
    except (ScrapeError, OSError) as e:
        logger.error("Error in cron fetch-downloads: %s", e)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": str(e),
                "details": type(e).__name__,
            },
        )

    return {
        "success": True,
        "message": "Downloads fetched successfully",
        "downloads": {
            "playstore": record.playstore,
            "lastUpdated": record.last_updated,
        },
    }
