"""
API routes for the admin page.
"""

import logging
import math
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from statboard.api.downloads import NO_CACHE_HEADERS

logger = logging.getLogger(__name__)

router = APIRouter()


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        return math.isfinite(value)
    return isinstance(value, int)


@router.post("/update-stats")
async def update_stats(request: Request):
    """
    Update revenue and, optionally, users this month.

    Body: {"revenue": number, "usersThisMonth": number (optional)}.
    Other fields of the stats document are preserved.
    """
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body.")

    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Invalid data format. Expected a JSON object.")

    revenue = body.get("revenue")
    if not _is_number(revenue):
        raise HTTPException(status_code=400, detail="Invalid data format. Revenue must be a number.")
    if revenue < 0:
        raise HTTPException(status_code=400, detail="Revenue must be a non-negative number.")

    users_this_month = body.get("usersThisMonth")
    if users_this_month is not None:
        if not _is_number(users_this_month):
            raise HTTPException(status_code=400, detail="Invalid data format. usersThisMonth must be a number.")
        if users_this_month < 0:
            raise HTTPException(status_code=400, detail="usersThisMonth must be a non-negative number.")

    try:
        record = request.app.state.store.write(revenue, users_this_month)
    except OSError as e:
        logger.error("Error updating statistics: %s", e)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": str(e),
                "details": type(e).__name__,
            },
        )

    return JSONResponse(
        content={
            "success": True,
            "message": "Statistics updated successfully",
            "data": record.model_dump(by_alias=True),
        },
        headers=NO_CACHE_HEADERS,
    )
