"""
API route for the persisted stats document.
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@router.get("")
async def get_downloads(request: Request):
    """
    Current download counters, revenue and users this month.

    Always answers 200; a missing or damaged stats file yields defaults.
    """
    record = request.app.state.store.read()
    return JSONResponse(content=record.model_dump(by_alias=True), headers=NO_CACHE_HEADERS)
