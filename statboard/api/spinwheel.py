"""
API route proxying the spin wheel leads counter.
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from statboard.api.downloads import NO_CACHE_HEADERS
from statboard.models import SpinWheelCount

router = APIRouter()


@router.get("")
async def get_spin_wheel_count(request: Request):
    """Leads collected by the spin wheel. Falls back to 0 if the upstream is down."""
    count = await request.app.state.fetcher.fetch_spin_wheel_count()
    return JSONResponse(content=SpinWheelCount(count=count).model_dump(), headers=NO_CACHE_HEADERS)
