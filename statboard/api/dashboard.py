"""
API route exposing the live dashboard snapshot.
"""

from fastapi import APIRouter, Request

from statboard.models import DashboardSnapshot

router = APIRouter()


@router.get("", response_model=DashboardSnapshot)
async def get_dashboard(request: Request):
    """Latest polled value, previous value and change for every metric."""
    return request.app.state.poller.snapshot()
