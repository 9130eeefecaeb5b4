"""
Pydantic models for the stats dashboard API.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_DOWNLOADS = 10000
DEFAULT_REVENUE = 100003
DEFAULT_USERS_THIS_MONTH = 0


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class StatsRecord(BaseModel):
    """The persisted stats document (data/downloads.json)."""
    model_config = ConfigDict(populate_by_name=True)

    playstore: int = DEFAULT_DOWNLOADS
    appstore: int = DEFAULT_DOWNLOADS
    revenue: int = DEFAULT_REVENUE
    users_this_month: int = Field(default=DEFAULT_USERS_THIS_MONTH, alias="usersThisMonth")
    last_updated: str = Field(default_factory=utc_now_iso, alias="lastUpdated")


class Metric(str, Enum):
    PLAYSTORE_DOWNLOADS = "playstoreDownloads"
    APPSTORE_DOWNLOADS = "appstoreDownloads"
    SUBSCRIPTIONS = "subscriptions"
    WAITLIST = "waitlist"
    SPIN_WHEEL = "spinWheel"
    REVENUE = "revenue"
    USERS_THIS_MONTH = "usersThisMonth"


class MetricSample(BaseModel):
    """Latest and prior value of one displayed metric."""
    current: int
    previous: int


class ChangeInfo(BaseModel):
    """Percentage change between two samples."""
    percentage: float
    is_increase: bool
    is_equal: bool
    absolute_change: int


class DashboardMetric(BaseModel):
    current: int
    previous: int
    change: ChangeInfo
    formatted: str


class DashboardSnapshot(BaseModel):
    """What the dashboard page renders."""
    time: Optional[str] = None
    metrics: Dict[str, DashboardMetric] = {}
    subscriptions_today: int = Field(default=0, alias="subscriptionsToday")

    model_config = ConfigDict(populate_by_name=True)


class SpinWheelCount(BaseModel):
    count: int
