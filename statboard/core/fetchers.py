"""
Stat fetchers: one coroutine per upstream counter.

Every public fetch_* coroutine returns an integer and never raises; a failed
request or an unexpected payload degrades to 0 and is logged. The polling
loop uses try_fetch() instead, which reports failures as None so a transient
outage does not overwrite the value on screen.
"""

import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from statboard.core.config import Settings
from statboard.core.parsing import (
    SUBSCRIPTION_KEYS,
    WAITLIST_KEYS,
    parse_count,
)
from statboard.models import Metric

logger = logging.getLogger(__name__)

WAITLIST_CAPACITY = 1000

NO_STORE_HEADERS = {
    "Accept": "application/json",
    "Cache-Control": "no-store",
}


def waitlist_filled(remaining: int, capacity: int = WAITLIST_CAPACITY) -> int:
    """Convert remaining waitlist spots into filled spots, clamped to [0, capacity]."""
    return max(0, min(capacity, capacity - remaining))


class StatFetcher:
    """Fetches every dashboard counter over a shared httpx client."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self.settings = settings
        self.client = client
        self._sources: Dict[Metric, Callable[[], Awaitable[int]]] = {
            Metric.SUBSCRIPTIONS: self._subscriptions,
            Metric.WAITLIST: self._waitlist_filled,
            Metric.PLAYSTORE_DOWNLOADS: self._playstore_downloads,
            Metric.APPSTORE_DOWNLOADS: self._appstore_downloads,
            Metric.REVENUE: self._revenue,
            Metric.USERS_THIS_MONTH: self._users_this_month,
            Metric.SPIN_WHEEL: self._spin_wheel_count,
        }

    @property
    def downloads_url(self) -> str:
        return self.settings.dashboard_api_url.rstrip("/") + "/api/downloads"

    async def _get_json(self, url: str) -> Any:
        """GET with a cache-busting timestamp; non-2xx raises."""
        response = await self.client.get(
            url,
            params={"_": int(time.time() * 1000)},
            headers=NO_STORE_HEADERS,
        )
        response.raise_for_status()
        return response.json()

    async def _subscriptions(self) -> int:
        # Upstream answers with "2631", 2631 or {"count": 2631}
        data = await self._get_json(self.settings.subscriptions_url)
        return parse_count(data, SUBSCRIPTION_KEYS)

    async def _waitlist_filled(self) -> int:
        # {"data": {"remaining_count": 644, "user_position": null}, "error": null, "statusCode": 0}
        data = await self._get_json(self.settings.waitlist_url)
        return waitlist_filled(parse_count(data, WAITLIST_KEYS))

    async def _spin_wheel_count(self) -> int:
        data = await self._get_json(self.settings.spinwheel_url)
        return parse_count(data)

    async def _stats_field(self, field: str) -> int:
        data = await self._get_json(self.downloads_url)
        if not isinstance(data, dict):
            return 0
        return parse_count(data.get(field))

    async def _playstore_downloads(self) -> int:
        return await self._stats_field("playstore")

    async def _appstore_downloads(self) -> int:
        return await self._stats_field("appstore")

    async def _revenue(self) -> int:
        return await self._stats_field("revenue")

    async def _users_this_month(self) -> int:
        return await self._stats_field("usersThisMonth")

    async def try_fetch(self, metric: Metric) -> Optional[int]:
        """Fetch one metric, returning None on any failure."""
        try:
            return await self._sources[metric]()
        except Exception as e:
            logger.error("Error fetching %s: %s", metric.value, e)
            return None

    async def _fetch_or_zero(self, metric: Metric) -> int:
        value = await self.try_fetch(metric)
        return 0 if value is None else value

    async def fetch_subscriptions(self) -> int:
        return await self._fetch_or_zero(Metric.SUBSCRIPTIONS)

    async def fetch_waitlist_filled(self) -> int:
        return await self._fetch_or_zero(Metric.WAITLIST)

    async def fetch_playstore_downloads(self) -> int:
        return await self._fetch_or_zero(Metric.PLAYSTORE_DOWNLOADS)

    async def fetch_appstore_downloads(self) -> int:
        return await self._fetch_or_zero(Metric.APPSTORE_DOWNLOADS)

    async def fetch_revenue(self) -> int:
        return await self._fetch_or_zero(Metric.REVENUE)

    async def fetch_users_this_month(self) -> int:
        return await self._fetch_or_zero(Metric.USERS_THIS_MONTH)

    async def fetch_spin_wheel_count(self) -> int:
        return await self._fetch_or_zero(Metric.SPIN_WHEEL)
