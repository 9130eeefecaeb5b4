import json

import httpx
import pytest

from statboard.core.config import Settings
from statboard.core.stats import StatsStore

SUBSCRIPTIONS_URL = "https://upstream.test/subscriptions"
WAITLIST_URL = "https://upstream.test/waitlist"
SPINWHEEL_URL = "https://upstream.test/leads/count"
DASHBOARD_API_URL = "http://dashboard.test"


def mock_client(routes: dict) -> httpx.AsyncClient:
    """AsyncClient answering from a {path: response-or-exception} map.

    Values may be httpx.Response objects, exceptions to raise, or any JSON
    value to return with status 200. Unknown paths answer 404.
    """
    def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get(request.url.path)
        if route is None:
            return httpx.Response(404)
        if isinstance(route, Exception):
            raise route
        if isinstance(route, httpx.Response):
            return httpx.Response(route.status_code, content=route.content, headers=route.headers)
        return httpx.Response(200, content=json.dumps(route), headers={"Content-Type": "application/json"})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def stats_path(tmp_path):
    return tmp_path / "data" / "downloads.json"


@pytest.fixture
def store(stats_path):
    return StatsStore(stats_path)


@pytest.fixture
def settings(stats_path):
    return Settings(
        stats_file=stats_path,
        subscriptions_url=SUBSCRIPTIONS_URL,
        waitlist_url=WAITLIST_URL,
        spinwheel_url=SPINWHEEL_URL,
        dashboard_api_url=DASHBOARD_API_URL,
        playstore_package="com.example.app",
        poll_enabled=False,
    )
