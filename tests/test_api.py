import json

import httpx
import pytest
from fastapi.testclient import TestClient

from statboard.main import create_app

from tests.conftest import mock_client

LISTING_HTML = '<html><body><div class="ClM7O">1L+</div><div>Downloads</div></body></html>'


def _client(settings, routes=None):
    app = create_app(settings, mock_client(routes or {}))
    return TestClient(app)


@pytest.fixture
def client(settings):
    return _client(settings)


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_get_downloads_defaults(client):
    response = client.get("/api/downloads")

    assert response.status_code == 200
    data = response.json()
    assert data["revenue"] == 100003
    assert data["usersThisMonth"] == 0
    assert data["playstore"] == 10000
    assert data["appstore"] == 10000
    assert "lastUpdated" in data
    assert "no-store" in response.headers["Cache-Control"]


def test_get_downloads_corrupt_file_still_200(client, stats_path):
    stats_path.parent.mkdir(parents=True)
    stats_path.write_text("{{{")

    response = client.get("/api/downloads")

    assert response.status_code == 200
    assert response.json()["revenue"] == 100003


def test_update_stats_success(client, stats_path):
    stats_path.parent.mkdir(parents=True)
    stats_path.write_text(json.dumps({"playstore": 52000, "revenue": 1}))

    response = client.post("/api/admin/update-stats", json={"revenue": 5000, "usersThisMonth": 12})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Statistics updated successfully"
    assert body["data"]["revenue"] == 5000
    assert body["data"]["usersThisMonth"] == 12
    assert body["data"]["playstore"] == 52000

    data = client.get("/api/downloads").json()
    assert data["revenue"] == 5000
    assert data["usersThisMonth"] == 12


def test_update_stats_revenue_only(client):
    client.post("/api/admin/update-stats", json={"revenue": 10, "usersThisMonth": 7})

    response = client.post("/api/admin/update-stats", json={"revenue": 20})

    assert response.status_code == 200
    assert response.json()["data"]["usersThisMonth"] == 7


@pytest.mark.parametrize("payload", [
    {"revenue": -1},
    {"revenue": "abc"},
    {"revenue": None},
    {"revenue": True},
    {},
    {"revenue": 100, "usersThisMonth": -5},
    {"revenue": 100, "usersThisMonth": "many"},
    [1, 2],
])
def test_update_stats_validation(client, stats_path, payload):
    response = client.post("/api/admin/update-stats", json=payload)

    assert response.status_code == 400
    assert not stats_path.exists()


def test_update_stats_accepts_integer_too_large_for_float(client):
    huge = 10 ** 400

    response = client.post("/api/admin/update-stats", json={"revenue": huge})

    assert response.status_code == 200
    assert client.get("/api/downloads").json()["revenue"] == huge


def test_update_stats_invalid_json(client):
    response = client.post(
        "/api/admin/update-stats",
        content=b"revenue=5",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400


def test_update_stats_persistence_failure(client, stats_path):
    stats_path.mkdir(parents=True)

    response = client.post("/api/admin/update-stats", json={"revenue": 10})

    assert response.status_code == 500
    assert response.json()["success"] is False


def test_spinwheel_proxies_count(settings):
    client = _client(settings, {"/leads/count": {"count": 62}})

    response = client.get("/api/spinwheel")

    assert response.status_code == 200
    assert response.json() == {"count": 62}


def test_spinwheel_upstream_failure_returns_zero(settings):
    client = _client(settings, {"/leads/count": httpx.Response(502)})

    response = client.get("/api/spinwheel")

    assert response.status_code == 200
    assert response.json() == {"count": 0}


def test_cron_requires_secret_when_configured(settings):
    client = _client(settings.model_copy(update={"cron_secret": "s3cret"}))

    assert client.get("/api/cron/fetch-downloads").status_code == 401
    assert client.get(
        "/api/cron/fetch-downloads", headers={"Authorization": "Bearer wrong"}
    ).status_code == 401


def test_cron_scrapes_and_persists(settings):
    client = _client(
        settings.model_copy(update={"cron_secret": "s3cret"}),
        {"/store/apps/details": httpx.Response(200, text=LISTING_HTML)},
    )

    response = client.get("/api/cron/fetch-downloads", headers={"Authorization": "Bearer s3cret"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["downloads"]["playstore"] == 100000
    assert client.get("/api/downloads").json()["playstore"] == 100000


def test_cron_without_secret_configured_is_open(settings):
    client = _client(settings, {"/store/apps/details": httpx.Response(200, text=LISTING_HTML)})

    assert client.get("/api/cron/fetch-downloads").status_code == 200


def test_cron_scrape_failure_returns_500(settings):
    client = _client(settings, {"/store/apps/details": httpx.Response(200, text="<html></html>")})

    response = client.get("/api/cron/fetch-downloads")

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["details"] == "DownloadsNotFoundError"


def test_dashboard_snapshot(settings):
    client = _client(settings, {
        "/subscriptions": "2520",
        "/leads/count": {"count": 62},
    })
    poller = client.app.state.poller

    # drive one initial load through the app's own event loop
    with client:
        client.portal.call(poller.load_initial)
        response = client.get("/api/dashboard")

    assert response.status_code == 200
    body = response.json()
    assert body["metrics"]["subscriptions"]["current"] == 2520
    assert body["metrics"]["spinWheel"]["formatted"] == "62"
    assert body["subscriptionsToday"] == 7
