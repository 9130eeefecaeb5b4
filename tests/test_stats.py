import json
import os
from datetime import datetime

import pytest

from statboard.models import StatsRecord


def test_read_missing_file_returns_defaults(store):
    record = store.read()

    assert record.revenue == 100003
    assert record.users_this_month == 0
    assert record.playstore == 10000
    assert record.appstore == 10000
    assert record.last_updated


def test_read_corrupt_file_returns_defaults(store, stats_path):
    stats_path.parent.mkdir(parents=True)
    stats_path.write_text("{not json")

    record = store.read()

    assert record.revenue == 100003
    assert record.users_this_month == 0


def test_read_non_object_document_returns_defaults(store, stats_path):
    stats_path.parent.mkdir(parents=True)
    stats_path.write_text("[1, 2, 3]")

    assert store.read().revenue == 100003


def test_read_falls_back_per_field(store, stats_path):
    stats_path.parent.mkdir(parents=True)
    stats_path.write_text(json.dumps({
        "playstore": 52000,
        "appstore": "lots",
        "revenue": -10,
        "usersThisMonth": True,
        "lastUpdated": 12345,
    }))

    record = store.read()

    assert record.playstore == 52000
    assert record.appstore == 10000
    assert record.revenue == 100003
    assert record.users_this_month == 0
    assert isinstance(record.last_updated, str)


def test_write_then_read_round_trip(store, stats_path):
    stats_path.parent.mkdir(parents=True)
    stats_path.write_text(json.dumps({
        "playstore": 52000,
        "appstore": 8100,
        "revenue": 1,
        "usersThisMonth": 1,
        "lastUpdated": "2026-01-01T00:00:00+00:00",
        "note": "kept",
    }))
    before = datetime.fromisoformat(store.read().last_updated)

    store.write(revenue=5000, users_this_month=12)
    record = store.read()

    assert record.revenue == 5000
    assert record.users_this_month == 12
    assert record.playstore == 52000
    assert record.appstore == 8100
    assert datetime.fromisoformat(record.last_updated) > before
    assert json.loads(stats_path.read_text())["note"] == "kept"


def test_write_creates_missing_document(store, stats_path):
    record = store.write(revenue=250)

    assert stats_path.exists()
    assert record.revenue == 250
    assert store.read().revenue == 250


def test_write_without_users_keeps_existing_value(store):
    store.write(revenue=100, users_this_month=40)
    store.write(revenue=200)

    record = store.read()
    assert record.revenue == 200
    assert record.users_this_month == 40


def test_last_updated_strictly_increases(store):
    first = store.write(revenue=1)
    second = store.write(revenue=2)

    assert datetime.fromisoformat(second.last_updated) > datetime.fromisoformat(first.last_updated)


def test_set_playstore_preserves_admin_fields(store):
    store.write(revenue=7000, users_this_month=3)

    record = store.set_playstore(120000)

    assert record.playstore == 120000
    assert record.revenue == 7000
    assert record.users_this_month == 3


@pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="needs a non-root POSIX user")
def test_write_failure_propagates(store, stats_path):
    stats_path.parent.mkdir(parents=True)
    stats_path.parent.chmod(0o500)
    try:
        with pytest.raises(OSError):
            store.write(revenue=1)
    finally:
        stats_path.parent.chmod(0o700)


def test_write_failure_propagates_when_path_is_a_directory(store, stats_path):
    stats_path.mkdir(parents=True)

    with pytest.raises(OSError):
        store.write(revenue=1)


def test_record_serialises_with_document_field_names():
    dumped = StatsRecord(revenue=5).model_dump(by_alias=True)
    assert set(dumped) == {"playstore", "appstore", "revenue", "usersThisMonth", "lastUpdated"}
