"""
Stats store backed by a single JSON document.

Holds the admin-editable revenue and users-this-month figures plus the
scraped download counters. Reads never fail: a missing or damaged document
falls back to defaults, field by field.
"""

import json
import logging
from datetime import datetime, timedelta
from pathlib import Path
from threading import Lock
from typing import Any, Optional

from statboard.models import (
    DEFAULT_DOWNLOADS,
    DEFAULT_REVENUE,
    DEFAULT_USERS_THIS_MONTH,
    StatsRecord,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

COUNTER_DEFAULTS = {
    "playstore": DEFAULT_DOWNLOADS,
    "appstore": DEFAULT_DOWNLOADS,
    "revenue": DEFAULT_REVENUE,
    "usersThisMonth": DEFAULT_USERS_THIS_MONTH,
}


def _counter(value: Any, default: int) -> int:
    """Accept only non-negative JSON numbers."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if value != value or value < 0 or value == float("inf"):
        return default
    return int(value)


def _next_timestamp(previous: Optional[str]) -> str:
    """Current UTC time, kept strictly after the previous stamp."""
    now = utc_now_iso()
    if not previous:
        return now
    try:
        prev = datetime.fromisoformat(previous)
        current = datetime.fromisoformat(now)
        if prev.tzinfo is not None and current <= prev:
            return (prev + timedelta(microseconds=1)).isoformat()
    except ValueError:
        pass
    return now


class StatsStore:
    """Read / merge-write access to data/downloads.json."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = Lock()

    def _load_document(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Could not read stats file %s, using defaults: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Stats file %s is not a JSON object, using defaults", self.path)
            return {}
        return data

    def _record_from(self, data: dict) -> StatsRecord:
        fields = {key: _counter(data.get(key), default) for key, default in COUNTER_DEFAULTS.items()}
        last_updated = data.get("lastUpdated")
        if isinstance(last_updated, str):
            fields["lastUpdated"] = last_updated
        return StatsRecord(**fields)

    def _merge_write(self, updates: dict) -> StatsRecord:
        """Overlay updates on the stored document and persist it."""
        with self._lock:
            existing = self._load_document()
            current = self._record_from(existing)

            merged = dict(existing)
            merged.update(current.model_dump(by_alias=True))
            merged.update(updates)
            merged["lastUpdated"] = _next_timestamp(current.last_updated if "lastUpdated" in existing else None)

            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self.path.write_text(json.dumps(merged, indent=2), encoding="utf-8")
            except OSError as e:
                logger.error("Error writing stats file %s: %s", self.path, e)
                raise

            return self._record_from(merged)

    def read(self) -> StatsRecord:
        """Get the current record. Never raises."""
        with self._lock:
            try:
                return self._record_from(self._load_document())
            except Exception as e:
                logger.warning("Unexpected error reading stats, using defaults: %s", e)
                return StatsRecord()

    def write(self, revenue: int, users_this_month: Optional[int] = None) -> StatsRecord:
        """
        Update revenue (and optionally users this month), keeping every other
        field of the stored document.

        Raises OSError if the document cannot be written.
        """
        updates = {"revenue": int(revenue)}
        if users_this_month is not None:
            updates["usersThisMonth"] = int(users_this_month)
        record = self._merge_write(updates)
        logger.info("Stats updated: revenue=%d usersThisMonth=%d", record.revenue, record.users_this_month)
        return record

    def set_playstore(self, count: int) -> StatsRecord:
        """Store a freshly scraped Play Store download count."""
        return self._merge_write({"playstore": int(count)})
