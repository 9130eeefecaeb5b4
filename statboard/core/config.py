"""
Runtime configuration for the stats dashboard.

Built once at startup from environment variables and handed to the store,
fetchers, scraper and poller.
"""

import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict

PROJECT_ROOT = Path(__file__).parent.parent.parent
DEFAULT_STATS_FILE = PROJECT_ROOT / "data" / "downloads.json"

DEFAULT_SUBS_BASELINE = 2513


class Settings(BaseModel):
    """Service settings. Every field has a working default."""
    model_config = ConfigDict(frozen=True)

    stats_file: Path = DEFAULT_STATS_FILE
    subscriptions_url: str = "https://savart.com/workflow/secret_api"
    waitlist_url: str = "https://savart.com/excel/p4_waitlist_count"
    spinwheel_url: str = "https://gen4-launch.vercel.app/api/leads/count"
    dashboard_api_url: str = "http://127.0.0.1:8080"
    playstore_package: str = "com.savart"
    cron_secret: Optional[str] = None
    subs_baseline: int = DEFAULT_SUBS_BASELINE
    fast_poll_interval: float = 30.0
    slow_poll_interval: float = 60.0
    poll_enabled: bool = True
    log_level: str = "INFO"
    port: int = 8080

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Load settings from the environment, ignoring unusable values."""
        env = os.environ if environ is None else environ

        def _get(name: str) -> Optional[str]:
            val = env.get(name, "").strip()
            return val or None

        def _number(name: str, default, cast):
            raw = _get(name)
            if raw is None:
                return default
            try:
                value = cast(raw)
            except ValueError:
                return default
            return value if value > 0 else default

        port = _number("PORT", 8080, int)
        values = {
            "port": port,
            "dashboard_api_url": _get("DASHBOARD_API_URL") or f"http://127.0.0.1:{port}",
            "cron_secret": _get("CRON_SECRET"),
            "subs_baseline": _number("SUBS_BASELINE", DEFAULT_SUBS_BASELINE, int),
            "fast_poll_interval": _number("FAST_POLL_INTERVAL", 30.0, float),
            "slow_poll_interval": _number("SLOW_POLL_INTERVAL", 60.0, float),
            "poll_enabled": (_get("POLL_ENABLED") or "true").lower() not in ("0", "false", "no"),
            "log_level": _get("LOG_LEVEL") or "INFO",
        }

        optional = {
            "stats_file": "STATS_FILE",
            "subscriptions_url": "SUBSCRIPTIONS_URL",
            "waitlist_url": "WAITLIST_URL",
            "spinwheel_url": "SPINWHEEL_URL",
            "playstore_package": "GOOGLE_PLAY_PACKAGE_NAME",
        }
        for field, name in optional.items():
            raw = _get(name)
            if raw is not None:
                values[field] = raw

        return cls(**values)
