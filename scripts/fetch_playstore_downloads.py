"""Fetch the Play Store download count and store it in the stats file.

Same job as GET /api/cron/fetch-downloads, for running from a system cron.

Usage: python scripts/fetch_playstore_downloads.py [package_name]
"""

import asyncio
import os
import sys

import httpx

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from statboard.core.config import Settings
from statboard.core.logger import setup_logging
from statboard.core.playstore import PlayStoreScraper, ScrapeError, refresh_playstore_downloads
from statboard.core.stats import StatsStore


async def fetch_and_store(settings: Settings, package_name: str) -> int:
    async with httpx.AsyncClient(follow_redirects=True) as client:
        record = await refresh_playstore_downloads(
            PlayStoreScraper(client),
            StatsStore(settings.stats_file),
            package_name,
        )
    return record.playstore


def main():
    settings = Settings.from_env()
    logger = setup_logging(settings.log_level)
    package_name = sys.argv[1] if len(sys.argv) > 1 else settings.playstore_package

    try:
        count = asyncio.run(fetch_and_store(settings, package_name))
    except (ScrapeError, OSError) as e:
        logger.error("Failed to update Play Store downloads: %s", e)
        sys.exit(1)

    logger.info("Updated %s with Play Store count: %d", settings.stats_file, count)


if __name__ == "__main__":
    main()
