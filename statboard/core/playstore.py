"""
Google Play downloads scraper.

The Play Store page markup is undocumented and changes often, so the count
is located by an ordered list of extraction strategies. Each strategy is a
pure function over the parsed page; the cheap, specific ones run before the
whole-page text scans, and the first match wins.
"""

import logging
import re
from typing import Callable, List, Optional

import httpx
from bs4 import BeautifulSoup

from statboard.core.parsing import parse_downloads_string
from statboard.core.stats import StatsStore
from statboard.models import StatsRecord

logger = logging.getLogger(__name__)

PLAYSTORE_URL = "https://play.google.com/store/apps/details"

# Google blocks clients that do not look like a browser
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
}

COUNT = r"(\d[\d,\.]*[KML]?\+?)"
COUNT_BEFORE_LABEL = re.compile(COUNT + r"\s*(?:Downloads|Installs)", re.IGNORECASE)
COUNT_TOKEN = re.compile(COUNT, re.IGNORECASE)

KNOWN_SELECTORS = [
    '[itemprop="numDownloads"]',
    ".ClM7O",
    ".wVqUob .ClM7O",
    ".htlgb .htlgb",
    ".BgcNfc",
    ".AYi5wd",
]

PAGE_TEXT_PATTERNS = [
    re.compile(COUNT + r"\s+Downloads", re.IGNORECASE),
    re.compile(COUNT + r"\s+Installs", re.IGNORECASE),
    re.compile(r"Downloads[:\s]+" + COUNT, re.IGNORECASE),
    re.compile(r"Installs[:\s]+" + COUNT, re.IGNORECASE),
]


class ScrapeError(Exception):
    """The Play Store page could not be fetched or read."""


class DownloadsNotFoundError(ScrapeError):
    """No extraction strategy found a download count on the page."""


def from_element_text(soup: BeautifulSoup) -> Optional[str]:
    """Any element whose text has a count followed by Downloads/Installs."""
    for element in soup.find_all(True):
        match = COUNT_BEFORE_LABEL.search(element.get_text())
        if match:
            return match.group(1)
    return None


def from_meta_tag(soup: BeautifulSoup) -> Optional[str]:
    """Structured data: <meta itemprop="numDownloads" content="...">."""
    meta = soup.find("meta", attrs={"itemprop": "numDownloads"})
    if meta and meta.get("content"):
        return meta["content"]
    return None


def from_known_selectors(soup: BeautifulSoup) -> Optional[str]:
    """Class names the Play Store has used for the downloads badge."""
    for selector in KNOWN_SELECTORS:
        for element in soup.select(selector):
            match = COUNT_TOKEN.search(element.get_text().strip())
            if match:
                return match.group(1)
    return None


def from_page_text(soup: BeautifulSoup) -> Optional[str]:
    """Brute-force scan of the body text, label after or before the count."""
    body = soup.body or soup
    text = body.get_text()
    for pattern in PAGE_TEXT_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


STRATEGIES: List[Callable[[BeautifulSoup], Optional[str]]] = [
    from_element_text,
    from_meta_tag,
    from_known_selectors,
    from_page_text,
]


def extract_downloads_string(html: str) -> Optional[str]:
    """Run the strategies in order and return the first raw count found."""
    soup = BeautifulSoup(html, "html.parser")
    for strategy in STRATEGIES:
        found = strategy(soup)
        if found:
            logger.debug("Downloads string %r found by %s", found, strategy.__name__)
            return found
    return None


class PlayStoreScraper:
    """Scrapes the public Play Store listing for the install count."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def fetch_page(self, package_name: str) -> str:
        try:
            response = await self.client.get(
                PLAYSTORE_URL,
                params={"id": package_name},
                headers=BROWSER_HEADERS,
            )
        except httpx.HTTPError as e:
            raise ScrapeError(f"Failed to fetch Play Store page: {e}") from e

        if not response.is_success:
            raise ScrapeError(f"Failed to fetch Play Store page: {response.status_code}")
        return response.text

    async def fetch_downloads(self, package_name: str) -> int:
        """
        Return the download count shown on the app's Play Store page.

        Raises ScrapeError if the page cannot be fetched and
        DownloadsNotFoundError if no count can be located on it.
        """
        html = await self.fetch_page(package_name)
        downloads_string = extract_downloads_string(html)
        if not downloads_string:
            raise DownloadsNotFoundError("Could not find download count on Play Store page")

        count = parse_downloads_string(downloads_string)
        logger.info("Scraped downloads string %r -> %d", downloads_string, count)
        return count


async def refresh_playstore_downloads(
    scraper: PlayStoreScraper,
    store: StatsStore,
    package_name: str,
) -> StatsRecord:
    """Scrape the current Play Store count and persist it."""
    logger.info("Fetching downloads for: %s", package_name)
    count = await scraper.fetch_downloads(package_name)
    return store.set_playstore(count)
