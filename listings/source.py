"""
Listing source resolution: proxy CSV, then static backup JSON, then the
hardcoded defaults. Fetching never raises to the caller.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List, Mapping, Optional

import httpx

from .models import Listing
from .sheets import default_listings, looks_like_html, parse_listings_csv
from .utils import now_iso

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_REFRESH_INTERVAL = 3600


class SourceError(Exception):
    """A listing source tier returned unusable data."""


class ListingSource:
    """
    Resolve the current listings through an ordered chain of sources.

    1. The CSV proxy endpoint (rejecting HTML bodies and empty parses).
    2. A static backup JSON array of listing objects, returned as is.
    3. Hardcoded default listings.
    """

    def __init__(
        self,
        csv_url: str,
        backup_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT
    ):
        self.csv_url = csv_url
        self.backup_url = backup_url
        self.client = client
        self.timeout = timeout

    @asynccontextmanager
    async def _client(self):
        if self.client is not None:
            yield self.client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    async def fetch_listings(self) -> List[Listing]:
        async with self._client() as client:
            try:
                listings = await self._fetch_from_proxy(client)
                logger.info(f"Loaded {len(listings)} listings from {self.csv_url}")
                return listings
            except Exception as e:
                logger.warning(f"Listing CSV unavailable, trying backup: {e}")

            try:
                listings = await self._fetch_backup(client)
                logger.info(f"Loaded {len(listings)} listings from backup {self.backup_url}")
                return listings
            except Exception as e:
                logger.warning(f"Listing backup unavailable, using defaults: {e}")

        return default_listings()

    async def _fetch_from_proxy(self, client: httpx.AsyncClient) -> List[Listing]:
        response = await client.get(self.csv_url)
        if not response.is_success:
            raise SourceError(f"CSV endpoint responded with status {response.status_code}")

        csv_text = response.text
        if looks_like_html(csv_text):
            raise SourceError("CSV endpoint returned an HTML document")

        listings = parse_listings_csv(csv_text)
        if not listings:
            raise SourceError("CSV endpoint returned no listing rows")
        return listings

    async def _fetch_backup(self, client: httpx.AsyncClient) -> List[Listing]:
        response = await client.get(self.backup_url)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, list):
            raise SourceError("Backup document is not a JSON array")
        return [Listing.from_dict(item) for item in data if isinstance(item, Mapping)]


class ListingBoard:
    """The listing snapshot currently on display, replaced wholesale on refresh."""

    def __init__(self, source: ListingSource, initial: Optional[List[Listing]] = None):
        self.source = source
        self.listings: List[Listing] = list(initial) if initial is not None else default_listings()
        self.refreshed_at: Optional[str] = None

    async def refresh(self) -> List[Listing]:
        listings = await self.source.fetch_listings()
        if listings:
            self.listings = listings
            self.refreshed_at = now_iso()
        return self.listings

    async def run_forever(self, interval: float = DEFAULT_REFRESH_INTERVAL):
        """Refresh now and then every `interval` seconds until cancelled."""
        while True:
            try:
                await self.refresh()
            except Exception:
                logger.exception("Listing refresh failed")
            await asyncio.sleep(interval)
