"""
Spreadsheet CSV proxy with tiered fallback.

The sheet's export URL is not a committed API: it intermittently answers with
a login or consent page. Tiers are tried in order until one yields CSV:

    sheets-api  structured Sheets API v4 read (only with an API key)
    export      anonymous CSV export, retried with exponential backoff
    backup      static backup JSON rendered in the sheet layout
    fallback    hardcoded CSV
"""
import asyncio
import json
import logging
from typing import Awaitable, Callable, List, Optional, Tuple

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential
)

from listings.export import listings_to_sheet_csv, values_to_csv
from listings.models import Listing
from listings.sheets import FALLBACK_CSV, looks_like_csv

from .cache import CsvCache

logger = logging.getLogger(__name__)

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets/{sheet_id}/values/{sheet_range}"

SOURCE_CACHE = "cache"
SOURCE_SHEETS_API = "sheets-api"
SOURCE_EXPORT = "export"
SOURCE_BACKUP = "backup"
SOURCE_FALLBACK = "fallback"


class InvalidExportError(Exception):
    """The export endpoint answered with something that is not CSV."""


class ProxyExhaustedError(Exception):
    """Every tier failed."""


class SheetsApiReader:
    """Reads the sheet through the Sheets API v4 values endpoint."""

    def __init__(self, client: httpx.AsyncClient, sheet_id: str, api_key: str, sheet_range: str):
        self.client = client
        self.url = SHEETS_API_URL.format(sheet_id=sheet_id, sheet_range=sheet_range)
        self.api_key = api_key

    async def try_fetch(self) -> Optional[str]:
        response = await self.client.get(self.url, params={"key": self.api_key})
        response.raise_for_status()
        values = response.json().get("values") or []
        return values_to_csv(values) or None


def build_api_reader(config, client: httpx.AsyncClient) -> Optional[SheetsApiReader]:
    """The Sheets API tier exists only when credentials are configured."""
    if not config.GOOGLE_SHEETS_API_KEY:
        logger.info("Sheets API key not configured; structured API tier disabled")
        return None
    return SheetsApiReader(
        client,
        sheet_id=config.SHEET_ID,
        api_key=config.GOOGLE_SHEETS_API_KEY,
        sheet_range=config.SHEET_RANGE,
    )


def load_backup_csv(path: str) -> Optional[str]:
    """Render the backup JSON listing array in the sheet's CSV layout."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"Backup file is not a JSON array: {path}")

    listings = [Listing.from_dict(item) for item in data if isinstance(item, dict)]
    if not listings:
        return None
    return listings_to_sheet_csv(listings)


class SheetsProxy:
    """Resolves the sheet CSV through the tier chain, caching the winner."""

    def __init__(
        self,
        cache: CsvCache,
        client: httpx.AsyncClient,
        export_url: str,
        backup_path: str,
        api_reader: Optional[SheetsApiReader] = None,
        retry_attempts: int = 4,
        retry_multiplier: float = 1.0,
        retry_max_wait: float = 4.0,
        user_agent: str = "Mozilla/5.0 (compatible; YeoyeoBot/1.0)",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.cache = cache
        self.client = client
        self.export_url = export_url
        self.backup_path = backup_path
        self.api_reader = api_reader
        self.retry_attempts = retry_attempts
        self.retry_multiplier = retry_multiplier
        self.retry_max_wait = retry_max_wait
        self.user_agent = user_agent
        self.sleep = sleep
        self._lock = asyncio.Lock()

    async def get_csv(self) -> Tuple[str, str]:
        """Return (csv_text, source). Concurrent cache misses resolve once."""
        entry = self.cache.get()
        if entry is not None:
            return entry.csv_text, SOURCE_CACHE

        async with self._lock:
            entry = self.cache.get()
            if entry is not None:
                return entry.csv_text, SOURCE_CACHE

            csv_text, source = await self.resolve()
            self.cache.set(csv_text, source)
            return csv_text, source

    def _tiers(self) -> List[Tuple[str, Callable[[], Awaitable[Optional[str]]]]]:
        tiers = []
        if self.api_reader is not None:
            tiers.append((SOURCE_SHEETS_API, self.api_reader.try_fetch))
        tiers.append((SOURCE_EXPORT, self.fetch_export))
        tiers.append((SOURCE_BACKUP, self.fetch_backup))
        tiers.append((SOURCE_FALLBACK, self.fetch_fallback))
        return tiers

    async def resolve(self) -> Tuple[str, str]:
        """Try each tier in order, bypassing the cache."""
        for source, fetch in self._tiers():
            try:
                csv_text = await fetch()
            except Exception as e:
                logger.warning(f"Sheet tier '{source}' failed: {e}")
                continue

            if csv_text and csv_text.strip():
                logger.info(f"Sheet CSV served from '{source}' ({len(csv_text)} chars)")
                return csv_text, source
            logger.warning(f"Sheet tier '{source}' returned no data")

        raise ProxyExhaustedError("All sheet tiers failed")

    async def fetch_export(self) -> str:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=self.retry_multiplier, max=self.retry_max_wait),
            retry=retry_if_exception_type((httpx.HTTPError, InvalidExportError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
            sleep=self.sleep,
        )
        async for attempt in retrying:
            with attempt:
                response = await self.client.get(
                    self.export_url,
                    headers={"User-Agent": self.user_agent},
                    follow_redirects=True,
                )
                response.raise_for_status()
                csv_text = response.text
                if not looks_like_csv(csv_text):
                    raise InvalidExportError("Export body is not CSV (login or consent page?)")
                return csv_text

    async def fetch_backup(self) -> Optional[str]:
        return load_backup_csv(self.backup_path)

    async def fetch_fallback(self) -> str:
        return FALLBACK_CSV
