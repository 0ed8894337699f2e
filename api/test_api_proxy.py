"""
Tests for the sheet CSV proxy tiers and its cache.
"""
import asyncio
import json
from types import SimpleNamespace

import httpx
import pytest

from listings.sheets import FALLBACK_CSV, parse_listings_csv

from api.cache import CsvCache
from api.proxy import (
    SOURCE_BACKUP,
    SOURCE_CACHE,
    SOURCE_EXPORT,
    SOURCE_FALLBACK,
    SOURCE_SHEETS_API,
    SheetsApiReader,
    SheetsProxy,
    build_api_reader
)

EXPORT_URL = "https://docs.google.com/spreadsheets/d/sheet123/export?format=csv&gid=0"
LOGIN_PAGE = "<!DOCTYPE html><html><head><title>Sign in</title></head></html>"
SHEET_VALUES = [
    ["", "단지명", "동", "종류", "가격", "평형", "공급평형", "층", "향", "매물특징", "비고", "완료"],
    ["", "유니시티 2단지", "207동", "매매", "11억 5,000", "47(48)", "", "", "", "호수뷰, 확장형", "", "FALSE"],
    ["", "유니시티 1단지", "110동", "전세", "5억"],
]


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class Upstream:
    """Records requests and answers export calls from a scripted list of bodies."""

    def __init__(self, export_bodies=(), api_values=None, api_status=200):
        self.export_bodies = list(export_bodies)
        self.api_values = api_values
        self.api_status = api_status
        self.export_calls = 0
        self.api_calls = 0

    def __call__(self, request):
        if request.url.host == "sheets.googleapis.com":
            self.api_calls += 1
            assert request.url.params["key"] == "secret"
            return httpx.Response(self.api_status, json={"values": self.api_values or []})

        self.export_calls += 1
        assert request.headers["User-Agent"].startswith("Mozilla/5.0")
        body = self.export_bodies.pop(0) if self.export_bodies else LOGIN_PAGE
        if isinstance(body, int):
            return httpx.Response(body)
        return httpx.Response(200, text=body)


@pytest.fixture
def backup_path(tmp_path):
    path = tmp_path / "listings-backup.json"
    path.write_text(json.dumps([
        {"type": "월세", "complex": "백업단지", "size": "15", "unit": "1층",
         "price": "5,000/250", "features": "역세권, 코너", "category": "unicity"},
    ], ensure_ascii=False), encoding="utf-8")
    return str(path)


def make_proxy(upstream, backup_path, clock=None, with_api=False):
    client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    api_reader = SheetsApiReader(client, "sheet123", "secret", "A1:L500") if with_api else None
    return SheetsProxy(
        cache=CsvCache(ttl_seconds=1800, clock=clock or FakeClock()),
        client=client,
        export_url=EXPORT_URL,
        backup_path=backup_path,
        api_reader=api_reader,
        retry_attempts=3,
        retry_multiplier=0,
    )


def get_csv(proxy):
    return asyncio.run(proxy.get_csv())


def test_export_tier(backup_path):
    upstream = Upstream(export_bodies=[FALLBACK_CSV])
    csv_text, source = get_csv(make_proxy(upstream, backup_path))
    assert source == SOURCE_EXPORT
    assert csv_text == FALLBACK_CSV
    assert upstream.export_calls == 1


def test_export_retries_until_csv(backup_path):
    """HTML and error responses are retried; the third attempt succeeds."""
    upstream = Upstream(export_bodies=[LOGIN_PAGE, 503, FALLBACK_CSV])
    csv_text, source = get_csv(make_proxy(upstream, backup_path))
    assert source == SOURCE_EXPORT
    assert upstream.export_calls == 3


def test_export_rejects_single_line_body(backup_path):
    upstream = Upstream(export_bodies=["just,one,line"] * 3)
    _, source = get_csv(make_proxy(upstream, backup_path))
    assert source == SOURCE_BACKUP


def test_backup_tier_after_exhausted_retries(backup_path):
    upstream = Upstream()
    csv_text, source = get_csv(make_proxy(upstream, backup_path))
    assert source == SOURCE_BACKUP
    assert upstream.export_calls == 3
    listings = parse_listings_csv(csv_text)
    assert [(x.complex, x.price, x.features) for x in listings] == [
        ("백업단지", "5,000/250", "역세권, 코너")
    ]


def test_fallback_tier_when_backup_missing(tmp_path):
    upstream = Upstream()
    csv_text, source = get_csv(make_proxy(upstream, str(tmp_path / "missing.json")))
    assert source == SOURCE_FALLBACK
    assert csv_text == FALLBACK_CSV


def test_fallback_tier_when_backup_empty(tmp_path):
    path = tmp_path / "empty.json"
    path.write_text("[]", encoding="utf-8")
    _, source = get_csv(make_proxy(Upstream(), str(path)))
    assert source == SOURCE_FALLBACK


def test_sheets_api_tier(backup_path):
    upstream = Upstream(api_values=SHEET_VALUES)
    csv_text, source = get_csv(make_proxy(upstream, backup_path, with_api=True))
    assert source == SOURCE_SHEETS_API
    assert upstream.export_calls == 0

    lines = csv_text.splitlines()
    assert lines[1].endswith('"호수뷰, 확장형",,FALSE')
    assert lines[2] == ",유니시티 1단지,110동,전세,5억,,,,,,,"
    listings = parse_listings_csv(csv_text)
    assert [x.complex for x in listings] == ["유니시티 2단지", "유니시티 1단지"]
    assert listings[0].price == "11억 5,000"


def test_sheets_api_failure_falls_to_export(backup_path):
    upstream = Upstream(export_bodies=[FALLBACK_CSV], api_status=403)
    _, source = get_csv(make_proxy(upstream, backup_path, with_api=True))
    assert source == SOURCE_EXPORT
    assert upstream.api_calls == 1


def test_sheets_api_empty_values_fall_to_export(backup_path):
    upstream = Upstream(export_bodies=[FALLBACK_CSV], api_values=[])
    _, source = get_csv(make_proxy(upstream, backup_path, with_api=True))
    assert source == SOURCE_EXPORT


def test_cache_hit_and_expiry(backup_path):
    clock = FakeClock()
    upstream = Upstream(export_bodies=[FALLBACK_CSV, FALLBACK_CSV])
    proxy = make_proxy(upstream, backup_path, clock=clock)

    assert get_csv(proxy)[1] == SOURCE_EXPORT
    clock.now += 1799
    csv_text, source = get_csv(proxy)
    assert source == SOURCE_CACHE
    assert csv_text == FALLBACK_CSV
    assert upstream.export_calls == 1

    clock.now += 1
    assert get_csv(proxy)[1] == SOURCE_EXPORT
    assert upstream.export_calls == 2


def test_concurrent_misses_resolve_once(backup_path):
    upstream = Upstream(export_bodies=[FALLBACK_CSV])
    proxy = make_proxy(upstream, backup_path)

    async def fetch_twice():
        return await asyncio.gather(proxy.get_csv(), proxy.get_csv())

    results = asyncio.run(fetch_twice())
    assert sorted(source for _, source in results) == [SOURCE_CACHE, SOURCE_EXPORT]
    assert upstream.export_calls == 1


def test_cache_object():
    clock = FakeClock()
    cache = CsvCache(ttl_seconds=10, clock=clock)
    assert cache.is_expired()
    assert cache.get() is None

    cache.set("a,b\nc,d", SOURCE_BACKUP)
    assert cache.get().source == SOURCE_BACKUP
    clock.now += 10
    assert cache.is_expired()
    assert cache.get() is None

    cache.set("a,b\nc,d", SOURCE_BACKUP)
    cache.clear()
    assert cache.get() is None


def test_api_reader_requires_key():
    client = httpx.AsyncClient()
    assert build_api_reader(SimpleNamespace(GOOGLE_SHEETS_API_KEY=""), client) is None

    settings = SimpleNamespace(
        GOOGLE_SHEETS_API_KEY="secret", SHEET_ID="sheet123", SHEET_RANGE="A1:L500"
    )
    reader = build_api_reader(settings, client)
    assert isinstance(reader, SheetsApiReader)
    assert reader.url.endswith("/spreadsheets/sheet123/values/A1:L500")


def test_export_backoff_waits(backup_path):
    """Failed export attempts back off 1 s, 2 s, 4 s before the backup tier."""
    waits = []

    async def record_sleep(seconds):
        waits.append(seconds)

    upstream = Upstream()
    proxy = SheetsProxy(
        cache=CsvCache(ttl_seconds=1800, clock=FakeClock()),
        client=httpx.AsyncClient(transport=httpx.MockTransport(upstream)),
        export_url=EXPORT_URL,
        backup_path=backup_path,
        sleep=record_sleep,
    )
    _, source = get_csv(proxy)
    assert source == SOURCE_BACKUP
    assert upstream.export_calls == 4
    assert waits == [1, 2, 4]
