"""
Tests for the HTTP routes, with collaborators swapped through dependency overrides.
"""
import pytest
from fastapi.testclient import TestClient

from listings.history import JsonFileStorage, SearchHistory
from listings.sheets import DEFAULT_LISTINGS, FALLBACK_CSV
from listings.source import ListingBoard

from api.dependencies import get_board, get_history, get_proxy
from api.main import app
from api.proxy import ProxyExhaustedError


class StubProxy:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    async def get_csv(self):
        if self.error:
            raise self.error
        return self.result


class StubSource:
    def __init__(self, listings):
        self.listings = listings

    async def fetch_listings(self):
        return list(self.listings)


@pytest.fixture
def board():
    return ListingBoard(StubSource(DEFAULT_LISTINGS[:2]), initial=list(DEFAULT_LISTINGS[:2]))


@pytest.fixture
def client(tmp_path, board):
    history = SearchHistory(JsonFileStorage(str(tmp_path / "history.json")))
    app.dependency_overrides[get_proxy] = lambda: StubProxy(result=(FALLBACK_CSV, "export"))
    app.dependency_overrides[get_board] = lambda: board
    app.dependency_overrides[get_history] = lambda: history
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_sheets_endpoint(client):
    response = client.get("/api/sheets")
    assert response.status_code == 200
    assert response.headers["content-type"] == "text/csv; charset=utf-8"
    assert response.headers["x-data-source"] == "export"
    assert response.text == FALLBACK_CSV


def test_sheets_endpoint_cors(client):
    response = client.get("/api/sheets", headers={"Origin": "https://chatbot.example"})
    assert response.headers["access-control-allow-origin"] == "*"

    preflight = client.options(
        "/api/sheets",
        headers={"Origin": "https://chatbot.example", "Access-Control-Request-Method": "GET"},
    )
    assert preflight.status_code == 200
    assert preflight.headers["access-control-allow-origin"] == "*"

    assert client.options("/api/sheets").status_code == 200


def test_sheets_endpoint_total_failure(client):
    app.dependency_overrides[get_proxy] = lambda: StubProxy(error=ProxyExhaustedError("All sheet tiers failed"))
    response = client.get("/api/sheets")
    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "All sheet tiers failed"
    assert "error" in body


def test_backup_document(client):
    response = client.get("/data/listings-backup.json")
    assert response.status_code == 200
    data = response.json()
    assert isinstance(data, list)
    assert {"type", "complex", "size", "unit", "price", "features", "category"} <= set(data[0])


def test_listings_search(client):
    response = client.get("/api/listings", params={"q": "유니시티", "sort": "price-asc"})
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert [x["price"] for x in body["items"]] == ["8억 5,000", "10억 2,000"]
    assert body["items"][0]["price_value"] == 8.5


def test_listings_superlative_and_pagination(client):
    body = client.get("/api/listings", params={"q": "최고가"}).json()
    assert [x["complex"] for x in body["items"]] == ["유니시티 3단지"]

    body = client.get("/api/listings", params={"limit": 1, "offset": 1}).json()
    assert body["total"] == 2
    assert [x["complex"] for x in body["items"]] == ["유니시티 3단지"]


def test_listings_facets(client):
    body = client.get("/api/listings", params={"size": "35", "type": "매매"}).json()
    assert [x["size"] for x in body["items"]] == ["35A"]


def test_listings_rejects_unknown_sort(client):
    assert client.get("/api/listings", params={"sort": "cheapest"}).status_code == 422


def test_suggestions(client):
    body = client.get("/api/listings/suggestions", params={"q": "ㅇㄴㅅㅌ"}).json()
    assert body["suggestions"] == ["유니시티 4단지", "유니시티 3단지"]
    assert client.get("/api/listings/suggestions").json()["suggestions"] == []


def test_refresh(client, board):
    board.source = StubSource(DEFAULT_LISTINGS)
    body = client.post("/api/listings/refresh").json()
    assert body["count"] == len(DEFAULT_LISTINGS)
    assert body["refreshed_at"]
    assert client.get("/api/listings").json()["total"] == len(DEFAULT_LISTINGS)


def test_export_csv(client):
    response = client.get("/api/export/csv", params={"type": "매매"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "유니시티 4단지" in response.content.decode("utf-8-sig")


def test_search_history_roundtrip(client):
    assert client.get("/api/search-history").json() == {"items": []}
    client.post("/api/search-history", json={"query": "A"})
    client.post("/api/search-history", json={"query": "B"})
    body = client.post("/api/search-history", json={"query": "A"}).json()
    assert body["items"] == ["A", "B"]
    assert client.post("/api/search-history", json={"query": " "}).json()["items"] == ["A", "B"]
    assert client.delete("/api/search-history").json() == {"items": []}


def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "healthy"
