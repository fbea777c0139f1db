"""
Pytest configuration and shared fixtures
"""

import asyncio
from typing import Any, Dict, List, Optional

import httpx
import pytest

from catalog_service.db.session import create_db_engine, create_session_factory
from catalog_service.db.store import ProductStore
from catalog_service.startup.events import EventSink

CATALOG_BASE_URL = "https://catalog.test/api/v1"


class RecordingEventSink(EventSink):
    """Event sink that keeps every event for assertions."""

    def __init__(self):
        self.events: List[tuple] = []

    def emit(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]

    def of(self, event: str) -> List[Dict[str, Any]]:
        return [fields for name, fields in self.events if name == event]


class FakeCatalog:
    """
    In-memory catalog source served through httpx.MockTransport.

    Serves `total_items` generated items in pages; individual offsets can be
    made to fail with a status code or to hang until the request is
    abandoned.
    """

    def __init__(self, total_items: int = 0, categories: Optional[List[str]] = None):
        self.total_items = total_items
        self.categories = categories or ["Clothes", "Electronics", "Shoes"]
        self.status_by_offset: Dict[int, int] = {}
        self.body_by_offset: Dict[int, Any] = {}
        self.hang_offsets: set = set()
        self.ping_status = 200
        self.ping_error: Optional[Exception] = None
        self.hang_ping = False
        self.page_requests: List[Dict[str, int]] = []
        self.ping_requests = 0

    def item(self, position: int) -> Dict[str, Any]:
        category = self.categories[position % len(self.categories)]
        return {
            "id": position + 1,
            "title": f"Product {position + 1}",
            "slug": f"product-{position + 1}",
            "description": f"Description for product {position + 1}",
            "price": 5 + (position * 7) % 150,
            "images": [f"https://img.test/{position + 1}.jpg"],
            "category": {"id": 1, "name": category, "image": f"https://img.test/{category}.jpg"},
        }

    async def handler(self, request: httpx.Request) -> httpx.Response:
        params = request.url.params
        if "offset" not in params:
            self.ping_requests += 1
            if self.hang_ping:
                await asyncio.sleep(3600)
            if self.ping_error is not None:
                raise self.ping_error
            return httpx.Response(self.ping_status, json=[self.item(0)] if self.total_items else [])

        limit = int(params["limit"])
        offset = int(params["offset"])
        self.page_requests.append({"limit": limit, "offset": offset})

        if offset in self.hang_offsets:
            await asyncio.sleep(3600)
        if offset in self.status_by_offset:
            return httpx.Response(self.status_by_offset[offset], json={"message": "error"})
        if offset in self.body_by_offset:
            return httpx.Response(200, json=self.body_by_offset[offset])

        end = min(offset + limit, self.total_items)
        return httpx.Response(200, json=[self.item(i) for i in range(offset, end)])

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def events():
    """Recording event sink."""
    return RecordingEventSink()


@pytest.fixture
def fake_catalog():
    """Empty fake catalog; tests set total_items and failure modes."""
    return FakeCatalog()


@pytest.fixture
def database_url(tmp_path):
    """File-backed SQLite URL so worker threads and readers share data."""
    return f"sqlite:///{tmp_path / 'products.db'}"


@pytest.fixture
def store(database_url):
    """Product store with the schema created."""
    engine = create_db_engine(database_url)
    product_store = ProductStore(create_session_factory(engine))
    product_store.create_schema()
    yield product_store
    engine.dispose()


@pytest.fixture
def make_record():
    """Factory for products-table rows."""
    from decimal import Decimal
    from catalog_service.models.product import utcnow

    def _make(title="Product", category="Clothes", price="10.00", **overrides):
        now = utcnow()
        record = {
            "title": title,
            "description": f"{title} description",
            "category": category,
            "price": Decimal(price),
            "image_url": "https://img.test/p.jpg",
            "rating": 0.0,
            "rating_count": 0,
            "created_at": now,
            "updated_at": now,
        }
        record.update(overrides)
        return record

    return _make
