"""
Unit tests for the product query service.
"""

import asyncio
import threading

import pytest

from catalog_service.db.store import ProductSnapshot
from catalog_service.ingestion.catalog_client import CatalogClient
from catalog_service.ingestion.sync_engine import SyncEngine
from catalog_service.startup.cancellation import CancellationSignal
from catalog_service.api.services.product_service import (
    STATUS_LOADED,
    STATUS_NOT_LOADED,
    ProductService,
)


@pytest.fixture
def service(store):
    return ProductService(store)


class TestEmptyStore:
    """Queries before the first batch is committed."""

    def test_summary(self, service):
        summary = service.get_summary()

        assert summary.total_products == 0
        assert summary.total_categories == 0
        assert summary.average_price == 0.0
        assert summary.status == STATUS_NOT_LOADED

    def test_status(self, service):
        status = service.get_status()

        assert status.total_products == 0
        assert status.last_updated is None
        assert "empty" in status.note

    def test_stats(self, service):
        stats = service.get_stats()

        assert stats.products_count == 0
        assert stats.estimated_time
        assert stats.top_categories == []
        assert stats.price_distribution == []

    def test_categories_and_sample(self, service):
        assert service.get_categories() == []
        assert service.get_sample() == []


class TestLoadedStore:
    """Queries over committed products."""

    def test_summary(self, service, store, make_record):
        store.insert_batch([
            make_record("A", "Shoes", "10.00"),
            make_record("B", "Shoes", "20.00"),
            make_record("C", "Clothes", "33.33"),
        ])

        summary = service.get_summary()

        assert summary.total_products == 3
        assert summary.total_categories == 2
        assert summary.average_price == pytest.approx(21.11)
        assert summary.status == STATUS_LOADED

    def test_status_reports_latest_update(self, service, store, make_record):
        store.insert_batch([make_record("A")])

        status = service.get_status()

        assert status.total_products == 1
        assert status.last_updated is not None
        assert "1 products" in status.note

    def test_price_distribution_buckets(self, service, store, make_record):
        store.insert_batch([
            make_record("a", price="5.00"),
            make_record("b", price="10.00"),
            make_record("c", price="10.01"),
            make_record("d", price="50.00"),
            make_record("e", price="75.00"),
            make_record("f", price="100.00"),
            make_record("g", price="100.01"),
            make_record("h", price="999.00"),
        ])

        stats = service.get_stats()

        assert [(b.price_range, b.count) for b in stats.price_distribution] == [
            ("Under $10", 2),
            ("$10-$50", 2),
            ("$50-$100", 2),
            ("Over $100", 2),
        ]
        assert stats.products_count == 8
        assert stats.total_products == 8

    def test_empty_buckets_are_reported_as_zero(self, service, store, make_record):
        store.insert_batch([make_record("a", price="500.00")])

        counts = {b.price_range: b.count for b in service.get_stats().price_distribution}

        assert counts == {"Under $10": 0, "$10-$50": 0, "$50-$100": 0, "Over $100": 1}

    def test_top_categories_ordered_by_count(self, service, store, make_record):
        records = [make_record(f"s{i}", "Shoes", "20.00") for i in range(3)]
        records += [make_record(f"c{i}", "Clothes", "40.00") for i in range(2)]
        records += [make_record("e", "Electronics", "300.00")]
        store.insert_batch(records)

        stats = service.get_stats()

        assert [(c.category, c.count, c.avg_price) for c in stats.top_categories] == [
            ("Shoes", 3, 20.0),
            ("Clothes", 2, 40.0),
            ("Electronics", 1, 300.0),
        ]
        assert stats.categories == 3

    def test_top_categories_limited_to_ten(self, service, store, make_record):
        store.insert_batch([make_record(f"p{i}", f"Category {i:02d}") for i in range(12)])

        stats = service.get_stats()

        assert len(stats.top_categories) == 10
        # equal counts fall back to name order
        assert stats.top_categories[0].category == "Category 00"

    def test_categories_sorted_and_stable(self, service, store, make_record):
        store.insert_batch([
            make_record("a", "Shoes"),
            make_record("b", "Clothes"),
            make_record("c", "Shoes"),
            make_record("d", "Electronics"),
        ])

        first = service.get_categories()

        assert first == ["Clothes", "Electronics", "Shoes"]
        assert service.get_categories() == first

    def test_sample_is_first_five_in_store_order(self, service, store, make_record):
        store.insert_batch([make_record(f"Product {i}") for i in range(8)])

        sample = service.get_sample()

        assert [p.title for p in sample] == [f"Product {i}" for i in range(5)]
        assert all(p.rating == 0.0 and p.rating_count == 0 for p in sample)


class TestReadsDuringSync:
    """Payloads stay self-consistent while batches are being committed."""

    def test_summary_ignores_batch_committed_between_queries(
        self, service, store, make_record, monkeypatch
    ):
        store.insert_batch([make_record(f"a{i}", f"Old {i}", "10.00") for i in range(10)])
        original_count = ProductSnapshot.count

        def count_then_commit(snapshot):
            total = original_count(snapshot)
            store.insert_batch([make_record(f"b{i}", f"New {i}", "100.00") for i in range(10)])
            return total

        monkeypatch.setattr(ProductSnapshot, "count", count_then_commit)

        summary = service.get_summary()

        assert summary.total_products == 10
        assert summary.total_categories == 10
        assert summary.average_price == 10.0

    def test_stats_ignore_batch_committed_between_queries(
        self, service, store, make_record, monkeypatch
    ):
        store.insert_batch([make_record(f"a{i}", "Shoes", "5.00") for i in range(10)])
        original_count = ProductSnapshot.count

        def count_then_commit(snapshot):
            total = original_count(snapshot)
            store.insert_batch([make_record(f"b{i}", "Clothes", "500.00") for i in range(10)])
            return total

        monkeypatch.setattr(ProductSnapshot, "count", count_then_commit)

        stats = service.get_stats()

        assert stats.products_count == 10
        assert [(c.category, c.count) for c in stats.top_categories] == [("Shoes", 10)]
        assert sum(b.count for b in stats.price_distribution) == 10

    @pytest.mark.asyncio
    async def test_polling_during_sync_sees_whole_pages_only(self, service, store, fake_catalog, events):
        page_size = 50
        fake_catalog.total_items = 1000
        client = CatalogClient("https://catalog.test/api/v1", client=fake_catalog.http_client())
        engine = SyncEngine(
            client, store, page_size=page_size, target_count=1000, batch_delay=0, events=events
        )

        observations = []
        errors = []
        done = threading.Event()

        def poll():
            try:
                while not done.is_set():
                    observations.append(
                        (service.get_summary(), service.get_stats(), service.get_sample())
                    )
            except Exception as e:
                errors.append(e)

        poller = threading.Thread(target=poll)
        poller.start()
        try:
            result = await engine.sync(CancellationSignal())
        finally:
            done.set()
            await asyncio.to_thread(poller.join)
        observations.append((service.get_summary(), service.get_stats(), service.get_sample()))

        assert errors == []
        assert result.total_products_synced == 1000
        assert len(observations) > 1

        for summary, stats, sample in observations:
            assert summary.total_products % page_size == 0
            # every page holds all three generated categories
            assert summary.total_categories == (3 if summary.total_products else 0)
            assert stats.products_count % page_size == 0
            assert sum(b.count for b in stats.price_distribution) == stats.products_count
            assert sum(c.count for c in stats.top_categories) == stats.products_count
            assert len(sample) in (0, 5)
