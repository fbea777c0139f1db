"""
Product Query Service
Read-only aggregation over the product store.
"""

import logging
from typing import List

from ...db.store import ProductStore
from ..models.products import (
    CategoryStat,
    PriceRangeStat,
    ProductSample,
    ProductStats,
    ProductStatus,
    ProductSummary,
)

logger = logging.getLogger(__name__)

TOP_CATEGORIES_LIMIT = 10
SAMPLE_SIZE = 5

# (label, inclusive upper bound), ascending
PRICE_BUCKETS = (
    ("Under $10", 10),
    ("$10-$50", 50),
    ("$50-$100", 100),
)
PRICE_OVERFLOW_BUCKET = "Over $100"

STATUS_LOADED = "Products loaded successfully"
STATUS_NOT_LOADED = "Still loading or failed to load products"
STATS_ESTIMATED_TIME = "10-15+ seconds for 10,000+ products"


class ProductService:
    """
    Service for product summaries and listings.

    Safe to call at any point of the startup sync, including before the
    first batch lands: an empty store yields explicit "not loaded" payloads,
    never an error. Payloads built from several queries read them from one
    store snapshot, so every field reflects the same committed batches.
    """

    def __init__(self, store: ProductStore):
        """
        Initialize product service.

        Args:
            store: Product store to read from
        """
        self.store = store

    def get_summary(self) -> ProductSummary:
        """Total count, distinct categories, average price and load status."""
        with self.store.snapshot() as snapshot:
            total = snapshot.count()
            categories = snapshot.count_distinct("category")
            average = snapshot.average("price") if total > 0 else None

        return ProductSummary(
            total_products=total,
            total_categories=categories,
            average_price=round(average, 2) if average is not None else 0.0,
            status=STATUS_LOADED if total > 0 else STATUS_NOT_LOADED,
        )

    def get_status(self) -> ProductStatus:
        """Total count, latest update time and a descriptive note."""
        with self.store.snapshot() as snapshot:
            total = snapshot.count()
            last_updated = snapshot.maximum("updated_at") if total > 0 else None

        if total > 0:
            note = (
                f"Database contains {total:,} products synced from the catalog API."
            )
        else:
            note = "Database is empty or still loading products from external API"

        return ProductStatus(total_products=total, last_updated=last_updated, note=note)

    def get_stats(self) -> ProductStats:
        """
        Top categories and price distribution.

        Returns a "not loaded yet" payload with zero counts while the store
        is empty.
        """
        with self.store.snapshot() as snapshot:
            total = snapshot.count()
            if total > 0:
                groups = snapshot.group_average(
                    "price", by="category", limit=TOP_CATEGORIES_LIMIT
                )
                buckets = snapshot.bucket_counts("price", PRICE_BUCKETS, PRICE_OVERFLOW_BUCKET)

        if total == 0:
            return ProductStats(
                message=(
                    "No products loaded yet. The bulk products sync from the catalog API "
                    "is still in progress or failed."
                ),
                note="Statistics become available once the first batch of products is saved.",
                products_count=0,
                estimated_time=STATS_ESTIMATED_TIME,
            )

        top_categories = [
            CategoryStat(category=group.key, count=group.count, avg_price=round(group.average, 2))
            for group in groups
        ]

        labels = [name for name, _ in PRICE_BUCKETS] + [PRICE_OVERFLOW_BUCKET]
        price_distribution = [
            PriceRangeStat(price_range=label, count=buckets.get(label, 0)) for label in labels
        ]

        return ProductStats(
            message="Products statistics",
            note="Computed from products committed so far.",
            products_count=total,
            total_products=total,
            categories=len(top_categories),
            top_categories=top_categories,
            price_distribution=price_distribution,
        )

    def get_categories(self) -> List[str]:
        """Distinct category names, alphabetically ordered."""
        return self.store.distinct("category")

    def get_sample(self) -> List[ProductSample]:
        """First products in store order, or an empty list."""
        return [
            ProductSample(
                id=product.id,
                title=product.title,
                category=product.category,
                price=product.price,
                rating=product.rating,
                rating_count=product.rating_count,
            )
            for product in self.store.first(SAMPLE_SIZE)
        ]
