"""
Catalog Sync Engine
Pages through the external catalog and appends each page to the product store.
"""

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..db.store import ProductStore
from ..errors import Cancelled, SourceUnavailable, SyncFailed
from ..models.product import CatalogProduct, utcnow
from ..startup.cancellation import CancellationSignal
from ..startup.events import EventSink, LoggingEventSink
from .catalog_client import CatalogClient

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """
    Outcome of one sync run.

    total_products_synced is re-read from the store when the run ends.
    """

    started_at: datetime
    completed_at: Optional[datetime] = None
    duration: timedelta = timedelta(0)
    total_products_synced: int = 0
    pages_fetched: int = 0
    cancelled: bool = False
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": round(self.duration.total_seconds(), 3),
            "total_products_synced": self.total_products_synced,
            "pages_fetched": self.pages_fetched,
            "cancelled": self.cancelled,
            "error_message": self.error_message,
        }


class SyncEngine:
    """
    Sequential paginated ingestion.

    Pages are requested strictly in increasing offset order, one at a time,
    with a fixed delay between committed batches. Each page is committed as
    one transaction, so readers never see part of a page.
    """

    def __init__(
        self,
        client: CatalogClient,
        store: ProductStore,
        page_size: int = 10,
        target_count: int = 150,
        batch_delay: float = 10.0,
        events: Optional[EventSink] = None,
    ):
        """
        Initialize sync engine.

        Args:
            client: Catalog source client
            store: Product store to append into
            page_size: Items requested per page
            target_count: Stop once this many products are stored
            batch_delay: Seconds to wait between batches while below target
            events: Event sink for progress events
        """
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        if target_count < 0:
            raise ValueError("target_count must not be negative")

        self.client = client
        self.store = store
        self.page_size = page_size
        self.target_count = target_count
        self.batch_delay = batch_delay
        self.events = events or LoggingEventSink()

    @property
    def max_pages(self) -> int:
        """Upper bound on page requests for one run."""
        return math.ceil(self.target_count / self.page_size)

    async def sync(self, signal: CancellationSignal) -> SyncResult:
        """
        Run the fetch-and-store loop.

        Cancellation ends the loop cleanly and returns what was stored so far.

        Args:
            signal: Shared shutdown signal

        Returns:
            SyncResult for this run

        Raises:
            SyncFailed: On transport, deserialization or store errors
        """
        result = SyncResult(started_at=datetime.now(timezone.utc))
        started = time.monotonic()

        logger.info("Starting bulk products sync from catalog API...")
        self.events.emit(
            "sync.started", page_size=self.page_size, target_count=self.target_count
        )

        try:
            await self._fetch_and_save(signal, result)
            result.total_products_synced = await asyncio.to_thread(self.store.count)
        except Exception as e:
            result.error_message = str(e) or e.__class__.__name__
            await self._recount_after_failure(result)
            self._stamp(result, started)
            logger.error(f"Error during bulk products sync: {e}", exc_info=True)
            self.events.emit(
                "sync.failed",
                error=result.error_message,
                total_products_synced=result.total_products_synced,
            )
            raise SyncFailed(
                f"Catalog sync failed: {result.error_message}",
                result=result,
                details={"error_type": e.__class__.__name__},
            ) from e

        self._stamp(result, started)
        logger.info(
            f"Bulk products sync finished in {result.duration.total_seconds():.2f} seconds, "
            f"{result.total_products_synced:,} products in store"
        )
        self.events.emit(
            "sync.completed",
            total_products_synced=result.total_products_synced,
            pages_fetched=result.pages_fetched,
            cancelled=result.cancelled,
        )
        return result

    async def _fetch_and_save(self, signal: CancellationSignal, result: SyncResult) -> None:
        """Page loop. Mutates result.pages_fetched and result.cancelled."""
        total_saved = 0

        for page in range(self.max_pages):
            offset = page * self.page_size
            logger.info(
                f"Fetching products page {page + 1} (offset: {offset}, limit: {self.page_size})..."
            )

            try:
                items = await signal.guard(
                    self.client.fetch_page(self.page_size, offset),
                    operation=f"page fetch at offset {offset}",
                )
            except Cancelled:
                self._mark_cancelled(result, stage="fetch", offset=offset)
                break
            except SourceUnavailable as e:
                logger.warning(f"API call failed for page {page + 1}: {e.status_code}")
                self.events.emit(
                    "sync.source_unavailable", offset=offset, status_code=e.status_code
                )
                break

            result.pages_fetched += 1
            self.events.emit("sync.page_fetched", page=page + 1, offset=offset, items=len(items))

            if not items:
                logger.info(f"No more products available. Total fetched: {total_saved}")
                self.events.emit("sync.source_exhausted", offset=offset)
                break

            records = self._transform(items, offset)
            saved = await asyncio.to_thread(self.store.insert_batch, records)
            total_saved += saved

            logger.info(f"Batch saved successfully. Total products: {total_saved:,}")
            self.events.emit(
                "sync.batch_committed", page=page + 1, offset=offset, saved=saved, total=total_saved
            )

            if total_saved >= self.target_count:
                break

            try:
                await signal.sleep(self.batch_delay, operation="inter-batch delay")
            except Cancelled:
                self._mark_cancelled(result, stage="delay", offset=offset)
                break

        logger.info(f"Products sync loop ended. Products saved this run: {total_saved:,}")

    def _transform(self, items: List[Any], offset: int) -> List[Dict[str, Any]]:
        """Validate raw items and map them to store rows, skipping invalid ones."""
        now = utcnow()
        records = []

        for index, item in enumerate(items):
            try:
                product = CatalogProduct.model_validate(item)
            except ValidationError as e:
                logger.warning(
                    f"Skipping invalid catalog item {offset + index}: {e.error_count()} errors"
                )
                self.events.emit("sync.item_rejected", position=offset + index)
                continue
            records.append(product.to_record(now))

        return records

    def _mark_cancelled(self, result: SyncResult, stage: str, offset: int) -> None:
        result.cancelled = True
        logger.info("Products sync was cancelled")
        self.events.emit("sync.cancelled", stage=stage, offset=offset)

    async def _recount_after_failure(self, result: SyncResult) -> None:
        try:
            result.total_products_synced = await asyncio.to_thread(self.store.count)
        except Exception as e:
            logger.warning(f"Could not re-count products after sync failure: {e}")

    @staticmethod
    def _stamp(result: SyncResult, started: float) -> None:
        result.duration = timedelta(seconds=time.monotonic() - started)
        result.completed_at = result.started_at + result.duration
