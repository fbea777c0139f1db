"""
Product Store
Append-only keyed storage for ingested products.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from sqlalchemy import case, delete, func, select
from sqlalchemy.orm import Session, sessionmaker

from .models import Base, Product

logger = logging.getLogger(__name__)


@dataclass
class GroupAverage:
    """Row count and average of one field for a single group key."""

    key: Any
    count: int
    average: float


def _column(field: str):
    """Resolve a column name on the products table."""
    try:
        return Product.__table__.c[field]
    except KeyError:
        raise ValueError(f"Unknown product field: {field}")


class ProductSnapshot:
    """
    Read queries bound to one session.

    Inside ProductStore.snapshot() every query runs in the same read
    transaction, so they all see the same set of committed batches.
    """

    def __init__(self, session: Session):
        self.session = session

    def count(self) -> int:
        """Total number of stored products."""
        return self.session.scalar(select(func.count()).select_from(Product)) or 0

    def distinct(self, field: str) -> List[Any]:
        """Distinct values of a column, in ascending order."""
        column = _column(field)
        return list(self.session.scalars(select(column).distinct().order_by(column)))

    def count_distinct(self, field: str) -> int:
        """Number of distinct values of a column."""
        column = _column(field)
        return self.session.scalar(select(func.count(func.distinct(column)))) or 0

    def average(self, field: str) -> Optional[float]:
        """Average of a numeric column, or None when the store is empty."""
        value = self.session.scalar(select(func.avg(_column(field))))
        return float(value) if value is not None else None

    def maximum(self, field: str) -> Optional[Any]:
        """Largest value of a column, or None when the store is empty."""
        return self.session.scalar(select(func.max(_column(field))))

    def group_average(self, field: str, by: str, limit: Optional[int] = None) -> List[GroupAverage]:
        """
        Group rows and average a numeric column per group.

        Groups are ordered by row count descending, then by key.

        Args:
            field: Column to average
            by: Column to group by
            limit: Maximum number of groups to return

        Returns:
            List of GroupAverage rows
        """
        value_column = _column(field)
        key_column = _column(by)
        row_count = func.count().label("row_count")

        query = (
            select(key_column, row_count, func.avg(value_column))
            .group_by(key_column)
            .order_by(row_count.desc(), key_column)
        )
        if limit is not None:
            query = query.limit(limit)

        rows = self.session.execute(query).all()
        return [
            GroupAverage(key=key, count=count, average=float(avg or 0.0))
            for key, count, avg in rows
        ]

    def bucket_counts(self, field: str, buckets: Sequence[Tuple[str, float]], overflow: str) -> Dict[str, int]:
        """
        Count rows per value range of a numeric column.

        Args:
            field: Numeric column to bucket
            buckets: (label, inclusive upper bound) pairs, ascending
            overflow: Label for values above the last bound

        Returns:
            Mapping of label -> row count for labels that have rows
        """
        column = _column(field)
        label = case(*[(column <= bound, name) for name, bound in buckets], else_=overflow)

        rows = self.session.execute(select(label, func.count()).group_by(label)).all()
        return {name: count for name, count in rows}

    def first(self, limit: int) -> List[Product]:
        """First rows in insertion order."""
        return list(self.session.scalars(select(Product).order_by(Product.id).limit(limit)))


class ProductStore:
    """
    Data access for the products table.

    Single reads open their own session. Reads that must agree with each
    other go through snapshot(). Each write is a single transaction, so
    readers only ever see whole batches.
    """

    def __init__(self, session_factory: sessionmaker):
        """
        Initialize product store.

        Args:
            session_factory: SQLAlchemy session factory
        """
        self.session_factory = session_factory

    def create_schema(self) -> None:
        """Create the products table if it does not exist."""
        with self.session_factory() as session:
            Base.metadata.create_all(bind=session.get_bind())

    def insert_batch(self, records: Sequence[Dict[str, Any]]) -> int:
        """
        Insert a batch of product rows in one transaction.

        Args:
            records: Column-name -> value mappings

        Returns:
            Number of rows inserted
        """
        if not records:
            return 0

        with self.session_factory() as session:
            with session.begin():
                session.add_all([Product(**record) for record in records])

        logger.debug(f"Committed batch of {len(records)} products")
        return len(records)

    @contextmanager
    def snapshot(self) -> Iterator[ProductSnapshot]:
        """
        Run several reads against one consistent view of the store.

        Usage:
            with store.snapshot() as snapshot:
                total = snapshot.count()
                average = snapshot.average("price")
        """
        with self.session_factory() as session:
            with session.begin():
                yield ProductSnapshot(session)

    def count(self) -> int:
        """Total number of stored products."""
        with self.snapshot() as snapshot:
            return snapshot.count()

    def distinct(self, field: str) -> List[Any]:
        """Distinct values of a column, in ascending order."""
        with self.snapshot() as snapshot:
            return snapshot.distinct(field)

    def count_distinct(self, field: str) -> int:
        """Number of distinct values of a column."""
        with self.snapshot() as snapshot:
            return snapshot.count_distinct(field)

    def average(self, field: str) -> Optional[float]:
        """Average of a numeric column, or None when the store is empty."""
        with self.snapshot() as snapshot:
            return snapshot.average(field)

    def maximum(self, field: str) -> Optional[Any]:
        """Largest value of a column, or None when the store is empty."""
        with self.snapshot() as snapshot:
            return snapshot.maximum(field)

    def group_average(self, field: str, by: str, limit: Optional[int] = None) -> List[GroupAverage]:
        """Grouped averages; see ProductSnapshot.group_average."""
        with self.snapshot() as snapshot:
            return snapshot.group_average(field, by, limit)

    def bucket_counts(self, field: str, buckets: Sequence[Tuple[str, float]], overflow: str) -> Dict[str, int]:
        """Range counts; see ProductSnapshot.bucket_counts."""
        with self.snapshot() as snapshot:
            return snapshot.bucket_counts(field, buckets, overflow)

    def first(self, limit: int) -> List[Product]:
        """First rows in insertion order."""
        with self.snapshot() as snapshot:
            return snapshot.first(limit)

    def delete_all(self) -> int:
        """
        Remove every stored product.

        Returns:
            Number of rows deleted
        """
        with self.session_factory() as session:
            with session.begin():
                result = session.execute(delete(Product))

        deleted = result.rowcount or 0
        logger.info(f"Product store cleared: {deleted} rows removed")
        return deleted
