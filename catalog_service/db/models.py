"""
SQLAlchemy ORM Models
Database table definitions using SQLAlchemy ORM.
"""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Float, Index, Integer, Numeric, String, func
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Column maxima shared with the ingestion model
TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000
CATEGORY_MAX_LENGTH = 100
IMAGE_URL_MAX_LENGTH = 500


class Product(Base):
    """
    Product model.

    Rows are appended by the catalog sync and never updated afterwards.
    """
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    description = Column(String(DESCRIPTION_MAX_LENGTH), nullable=False, default='')
    category = Column(String(CATEGORY_MAX_LENGTH), nullable=False, default='')
    price = Column(Numeric(10, 2), nullable=False, default=0)
    image_url = Column(String(IMAGE_URL_MAX_LENGTH), nullable=False, default='')

    # Source does not provide ratings
    rating = Column(Float, nullable=False, default=0.0)
    rating_count = Column(Integer, nullable=False, default=0)

    # Timestamps (naive UTC)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        Index('ix_products_category', 'category'),
        Index('ix_products_price', 'price'),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, title={self.title!r}, category={self.category!r})>"
