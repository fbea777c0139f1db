"""
Ingestion Models
Pydantic models for items fetched from the external catalog.
"""

from .product import CatalogCategory, CatalogProduct, utcnow

__all__ = [
    "CatalogCategory",
    "CatalogProduct",
    "utcnow",
]
