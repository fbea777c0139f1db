"""
API Services
Business logic services for API endpoints.
"""

from .product_service import ProductService

__all__ = [
    "ProductService",
]
