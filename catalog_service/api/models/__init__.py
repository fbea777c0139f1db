"""
Pydantic Models
Request/response models for API endpoints.
"""

from .products import (
    CategoriesResponse,
    CategoryStat,
    PriceRangeStat,
    ProductSample,
    ProductStats,
    ProductStatus,
    ProductSummary,
    SampleResponse,
    StatusResponse,
    SummaryResponse,
)

__all__ = [
    "CategoriesResponse",
    "CategoryStat",
    "PriceRangeStat",
    "ProductSample",
    "ProductStats",
    "ProductStatus",
    "ProductSummary",
    "SampleResponse",
    "StatusResponse",
    "SummaryResponse",
]
