"""
Product Query Models
Pydantic models for the read-only product endpoints.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field


class ProductSummary(BaseModel):
    """Store-wide counts and average price."""

    total_products: int = Field(..., description="Number of stored products")
    total_categories: int = Field(..., description="Number of distinct categories")
    average_price: float = Field(..., description="Average price rounded to 2 decimals (0.0 if empty)")
    status: str = Field(..., description="Load status text")


class ProductStatus(BaseModel):
    """Store size and freshness."""

    total_products: int
    last_updated: Optional[datetime] = Field(None, description="Most recent updated_at, null if empty")
    note: str


class CategoryStat(BaseModel):
    """Row count and average price for one category."""

    category: str
    count: int
    avg_price: float


class PriceRangeStat(BaseModel):
    """Row count for one price bucket."""

    price_range: str
    count: int


class ProductStats(BaseModel):
    """
    Category and price statistics.

    While the store is empty only message, note, products_count and
    estimated_time are meaningful.
    """

    message: str
    note: str = ""
    products_count: int = 0
    estimated_time: str = ""
    total_products: int = 0
    categories: int = 0
    top_categories: List[CategoryStat] = Field(default_factory=list)
    price_distribution: List[PriceRangeStat] = Field(default_factory=list)


class ProductSample(BaseModel):
    """Single product in the sample listing."""

    id: int
    title: str
    category: str
    price: Decimal
    rating: float
    rating_count: int


class CategoriesResponse(BaseModel):
    categories: List[str]
    count: int
    note: str


class SampleResponse(BaseModel):
    message: str
    products: List[ProductSample]


class SummaryResponse(BaseModel):
    message: str
    timestamp: datetime
    database_status: ProductSummary


class StatusResponse(BaseModel):
    status: str
    time: datetime
    database_info: ProductStatus
