"""
Product Endpoints
GET /api/v1/products            - Store summary
GET /api/v1/products/status     - Store size and freshness
GET /api/v1/products/stats      - Category and price statistics
GET /api/v1/products/categories - Distinct categories
GET /api/v1/products/sample     - First products in store order

Handlers are sync so they run in the threadpool and never wait on the
startup task.
"""

import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, status

from ..dependencies import get_product_service
from ..models.products import (
    CategoriesResponse,
    ProductStats,
    SampleResponse,
    StatusResponse,
    SummaryResponse,
)
from ..services.product_service import ProductService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/products", tags=["products"])


@router.get("", response_model=SummaryResponse, status_code=status.HTTP_200_OK)
def get_summary(service: ProductService = Depends(get_product_service)) -> SummaryResponse:
    """Store summary: counts, average price and load status."""
    logger.info("Product summary endpoint called")

    return SummaryResponse(
        message="Product catalog summary",
        timestamp=datetime.now(timezone.utc),
        database_status=service.get_summary(),
    )


@router.get("/status", response_model=StatusResponse, status_code=status.HTTP_200_OK)
def get_status(service: ProductService = Depends(get_product_service)) -> StatusResponse:
    """Store size and most recent update."""
    return StatusResponse(
        status="Product API is running",
        time=datetime.now(timezone.utc),
        database_info=service.get_status(),
    )


@router.get("/stats", response_model=ProductStats, status_code=status.HTTP_200_OK)
def get_stats(service: ProductService = Depends(get_product_service)) -> ProductStats:
    """Top categories and price distribution."""
    return service.get_stats()


@router.get("/categories", response_model=CategoriesResponse, status_code=status.HTTP_200_OK)
def get_categories(service: ProductService = Depends(get_product_service)) -> CategoriesResponse:
    """Distinct category names, alphabetically."""
    categories = service.get_categories()

    return CategoriesResponse(
        categories=categories,
        count=len(categories),
        note="Categories of products committed so far",
    )


@router.get("/sample", response_model=SampleResponse, status_code=status.HTTP_200_OK)
def get_sample(service: ProductService = Depends(get_product_service)) -> SampleResponse:
    """First five products, or an empty list while nothing is loaded."""
    products = service.get_sample()

    if not products:
        return SampleResponse(
            message="No products available yet. Bulk sync still in progress or failed.",
            products=[],
        )

    return SampleResponse(message="Sample products from database", products=products)
