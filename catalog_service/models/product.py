"""
Catalog product models for sync ingestion.
Validates items returned by the external catalog and maps them to store rows.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from ..db.models import (
    CATEGORY_MAX_LENGTH,
    DESCRIPTION_MAX_LENGTH,
    IMAGE_URL_MAX_LENGTH,
    TITLE_MAX_LENGTH,
)

PRICE_QUANTUM = Decimal("0.01")


def utcnow() -> datetime:
    """Current time as naive UTC, matching the store's timestamp columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def truncate(value: Optional[str], max_length: int) -> str:
    """Trim a string to the column maximum."""
    if not value:
        return ""
    return value[:max_length]


class CatalogCategory(BaseModel):
    """Category block embedded in each catalog item."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str = ""
    image: Optional[str] = None


class CatalogProduct(BaseModel):
    """
    Validates one item from the catalog source.

    Maps `{title, description, price, images[], category:{name, image}}`.
    Unknown fields are ignored.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,  # Auto-strip whitespace
        extra="ignore",
    )

    # === REQUIRED FIELDS ===
    title: str = Field(..., min_length=1)
    price: Decimal

    # === OPTIONAL FIELDS ===
    description: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    category: CatalogCategory = Field(default_factory=CatalogCategory)

    # === VALIDATORS ===

    @field_validator("price", mode="before")
    @classmethod
    def clean_price(cls, v):
        """Convert price to Decimal with two places."""
        if v is None or v == "":
            return Decimal("0.00")
        try:
            return Decimal(str(v)).quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)
        except (InvalidOperation, ValueError):
            raise ValueError(f"Invalid price: {v!r}")

    @field_validator("images", mode="before")
    @classmethod
    def clean_images(cls, v):
        """Drop empty or non-string image entries."""
        if not v:
            return []
        if isinstance(v, str):
            v = [v]
        return [image.strip() for image in v if isinstance(image, str) and image.strip()]

    @field_validator("category", mode="before")
    @classmethod
    def default_category(cls, v):
        """Treat a missing category as an empty one."""
        return v if v is not None else {}

    # === METHODS ===

    @property
    def primary_image(self) -> str:
        """First product image, falling back to the category image."""
        if self.images:
            return self.images[0]
        return self.category.image or ""

    def to_record(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Build a products-table row.

        The source carries no rating data, so rating and rating_count are zero.

        Args:
            now: Timestamp for created_at/updated_at (defaults to current UTC)

        Returns:
            Column-name -> value mapping
        """
        timestamp = now or utcnow()
        return {
            "title": truncate(self.title, TITLE_MAX_LENGTH),
            "description": truncate(self.description, DESCRIPTION_MAX_LENGTH),
            "category": truncate(self.category.name, CATEGORY_MAX_LENGTH),
            "price": self.price,
            "image_url": truncate(self.primary_image, IMAGE_URL_MAX_LENGTH),
            "rating": 0.0,
            "rating_count": 0,
            "created_at": timestamp,
            "updated_at": timestamp,
        }
