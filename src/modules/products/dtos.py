"""Product DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer and the Service layer.
DTOs are immutable (``frozen=True``).

- ``ProductImageDTO`` / ``VariantDTO``: parts of a product.
- ``SaveProductDTO``: input for creating or replacing a product.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modules.products.models import ProductSource, ProductStatus

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class ProductImageDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    src: str
    position: int = 1
    alt: str = ""


class VariantDTO(BaseModel):
    """Immutable DTO for one product variant.

    Validates:
    - ``price`` is not negative.
    - ``inventory_qty`` is not negative.
    """

    model_config = ConfigDict(frozen=True)

    sku: str = ""
    price: Decimal
    inventory_qty: int = 0
    option_values: List[str] = Field(default_factory=list)
    shopify_variant_id: str = ""

    @field_validator("price")
    @classmethod
    def price_must_not_be_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Price cannot be negative.")
        return v

    @field_validator("inventory_qty")
    @classmethod
    def inventory_must_not_be_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Inventory quantity cannot be negative.")
        return v

    @field_validator("sku")
    @classmethod
    def normalise_sku(cls, v: str) -> str:
        return v.strip().upper()


class SaveProductDTO(BaseModel):
    """Immutable DTO for product create/replace requests.

    Validates:
    - ``title`` is a non-empty string.
    - at least one variant is supplied.
    """

    model_config = ConfigDict(frozen=True)

    source: ProductSource = ProductSource.APP
    title: str
    description: str = ""
    status: ProductStatus = ProductStatus.DRAFT
    tags: List[str] = Field(default_factory=list)
    images: List[ProductImageDTO] = Field(default_factory=list)
    variants: List[VariantDTO]

    @field_validator("title")
    @classmethod
    def title_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Title must not be empty.")
        return v.strip()

    @field_validator("variants")
    @classmethod
    def variants_must_not_be_empty(cls, v: List[VariantDTO]) -> List[VariantDTO]:
        if not v:
            raise ValueError("A product needs at least one variant.")
        return v

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: List[str]) -> List[str]:
        return [tag.strip() for tag in v if tag and tag.strip()]

    def storefront_payload(self) -> Dict[str, Any]:
        """Body of the storefront product-create call."""
        return {
            "title": self.title,
            "body_html": self.description,
            "status": self.status.value,
            "tags": ", ".join(self.tags),
            "images": [image.model_dump() for image in self.images],
            "variants": [
                {
                    "sku": variant.sku,
                    "price": str(variant.price),
                    "inventory_quantity": variant.inventory_qty,
                    **{
                        f"option{index}": value
                        for index, value in enumerate(variant.option_values[:3], start=1)
                    },
                }
                for variant in self.variants
            ],
        }
