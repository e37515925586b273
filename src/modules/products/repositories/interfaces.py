"""Product repository interface.

Extends ``IRepository[Product]`` with the variant replacement and the
storefront-id write needed by ``ProductService``.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.dtos import VariantDTO
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Product]":
        """List products (variants prefetched) with optional filters."""

    @abstractmethod
    def replace_variants(self, product: Product, variants: Iterable[VariantDTO]) -> None:
        """Drop the product's variants and store *variants* instead."""

    @abstractmethod
    def set_shopify_id(self, product: Product, shopify_id: str) -> Product:
        """Record the storefront id of a pushed product."""
