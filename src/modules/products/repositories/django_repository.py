"""Django ORM implementation of the Product repository.

Satisfies ``IProductRepository`` using Django's QuerySet API.
Error handling follows the Null Object pattern: look-ups return ``None``
instead of raising, and the Service Layer decides how to translate a
missing entity into an API response.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from modules.products.dtos import VariantDTO
from modules.products.models import Product, ProductVariant
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a product by primary key.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Product.objects.prefetch_related("variants").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Product]:
        """List products with optional Django ORM look-ups.

        Examples of valid filters::

            {"status": "active"}
            {"title__icontains": "kurta"}
        """
        queryset = Product.objects.prefetch_related("variants")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        """Persist (create or update) a product."""
        entity.save()
        logger.info("product.saved", product_id=str(entity.id), source=entity.source)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Hard-delete a product and its variants.

        Returns ``True`` if the product existed, ``False`` otherwise.
        """
        product = self.get_by_id(id)
        if not product:
            return False
        product.delete()
        logger.info("product.deleted", product_id=str(id))
        return True

    @transaction.atomic
    def replace_variants(self, product: Product, variants: Iterable[VariantDTO]) -> None:
        product.variants.all().delete()
        created = ProductVariant.objects.bulk_create(
            [
                ProductVariant(
                    product=product,
                    sku=variant.sku,
                    price=variant.price,
                    inventory_qty=variant.inventory_qty,
                    option_values=list(variant.option_values),
                    shopify_variant_id=variant.shopify_variant_id,
                )
                for variant in variants
            ]
        )
        logger.info(
            "product.variants_replaced", product_id=str(product.id), count=len(created)
        )

    def set_shopify_id(self, product: Product, shopify_id: str) -> Product:
        product.shopify_id = shopify_id
        product.save(update_fields=["shopify_id"])
        return product
