"""Product service layer (Use Cases).

Orchestrates the product catalogue, delegating persistence to the
injected ``IProductRepository`` and storefront calls to the injected
``IStorefrontClient``.

Rules enforced here:
- A save writes the product and replaces all of its variants in one
  transaction.
- App-authored products without a storefront id are pushed to the
  storefront; a failed push is logged and the local save still commits.
- Deletion is permanent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.db import transaction

from modules.products.exceptions import ProductNotFound
from modules.products.models import Product, ProductSource
from modules.storefront.exceptions import StorefrontError

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.products.dtos import SaveProductDTO
    from modules.products.repositories.interfaces import IProductRepository
    from modules.storefront.client import IStorefrontClient

logger = structlog.get_logger(__name__)


class ProductService:
    """Application service for Product use-cases.

    Receives the repository and the storefront client via constructor
    injection (DIP).
    """

    def __init__(
        self, repository: IProductRepository, storefront: IStorefrontClient
    ) -> None:
        self._repo = repository
        self._storefront = storefront

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def save_product(self, dto: SaveProductDTO, product_id: Optional[str] = None) -> Product:
        """Create (no *product_id*) or replace a product and its variants.

        Raises:
            ProductNotFound: *product_id* was given but does not exist.
        """
        if product_id is None:
            product = Product()
        else:
            product = self._repo.get_by_id(product_id)
            if not product:
                raise ProductNotFound(f"Product {product_id} not found.")

        product.source = dto.source
        product.title = dto.title
        product.description = dto.description
        product.status = dto.status
        product.tags = list(dto.tags)
        product.images = [image.model_dump() for image in dto.images]
        product = self._repo.save(product)
        self._repo.replace_variants(product, dto.variants)

        log = logger.bind(product_id=str(product.id), source=product.source)
        if product.source == ProductSource.APP and not product.shopify_id:
            self._push_to_storefront(product, dto)

        log.info("product.saved_with_variants", variant_count=len(dto.variants))
        return self._repo.get_by_id(str(product.id)) or product

    @transaction.atomic
    def delete_product(self, id: str) -> None:
        """Permanently delete a product and its variants.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        if not self._repo.delete(id):
            raise ProductNotFound(f"Product {id} not found.")
        logger.info("product.removed", product_id=str(id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_products(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Product]:
        """Return products, optionally filtered."""
        return self._repo.list(filters)

    def get_product(self, id: str) -> Product:
        """Retrieve a single product by ID.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _push_to_storefront(self, product: Product, dto: SaveProductDTO) -> None:
        log = logger.bind(product_id=str(product.id))
        try:
            shopify_id = self._storefront.create_product(dto.storefront_payload())
        except StorefrontError as exc:
            log.warning("product.storefront_push_failed", error=str(exc))
            return
        self._repo.set_shopify_id(product, shopify_id)
        log.info("product.pushed_to_storefront", shopify_id=shopify_id)


def default_product_service() -> ProductService:
    from modules.products.repositories.django_repository import ProductDjangoRepository
    from modules.storefront.client import ShopifyClient

    return ProductService(
        repository=ProductDjangoRepository(), storefront=ShopifyClient.from_settings()
    )
