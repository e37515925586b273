"""Product and ProductVariant models.

Rules implemented:
- A product comes from the storefront (``source=shopify``) or is authored
  in the app (``source=app``); app products get a ``shopify_id`` once the
  storefront accepted them.
- Every product has one or more variants; variants are replaced as a
  whole on each save.
- Variant price and inventory cannot be negative.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class ProductSource(models.TextChoices):
    SHOPIFY = "shopify", "Shopify"
    APP = "app", "App"


class ProductStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    DRAFT = "draft", "Draft"
    ARCHIVED = "archived", "Archived"


class Product(BaseModel):
    """Product aggregate root (variants are its children)."""

    source = models.CharField(
        max_length=20, choices=ProductSource.choices, default=ProductSource.APP
    )
    shopify_id = models.CharField(max_length=64, blank=True, default="")
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.DRAFT,
    )
    tags = models.JSONField(default=list, blank=True)
    images = models.JSONField(default=list, blank=True)

    class Meta:
        db_table = "products"
        ordering = ["title"]
        indexes = [
            models.Index(fields=["status"], name="products_status_idx"),
            models.Index(fields=["shopify_id"], name="products_shopify_id_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.title} ({self.source})"


class ProductVariant(BaseModel):
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.CASCADE,
        related_name="variants",
    )
    sku = models.CharField(max_length=64, blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    inventory_qty = models.PositiveIntegerField(default=0)
    option_values = models.JSONField(default=list, blank=True)
    shopify_variant_id = models.CharField(max_length=64, blank=True, default="")

    class Meta:
        db_table = "product_variants"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="product_variants_price_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.sku or self.product_id} @ {self.price}"
