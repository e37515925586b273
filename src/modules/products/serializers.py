"""Product DRF serializers for API output.

Input is validated by ``SaveProductDTO`` (Pydantic) in the view; the
serializers only render products.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product, ProductVariant


class ProductVariantSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductVariant
        fields = [
            "id",
            "sku",
            "price",
            "inventory_qty",
            "option_values",
            "shopify_variant_id",
        ]
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    """Read serializer for a product with its variants."""

    variants = ProductVariantSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "source",
            "shopify_id",
            "title",
            "description",
            "status",
            "tags",
            "images",
            "variants",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
