"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which returns Pydantic
result DTOs that the views render directly.
"""

from __future__ import annotations

from django.conf import settings
from rest_framework import serializers

from modules.orders.models import CarrierError, Order

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class BulkOrderIdsSerializer(serializers.Serializer):
    """Validates ``{"order_ids": ["shp-1", ...]}`` for bulk actions."""

    order_ids = serializers.ListField(
        child=serializers.CharField(max_length=64),
        allow_empty=False,
        max_length=500,
    )


class SyncRequestSerializer(serializers.Serializer):
    limit = serializers.IntegerField(
        min_value=1,
        max_value=250,
        required=False,
        default=settings.ORDER_SYNC_PAGE_SIZE,
    )


class ClearRequestSerializer(serializers.Serializer):
    confirm = serializers.BooleanField()

    def validate_confirm(self, value: bool) -> bool:
        if not value:
            raise serializers.ValidationError("Set 'confirm' to true to delete all orders.")
        return value


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class CarrierErrorSerializer(serializers.ModelSerializer):
    class Meta:
        model = CarrierError
        fields = ["carrier", "code", "message", "created_at"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for an order with its full snapshot and carrier errors."""

    carrier_errors = CarrierErrorSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "shopify_id",
            "name",
            "financial_status",
            "fulfillment_status",
            "app_status",
            "customer",
            "shipping_address",
            "line_items",
            "totals",
            "carrier",
            "awb_number",
            "awb_label_url",
            "carrier_errors",
            "shopify_created_at",
            "shopify_updated_at",
            "synced_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for the order list (no line items or errors)."""

    customer_name = serializers.SerializerMethodField()
    grand_total = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "shopify_id",
            "name",
            "customer_name",
            "financial_status",
            "fulfillment_status",
            "app_status",
            "grand_total",
            "carrier",
            "awb_number",
            "shopify_created_at",
        ]
        read_only_fields = fields

    def get_customer_name(self, obj: Order) -> str:
        return (obj.customer or {}).get("name", "")

    def get_grand_total(self, obj: Order) -> str:
        return (obj.totals or {}).get("grand_total", "0")
