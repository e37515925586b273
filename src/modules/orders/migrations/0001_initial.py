import django.db.models.deletion
import uuid6
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid6.uuid7,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("shopify_id", models.CharField(max_length=64, unique=True)),
                ("name", models.CharField(blank=True, default="", max_length=64)),
                (
                    "financial_status",
                    models.CharField(blank=True, default="", max_length=32),
                ),
                (
                    "fulfillment_status",
                    models.CharField(blank=True, default="", max_length=32),
                ),
                (
                    "app_status",
                    models.CharField(
                        choices=[
                            ("NEW", "New"),
                            ("CONFIRMED", "Confirmed"),
                            ("READY_TO_DISPATCH", "Ready to dispatch"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        default="NEW",
                        max_length=20,
                    ),
                ),
                ("customer", models.JSONField(default=dict)),
                ("shipping_address", models.JSONField(default=dict)),
                ("line_items", models.JSONField(default=list)),
                ("totals", models.JSONField(default=dict)),
                (
                    "carrier",
                    models.CharField(
                        blank=True,
                        choices=[("DELHIVERY", "Delhivery"), ("SHIPROCKET", "Shiprocket")],
                        default=None,
                        max_length=20,
                        null=True,
                    ),
                ),
                (
                    "awb_number",
                    models.CharField(blank=True, default=None, max_length=64, null=True),
                ),
                (
                    "awb_label_url",
                    models.URLField(blank=True, default=None, max_length=500, null=True),
                ),
                ("shopify_created_at", models.DateTimeField(blank=True, null=True)),
                ("shopify_updated_at", models.DateTimeField(blank=True, null=True)),
                ("synced_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "db_table": "orders",
                "ordering": ["-shopify_created_at", "-created_at"],
                "indexes": [
                    models.Index(fields=["app_status"], name="orders_app_status_idx"),
                    models.Index(
                        fields=["-shopify_created_at"], name="orders_placed_idx"
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=(
                            models.Q(carrier__isnull=True, awb_number__isnull=True)
                            | models.Q(carrier__isnull=False, awb_number__isnull=False)
                        ),
                        name="orders_carrier_awb_paired",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CarrierError",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid6.uuid7,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "carrier",
                    models.CharField(
                        choices=[("DELHIVERY", "Delhivery"), ("SHIPROCKET", "Shiprocket")],
                        max_length=20,
                    ),
                ),
                ("code", models.CharField(max_length=64)),
                ("message", models.TextField()),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="carrier_errors",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "db_table": "order_carrier_errors",
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(
                        fields=["order", "created_at"], name="carrier_err_order_idx"
                    ),
                ],
            },
        ),
    ]
