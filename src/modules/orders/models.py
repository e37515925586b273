"""Order and CarrierError models.

Rules implemented here:
- ``shopify_id`` is unique; every ingestion path upserts on it.
- ``app_status`` is owned locally; transitions are validated against
  ``VALID_TRANSITIONS`` and applied by conditional updates in the repository.
- ``carrier`` and ``awb_number`` are either both set or both null
  (database check constraint).
- Carrier errors are append-only child rows; a later success never
  removes them.
- Customer, address, line items and totals are a denormalized snapshot of
  the storefront order, stored as JSON with money as decimal strings.
"""

from __future__ import annotations

from django.db import models

from modules.carriers.constants import Carrier
from modules.core.models import BaseModel
from modules.orders.constants import TERMINAL_STATES, VALID_TRANSITIONS, AppStatus


class Order(BaseModel):
    """Order aggregate root, keyed for the outside world by ``shopify_id``."""

    shopify_id = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=64, blank=True, default="")
    financial_status = models.CharField(max_length=32, blank=True, default="")
    fulfillment_status = models.CharField(max_length=32, blank=True, default="")
    app_status = models.CharField(
        max_length=20,
        choices=AppStatus.choices,
        default=AppStatus.NEW,
    )

    customer = models.JSONField(default=dict)
    shipping_address = models.JSONField(default=dict)
    line_items = models.JSONField(default=list)
    totals = models.JSONField(default=dict)

    carrier = models.CharField(  # noqa: DJ01
        max_length=20, choices=Carrier.choices, null=True, blank=True, default=None
    )
    awb_number = models.CharField(  # noqa: DJ01
        max_length=64, null=True, blank=True, default=None
    )
    awb_label_url = models.URLField(  # noqa: DJ01
        max_length=500, null=True, blank=True, default=None
    )

    shopify_created_at = models.DateTimeField(null=True, blank=True)
    shopify_updated_at = models.DateTimeField(null=True, blank=True)
    synced_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "orders"
        ordering = ["-shopify_created_at", "-created_at"]
        indexes = [
            models.Index(fields=["app_status"], name="orders_app_status_idx"),
            models.Index(fields=["-shopify_created_at"], name="orders_placed_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(carrier__isnull=True, awb_number__isnull=True)
                    | models.Q(carrier__isnull=False, awb_number__isnull=False)
                ),
                name="orders_carrier_awb_paired",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is in a terminal state."""
        return self.app_status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        return new_status in VALID_TRANSITIONS.get(self.app_status, set())

    @property
    def storefront_order_id(self) -> str:
        """Numeric storefront id (``shp-12345`` → ``12345``)."""
        return self.shopify_id.split("-", 1)[-1]

    def __str__(self) -> str:
        return f"{self.name or self.shopify_id} ({self.app_status})"


class CarrierError(BaseModel):
    """One failed waybill-assignment attempt (append-only)."""

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="carrier_errors",
    )
    carrier = models.CharField(max_length=20, choices=Carrier.choices)
    code = models.CharField(max_length=64)
    message = models.TextField()

    class Meta:
        db_table = "order_carrier_errors"
        ordering = ["created_at"]
        indexes = [
            models.Index(
                fields=["order", "created_at"],
                name="carrier_err_order_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.carrier} {self.code}: {self.message[:40]}"
