"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.

- ``StorefrontOrderPayload``: boundary schema for raw storefront order
  JSON (webhook bodies and list-API items).  Every field is optional with
  an explicit default; unknown keys are ignored.
- ``OrderRecord``: canonical, normalized order produced by the normalizer.
- ``ActionResult`` / ``BulkActionResult`` / ``SyncResult`` / ``ClearResult``:
  outcomes returned by the services.  Business failures are reported
  through ``success`` + ``error_code`` instead of exceptions.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
    model_validator,
)

from modules.orders.constants import (
    DEFAULT_CURRENCY,
    DEFAULT_FINANCIAL_STATUS,
    DEFAULT_FULFILLMENT_STATUS,
    AppStatus,
)

# ---------------------------------------------------------------------------
# Raw storefront payload (input boundary)
# ---------------------------------------------------------------------------


class _Payload(BaseModel):
    """Base for raw payload parts.

    ``None`` behaves exactly like a missing key, and a value of the wrong
    shape falls back to the field default.  Only required fields reject
    the payload.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @field_validator("*", mode="wrap")
    @classmethod
    def default_when_malformed(
        cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
    ) -> Any:
        try:
            return handler(value)
        except ValidationError:
            field = cls.model_fields[info.field_name]
            if field.is_required():
                raise
            return field.get_default(call_default_factory=True)


class CustomerPayload(_Payload):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""


class AddressPayload(_Payload):
    address1: str = ""
    address2: str = ""
    city: str = ""
    province: str = ""
    zip: str = ""
    country: str = ""
    phone: str = ""


class LineItemPayload(_Payload):
    id: str = ""
    title: str = ""
    sku: str = ""
    quantity: int = 0
    price: Any = "0"


class MoneyPayload(_Payload):
    amount: Any = "0"
    currency_code: str = ""


class MoneySetPayload(_Payload):
    shop_money: MoneyPayload = Field(default_factory=MoneyPayload)


class StorefrontOrderPayload(_Payload):
    """Raw storefront order as received; only ``id`` is mandatory."""

    id: str
    name: str = ""
    email: str = ""
    phone: str = ""
    financial_status: str = DEFAULT_FINANCIAL_STATUS
    fulfillment_status: str = DEFAULT_FULFILLMENT_STATUS
    currency: str = DEFAULT_CURRENCY
    customer: CustomerPayload = Field(default_factory=CustomerPayload)
    shipping_address: AddressPayload = Field(default_factory=AddressPayload)
    line_items: List[LineItemPayload] = Field(default_factory=list)
    subtotal_price: Any = "0"
    total_price: Any = "0"
    total_tax: Any = "0"
    total_discounts: Any = "0"
    total_shipping_price_set: MoneySetPayload = Field(default_factory=MoneySetPayload)
    created_at: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("created_at", "createdAt")
    )
    updated_at: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("updated_at", "updatedAt")
    )

    @field_validator("line_items", mode="before")
    @classmethod
    def keep_object_items(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [item for item in value if isinstance(item, dict)]
        return value


# ---------------------------------------------------------------------------
# Canonical order record (normalizer output)
# ---------------------------------------------------------------------------


class CustomerSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    email: str = ""
    phone: str = ""


class AddressSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    line1: str = ""
    line2: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    country: str = ""


class LineItemSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = ""
    sku: str = ""
    quantity: int = 0
    price: Decimal = Decimal("0")
    shopify_line_item_id: str = ""


class OrderTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: Decimal = Decimal("0")
    shipping: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    grand_total: Decimal = Decimal("0")
    currency: str = DEFAULT_CURRENCY


class OrderRecord(BaseModel):
    """Normalized order, ready to be upserted.

    Fresh records always start at ``NEW`` with no carrier, no waybill and
    no carrier errors; the repository decides which of these values an
    existing record keeps.
    """

    model_config = ConfigDict(frozen=True)

    shopify_id: str
    name: str = ""
    financial_status: str = ""
    fulfillment_status: str = ""
    app_status: AppStatus = AppStatus.NEW
    customer: CustomerSnapshot = Field(default_factory=CustomerSnapshot)
    shipping_address: AddressSnapshot = Field(default_factory=AddressSnapshot)
    line_items: List[LineItemSnapshot] = Field(default_factory=list)
    totals: OrderTotals = Field(default_factory=OrderTotals)
    carrier: Optional[str] = None
    awb_number: Optional[str] = None
    awb_label_url: Optional[str] = None
    carrier_errors: List[Dict[str, Any]] = Field(default_factory=list)
    shopify_created_at: Optional[datetime] = None
    shopify_updated_at: Optional[datetime] = None

    def ingestion_fields(self) -> Dict[str, Any]:
        """Fields refreshed on every ingestion, JSON-ready (money as strings)."""
        return {
            "name": self.name,
            "financial_status": self.financial_status,
            "fulfillment_status": self.fulfillment_status,
            "customer": self.customer.model_dump(mode="json"),
            "shipping_address": self.shipping_address.model_dump(mode="json"),
            "line_items": [item.model_dump(mode="json") for item in self.line_items],
            "totals": self.totals.model_dump(mode="json"),
            "shopify_created_at": self.shopify_created_at,
            "shopify_updated_at": self.shopify_updated_at,
        }


# ---------------------------------------------------------------------------
# Service results
# ---------------------------------------------------------------------------


class ActionResult(BaseModel):
    """Outcome of a single-order operation (confirm, cancel, assign waybill)."""

    model_config = ConfigDict(frozen=True)

    success: bool
    shopify_id: str
    message: str = ""
    error_code: Optional[str] = None
    app_status: Optional[str] = None
    carrier: Optional[str] = None
    awb_number: Optional[str] = None
    awb_label_url: Optional[str] = None

    @classmethod
    def failed(cls, shopify_id: str, message: str, error_code: str) -> ActionResult:
        return cls(
            success=False, shopify_id=shopify_id, message=message, error_code=error_code
        )


class BulkActionResult(BaseModel):
    """Per-item counts of a bulk operation."""

    model_config = ConfigDict(frozen=True)

    success: int = 0
    error: int = 0
    errors: Dict[str, str] = Field(default_factory=dict)


class SyncResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    synced: int = 0
    failed: int = 0
    message: str = ""
    error_code: Optional[str] = None


class ClearResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    deleted: int = 0
    message: str = ""
    error_code: Optional[str] = None
