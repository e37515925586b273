"""Storefront order normalizer.

Pure functions turning a raw storefront order (webhook body or list-API
item) into an ``OrderRecord``.  No I/O and no clock: the same payload
always produces the same record.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from django.utils.dateparse import parse_datetime
from pydantic import ValidationError

from modules.orders.constants import DEFAULT_CURRENCY, SHOPIFY_ID_PREFIX, AppStatus
from modules.orders.dtos import (
    AddressSnapshot,
    CustomerSnapshot,
    LineItemSnapshot,
    OrderRecord,
    OrderTotals,
    StorefrontOrderPayload,
)
from modules.orders.exceptions import InvalidOrderPayload


def numeric_part(identifier: Any) -> str:
    """Return the text after the last ``/`` of a storefront id.

    ``12345`` and ``gid://shopify/Order/12345`` both give ``"12345"``.
    """
    return str(identifier).strip().rsplit("/", 1)[-1]


def to_shopify_id(identifier: Any) -> str:
    return f"{SHOPIFY_ID_PREFIX}{numeric_part(identifier)}"


def normalize(raw: Mapping[str, Any]) -> OrderRecord:
    """Build the canonical record for *raw*.

    Raises:
        InvalidOrderPayload: *raw* is not an object or carries no usable id.
    """
    if not isinstance(raw, Mapping):
        raise InvalidOrderPayload("Order payload must be a JSON object.")
    try:
        payload = StorefrontOrderPayload.model_validate(dict(raw))
    except ValidationError as exc:
        raise InvalidOrderPayload(f"Malformed order payload: {exc}") from exc

    order_number = numeric_part(payload.id)
    if not order_number:
        raise InvalidOrderPayload("Order payload has an empty id.")

    customer = payload.customer
    address = payload.shipping_address
    return OrderRecord(
        shopify_id=f"{SHOPIFY_ID_PREFIX}{order_number}",
        name=payload.name,
        financial_status=payload.financial_status,
        fulfillment_status=payload.fulfillment_status,
        app_status=AppStatus.NEW,
        customer=CustomerSnapshot(
            name=f"{customer.first_name} {customer.last_name}".strip(),
            email=customer.email or payload.email,
            phone=customer.phone or payload.phone or address.phone,
        ),
        shipping_address=AddressSnapshot(
            line1=address.address1,
            line2=address.address2,
            city=address.city,
            state=address.province,
            pincode=address.zip,
            country=address.country,
        ),
        line_items=[
            LineItemSnapshot(
                title=item.title,
                sku=item.sku,
                quantity=item.quantity,
                price=parse_money(item.price),
                shopify_line_item_id=numeric_part(item.id) if item.id else "",
            )
            for item in payload.line_items
        ],
        totals=OrderTotals(
            subtotal=parse_money(payload.subtotal_price),
            shipping=parse_money(payload.total_shipping_price_set.shop_money.amount),
            tax=parse_money(payload.total_tax),
            discount=parse_money(payload.total_discounts),
            grand_total=parse_money(payload.total_price),
            currency=payload.currency or DEFAULT_CURRENCY,
        ),
        carrier=None,
        awb_number=None,
        awb_label_url=None,
        carrier_errors=[],
        shopify_created_at=parse_timestamp(payload.created_at),
        shopify_updated_at=parse_timestamp(payload.updated_at),
    )


def parse_money(value: Any) -> Decimal:
    """Decimal amount of *value*; anything unparseable or non-finite is ``0``."""
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")
    return amount if amount.is_finite() else Decimal("0")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return parse_datetime(value)
    except ValueError:
        return None
