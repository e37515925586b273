"""Carrier gateways.

Every carrier exposes one capability, ``assign(order) -> CarrierResult``.
The fulfillment service only knows ``ICarrierGateway``; which concrete
gateway is primary and which is secondary is decided when the service is
built.  Gateways never raise for carrier-side problems: transport errors,
HTTP errors, rejections and malformed answers all come back as failed
results with an error code.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

import requests
import structlog
from django.conf import settings

from modules.carriers.constants import (
    DEFAULT_PARCEL_BREADTH_CM,
    DEFAULT_PARCEL_HEIGHT_CM,
    DEFAULT_PARCEL_LENGTH_CM,
    DEFAULT_PARCEL_WEIGHT_KG,
    Carrier,
)
from modules.carriers.dtos import CarrierResult
from modules.carriers.exceptions import CarrierRejected

if TYPE_CHECKING:
    from modules.orders.models import Order

logger = structlog.get_logger(__name__)


class ICarrierGateway(ABC):
    """Waybill-assignment capability of one carrier."""

    carrier: str

    @abstractmethod
    def assign(self, order: Order) -> CarrierResult:
        """Book *order* with the carrier and return the waybill (or the failure)."""


class HttpCarrierGateway(ICarrierGateway):
    """Shared HTTP plumbing and error mapping for REST carrier APIs."""

    def __init__(
        self,
        base_url: str,
        api_token: str,
        timeout: float = 10.0,
        pickup_location: str = "",
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_token = api_token
        self._timeout = timeout
        self._pickup_location = pickup_location
        self._session = session or requests.Session()

    def assign(self, order: Order) -> CarrierResult:
        log = logger.bind(carrier=self.carrier, shopify_id=order.shopify_id)
        if not self._api_token:
            log.warning("carrier.not_configured")
            return CarrierResult.failed(
                f"{self.carrier} API token is not configured.", code="NOT_CONFIGURED"
            )

        try:
            waybill, label_url = self._book(order)
        except requests.Timeout as exc:
            result = CarrierResult.failed(f"{self.carrier} timed out: {exc}", "TIMEOUT")
        except requests.HTTPError as exc:
            status_code = exc.response.status_code if exc.response is not None else 0
            result = CarrierResult.failed(
                f"{self.carrier} returned HTTP {status_code}.", f"HTTP_{status_code}"
            )
        except CarrierRejected as exc:
            result = CarrierResult.failed(str(exc), exc.code)
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as exc:
            result = CarrierResult.failed(
                f"{self.carrier} returned an unexpected response: {exc}",
                "INVALID_RESPONSE",
            )
        except requests.RequestException as exc:
            result = CarrierResult.failed(
                f"{self.carrier} is unreachable: {exc}", "CONNECTION_ERROR"
            )
        else:
            if waybill:
                log.info("carrier.assigned", waybill_number=waybill)
                return CarrierResult.assigned(waybill, label_url)
            result = CarrierResult.failed(
                f"{self.carrier} returned no waybill number.", "INVALID_RESPONSE"
            )

        log.warning(
            "carrier.assign_failed",
            error_code=result.error_code,
            error=result.error_message,
        )
        return result

    @abstractmethod
    def _book(self, order: Order) -> Tuple[str, Optional[str]]:
        """Create the shipment; return ``(waybill_number, label_url)``."""

    def _post(self, path: str, **kwargs: Any) -> Dict[str, Any]:
        response = self._session.post(
            f"{self._base_url}/{path}",
            headers=self._auth_headers(),
            timeout=self._timeout,
            **kwargs,
        )
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise ValueError(f"expected a JSON object from {path}")
        return body

    @abstractmethod
    def _auth_headers(self) -> Dict[str, str]: ...


# ---------------------------------------------------------------------------
# Concrete carriers
# ---------------------------------------------------------------------------


class DelhiveryGateway(HttpCarrierGateway):
    """Delhivery CMU shipment creation; the packing slip is the label."""

    carrier = Carrier.DELHIVERY

    @classmethod
    def from_settings(cls) -> DelhiveryGateway:
        return cls(
            base_url=settings.DELHIVERY_API_URL,
            api_token=settings.DELHIVERY_API_TOKEN,
            timeout=settings.EXTERNAL_API_TIMEOUT,
            pickup_location=settings.DELHIVERY_PICKUP_LOCATION,
        )

    def _auth_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Token {self._api_token}",
            "Accept": "application/json",
        }

    def _book(self, order: Order) -> Tuple[str, Optional[str]]:
        address = order.shipping_address or {}
        customer = order.customer or {}
        totals = order.totals or {}
        shipment = {
            "order": order.name or order.shopify_id,
            "name": customer.get("name", ""),
            "phone": customer.get("phone", ""),
            "add": " ".join(
                part for part in (address.get("line1"), address.get("line2")) if part
            ),
            "city": address.get("city", ""),
            "state": address.get("state", ""),
            "pin": address.get("pincode", ""),
            "country": address.get("country", ""),
            "payment_mode": _payment_mode(order),
            "total_amount": totals.get("grand_total", "0"),
            "cod_amount": totals.get("grand_total", "0")
            if _payment_mode(order) == "COD"
            else "0",
            "products_desc": ", ".join(
                item.get("title", "") for item in order.line_items or []
            ),
            "quantity": sum(int(item.get("quantity", 0)) for item in order.line_items or []),
            "weight": str(DEFAULT_PARCEL_WEIGHT_KG * 1000),
        }
        payload = {
            "shipments": [shipment],
            "pickup_location": {"name": self._pickup_location},
        }
        body = self._post(
            "api/cmu/create.json",
            data={"format": "json", "data": json.dumps(payload)},
        )
        packages = body.get("packages") or []
        if not body.get("success") or not packages or not packages[0].get("waybill"):
            remarks = packages[0].get("remarks") if packages else body.get("rmk")
            if isinstance(remarks, list):
                remarks = "; ".join(str(r) for r in remarks)
            raise CarrierRejected(
                remarks or "Delhivery rejected the shipment.", code="REJECTED"
            )

        waybill = _waybill(packages[0]["waybill"])
        label_url = f"{self._base_url}/api/p/packing_slip?wbns={waybill}&pdf=true"
        return waybill, label_url


class ShiprocketGateway(HttpCarrierGateway):
    """Shiprocket ad-hoc order → AWB assignment → label generation."""

    carrier = Carrier.SHIPROCKET

    @classmethod
    def from_settings(cls) -> ShiprocketGateway:
        return cls(
            base_url=settings.SHIPROCKET_API_URL,
            api_token=settings.SHIPROCKET_API_TOKEN,
            timeout=settings.EXTERNAL_API_TIMEOUT,
            pickup_location=settings.SHIPROCKET_PICKUP_LOCATION,
        )

    def _auth_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_token}",
            "Accept": "application/json",
        }

    def _book(self, order: Order) -> Tuple[str, Optional[str]]:
        created = self._post("v1/external/orders/create/adhoc", json=self._order_payload(order))
        shipment_id = created["shipment_id"]

        assigned = self._post(
            "v1/external/courier/assign/awb", json={"shipment_id": shipment_id}
        )
        if assigned.get("awb_assign_status") != 1:
            raise CarrierRejected(
                assigned.get("message") or "Shiprocket could not assign an AWB.",
                code="REJECTED",
            )
        waybill = _waybill(assigned["response"]["data"].get("awb_code"))

        label = self._post(
            "v1/external/courier/generate/label", json={"shipment_id": [shipment_id]}
        )
        return waybill, label.get("label_url") or None

    def _order_payload(self, order: Order) -> Dict[str, Any]:
        address = order.shipping_address or {}
        customer = order.customer or {}
        totals = order.totals or {}
        first_name, _, last_name = customer.get("name", "").partition(" ")
        placed = order.shopify_created_at or order.created_at
        return {
            "order_id": order.shopify_id,
            "order_date": placed.strftime("%Y-%m-%d %H:%M") if placed else "",
            "pickup_location": self._pickup_location,
            "billing_customer_name": first_name,
            "billing_last_name": last_name,
            "billing_address": address.get("line1", ""),
            "billing_address_2": address.get("line2", ""),
            "billing_city": address.get("city", ""),
            "billing_pincode": address.get("pincode", ""),
            "billing_state": address.get("state", ""),
            "billing_country": address.get("country", ""),
            "billing_email": customer.get("email", ""),
            "billing_phone": customer.get("phone", ""),
            "shipping_is_billing": True,
            "order_items": [
                {
                    "name": item.get("title", ""),
                    "sku": item.get("sku") or item.get("title", ""),
                    "units": item.get("quantity", 0),
                    "selling_price": item.get("price", "0"),
                }
                for item in order.line_items or []
            ],
            "payment_method": "Prepaid" if _payment_mode(order) == "Prepaid" else "COD",
            "sub_total": _money(totals.get("subtotal")),
            "length": DEFAULT_PARCEL_LENGTH_CM,
            "breadth": DEFAULT_PARCEL_BREADTH_CM,
            "height": DEFAULT_PARCEL_HEIGHT_CM,
            "weight": float(DEFAULT_PARCEL_WEIGHT_KG),
        }


def _waybill(value: Any) -> str:
    """Waybill text of a carrier field; null and blank values are malformed."""
    waybill = "" if value is None else str(value).strip()
    if not waybill:
        raise CarrierRejected("Carrier returned no waybill number.", code="INVALID_RESPONSE")
    return waybill


def _payment_mode(order: Order) -> str:
    return "Prepaid" if order.financial_status == "paid" else "COD"


def _money(value: Any) -> float:
    try:
        return float(Decimal(str(value)))
    except (InvalidOperation, ValueError):
        return 0.0
