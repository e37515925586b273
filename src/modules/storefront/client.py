"""Storefront (Shopify Admin REST API) client.

The services depend on ``IStorefrontClient``; ``ShopifyClient`` is the
production implementation.  Every failure is raised as ``StorefrontError``
so callers handle one exception type regardless of the cause.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests
import structlog
from django.conf import settings

from modules.storefront.exceptions import StorefrontError, StorefrontNotConfigured

logger = structlog.get_logger(__name__)


class IStorefrontClient(ABC):
    """Operations the fulfillment desk needs from the storefront."""

    @abstractmethod
    def list_orders(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Return the most recent orders (raw payloads, newest first)."""

    @abstractmethod
    def cancel_order(self, order_id: str) -> None:
        """Cancel the order with numeric storefront id *order_id*."""

    @abstractmethod
    def create_product(self, product: Dict[str, Any]) -> str:
        """Create a product and return its storefront id."""


class ShopifyClient(IStorefrontClient):
    """Thin ``requests`` wrapper over the Shopify Admin REST API."""

    MAX_PAGE_SIZE = 250

    def __init__(
        self,
        store_domain: str,
        access_token: str,
        api_version: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._host = self.shop_host(store_domain) if store_domain else ""
        self._access_token = access_token
        self._api_version = api_version
        self._timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls) -> ShopifyClient:
        return cls(
            store_domain=settings.SHOPIFY_STORE_DOMAIN,
            access_token=settings.SHOPIFY_API_ACCESS_TOKEN,
            api_version=settings.SHOPIFY_API_VERSION,
            timeout=settings.EXTERNAL_API_TIMEOUT,
        )

    @staticmethod
    def shop_host(store_domain: str) -> str:
        """Normalise ``https://my-shop.myshopify.com/`` or ``my-shop`` to a host."""
        name = store_domain.strip().rstrip("/")
        for prefix in ("https://", "http://"):
            if name.startswith(prefix):
                name = name[len(prefix):]
        name = name.replace(".myshopify.com", "")
        return f"{name}.myshopify.com"

    # ------------------------------------------------------------------
    # IStorefrontClient
    # ------------------------------------------------------------------

    def list_orders(self, limit: int = 50) -> List[Dict[str, Any]]:
        page_size = max(1, min(limit, self.MAX_PAGE_SIZE))
        body = self._request(
            "GET", "orders.json", params={"limit": page_size, "status": "any"}
        )
        orders = body.get("orders")
        if not isinstance(orders, list):
            raise StorefrontError("Order list response has no 'orders' array.")
        logger.info("storefront.orders_listed", count=len(orders), limit=page_size)
        return orders

    def cancel_order(self, order_id: str) -> None:
        self._request("POST", f"orders/{order_id}/cancel.json", json={})
        logger.info("storefront.order_cancelled", storefront_order_id=order_id)

    def create_product(self, product: Dict[str, Any]) -> str:
        body = self._request("POST", "products.json", json={"product": product})
        created = body.get("product") or {}
        if "id" not in created:
            raise StorefrontError("Product create response has no product id.")
        logger.info("storefront.product_created", storefront_product_id=created["id"])
        return str(created["id"])

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        if not self._host or not self._access_token:
            raise StorefrontNotConfigured(
                "SHOPIFY_STORE_DOMAIN and SHOPIFY_API_ACCESS_TOKEN must be set."
            )
        url = f"https://{self._host}/admin/api/{self._api_version}/{path}"
        headers = {
            "X-Shopify-Access-Token": self._access_token,
            "Accept": "application/json",
        }
        try:
            response = self._session.request(
                method, url, headers=headers, timeout=self._timeout, **kwargs
            )
        except requests.RequestException as exc:
            logger.warning("storefront.request_failed", path=path, error=str(exc))
            raise StorefrontError(f"Storefront request failed: {exc}") from exc

        if response.status_code >= 400:
            logger.warning(
                "storefront.http_error", path=path, status_code=response.status_code
            )
            raise StorefrontError(
                f"Storefront returned HTTP {response.status_code} for {path}.",
                status_code=response.status_code,
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise StorefrontError(f"Storefront returned invalid JSON for {path}.") from exc
        if not isinstance(body, dict):
            raise StorefrontError(f"Storefront returned an unexpected body for {path}.")
        return body
