"""Unit tests for ShopifyClient.

The HTTP session is a mock; covers URL and header shape, page-size
clamping and the mapping of every failure to ``StorefrontError``.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from modules.storefront.client import ShopifyClient
from modules.storefront.exceptions import StorefrontError, StorefrontNotConfigured

pytestmark = pytest.mark.unit


def _response(body=None, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body
    return response


@pytest.fixture()
def session():
    return MagicMock()


@pytest.fixture()
def client(session):
    return ShopifyClient(
        store_domain="https://demo-shop.myshopify.com/",
        access_token="shpat_test",
        api_version="2024-07",
        timeout=5.0,
        session=session,
    )


class TestShopHost:
    @pytest.mark.parametrize(
        "domain",
        [
            "demo-shop",
            "demo-shop.myshopify.com",
            "https://demo-shop.myshopify.com/",
            "http://demo-shop.myshopify.com",
        ],
    )
    def test_normalises(self, domain):
        assert ShopifyClient.shop_host(domain) == "demo-shop.myshopify.com"


class TestListOrders:
    def test_request_shape(self, client, session):
        session.request.return_value = _response({"orders": [{"id": 1}, {"id": 2}]})

        orders = client.list_orders(limit=20)

        assert orders == [{"id": 1}, {"id": 2}]
        args, kwargs = session.request.call_args
        assert args == (
            "GET",
            "https://demo-shop.myshopify.com/admin/api/2024-07/orders.json",
        )
        assert kwargs["params"] == {"limit": 20, "status": "any"}
        assert kwargs["headers"]["X-Shopify-Access-Token"] == "shpat_test"
        assert kwargs["timeout"] == 5.0

    @pytest.mark.parametrize("limit, expected", [(0, 1), (500, 250), (50, 50)])
    def test_page_size_is_clamped(self, client, session, limit, expected):
        session.request.return_value = _response({"orders": []})

        client.list_orders(limit=limit)

        assert session.request.call_args.kwargs["params"]["limit"] == expected

    def test_missing_orders_array(self, client, session):
        session.request.return_value = _response({"errors": "Not Found"})

        with pytest.raises(StorefrontError):
            client.list_orders()

    def test_http_error_keeps_status(self, client, session):
        session.request.return_value = _response({"errors": "denied"}, status_code=403)

        with pytest.raises(StorefrontError) as exc_info:
            client.list_orders()

        assert exc_info.value.status_code == 403

    def test_transport_error(self, client, session):
        session.request.side_effect = requests.ConnectionError("dns failure")

        with pytest.raises(StorefrontError):
            client.list_orders()

    def test_invalid_json(self, client, session):
        response = _response()
        response.json.side_effect = ValueError("no json")
        session.request.return_value = response

        with pytest.raises(StorefrontError):
            client.list_orders()


class TestCancelOrder:
    def test_posts_to_cancel_endpoint(self, client, session):
        session.request.return_value = _response({"order": {"id": 5551234567}})

        client.cancel_order("5551234567")

        args, _ = session.request.call_args
        assert args == (
            "POST",
            "https://demo-shop.myshopify.com/admin/api/2024-07/orders/5551234567/cancel.json",
        )

    def test_rejection_raises(self, client, session):
        session.request.return_value = _response(
            {"error": "Cannot cancel a fulfilled order"}, status_code=422
        )

        with pytest.raises(StorefrontError) as exc_info:
            client.cancel_order("5551234567")

        assert exc_info.value.status_code == 422


class TestCreateProduct:
    def test_returns_new_id(self, client, session):
        session.request.return_value = _response({"product": {"id": 632910392}})

        assert client.create_product({"title": "Kurta"}) == "632910392"
        assert session.request.call_args.kwargs["json"] == {"product": {"title": "Kurta"}}

    def test_missing_id(self, client, session):
        session.request.return_value = _response({"product": {}})

        with pytest.raises(StorefrontError):
            client.create_product({"title": "Kurta"})


class TestNotConfigured:
    @pytest.mark.parametrize("domain, token", [("", "shpat"), ("demo-shop", "")])
    def test_missing_credentials(self, session, domain, token):
        client = ShopifyClient(domain, token, "2024-07", session=session)

        with pytest.raises(StorefrontNotConfigured):
            client.list_orders()

        session.request.assert_not_called()
