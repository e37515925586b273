from __future__ import annotations

import copy
from typing import Any, Dict

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

SAMPLE_ORDER: Dict[str, Any] = {
    "id": 5551234567,
    "name": "#1001",
    "email": "priya@example.com",
    "financial_status": "paid",
    "fulfillment_status": None,
    "currency": "INR",
    "created_at": "2024-05-01T10:15:00+05:30",
    "updated_at": "2024-05-01T10:20:00+05:30",
    "subtotal_price": "1198.00",
    "total_tax": "107.82",
    "total_discounts": "100.00",
    "total_price": "1255.82",
    "total_shipping_price_set": {
        "shop_money": {"amount": "50.00", "currency_code": "INR"}
    },
    "customer": {
        "first_name": "Priya",
        "last_name": "Sharma",
        "email": "priya@example.com",
        "phone": "+919800000001",
    },
    "shipping_address": {
        "address1": "12 MG Road",
        "address2": "Flat 4B",
        "city": "Bengaluru",
        "province": "Karnataka",
        "zip": "560001",
        "country": "India",
    },
    "line_items": [
        {
            "id": 9990001,
            "title": "Cotton Kurta",
            "sku": "KUR-001",
            "quantity": 2,
            "price": "599.00",
        }
    ],
}


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def auth_client():
    """APIClient with a force-authenticated operator."""
    client = APIClient()
    user = get_user_model().objects.create_user(username="operator", password="testpass123")
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def staff_client():
    """APIClient with a force-authenticated staff user."""
    client = APIClient()
    user = get_user_model().objects.create_user(
        username="admin-operator", password="testpass123", is_staff=True
    )
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def raw_order():
    """Factory for storefront order payloads: ``raw_order(id=1, name="#2")``."""

    def _make(**overrides: Any) -> Dict[str, Any]:
        payload = copy.deepcopy(SAMPLE_ORDER)
        payload.update(overrides)
        return payload

    return _make
