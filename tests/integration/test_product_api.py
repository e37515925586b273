"""Integration tests for Product API endpoints.

Covers:
- Create/replace/patch/delete via /api/v1/products/.
- Storefront push on create (storefront client mocked).
- Validation (400), not-found (404) and authentication (401).
- Filtering by variant SKU.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from modules.products.models import Product, ProductSource, ProductVariant
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import ProductService
from modules.storefront.exceptions import StorefrontError

pytestmark = pytest.mark.integration

BASE = "/api/v1/products/"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def storefront():
    mock = MagicMock()
    mock.create_product.return_value = "632910392"
    return mock


@pytest.fixture(autouse=True)
def _wired_service(storefront):
    service = ProductService(ProductDjangoRepository(), storefront)
    with patch("modules.products.views.default_product_service", return_value=service):
        yield


@pytest.fixture()
def payload():
    return {
        "title": "Cotton Kurta",
        "description": "Soft cotton",
        "status": "active",
        "tags": ["summer"],
        "variants": [
            {"sku": "kur-m", "price": "599.00", "inventory_qty": 5, "option_values": ["M"]},
            {"sku": "kur-l", "price": "649.00", "inventory_qty": 2, "option_values": ["L"]},
        ],
    }


@pytest.fixture()
def created(auth_client, payload):
    return auth_client.post(BASE, payload, format="json").json()


# ===========================================================================
# Authentication
# ===========================================================================


class TestProductAPIAuth:
    def test_unauthenticated_returns_401(self, api_client):
        assert api_client.get(BASE).status_code == 401


# ===========================================================================
# Create
# ===========================================================================


class TestProductCreate:
    def test_create(self, auth_client, payload, storefront):
        response = auth_client.post(BASE, payload, format="json")

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Cotton Kurta"
        assert data["source"] == "app"
        assert data["shopify_id"] == "632910392"
        assert sorted(v["sku"] for v in data["variants"]) == ["KUR-L", "KUR-M"]
        storefront.create_product.assert_called_once()

    def test_storefront_failure_still_creates(self, auth_client, payload, storefront):
        storefront.create_product.side_effect = StorefrontError("HTTP 422", 422)

        response = auth_client.post(BASE, payload, format="json")

        assert response.status_code == 201
        assert response.json()["shopify_id"] == ""
        assert Product.objects.count() == 1

    def test_storefront_sourced_product_is_not_pushed(self, auth_client, payload, storefront):
        payload["source"] = ProductSource.SHOPIFY

        response = auth_client.post(BASE, payload, format="json")

        assert response.status_code == 201
        storefront.create_product.assert_not_called()

    @pytest.mark.parametrize(
        "change",
        [
            {"title": ""},
            {"variants": []},
            {"variants": [{"sku": "X", "price": "-1"}]},
            {"status": "published"},
        ],
    )
    def test_validation_errors(self, auth_client, payload, change):
        payload.update(change)

        response = auth_client.post(BASE, payload, format="json")

        assert response.status_code == 400
        assert not Product.objects.exists()


# ===========================================================================
# Read
# ===========================================================================


class TestProductRead:
    def test_list(self, auth_client, created):
        response = auth_client.get(BASE)

        assert response.status_code == 200
        assert [p["id"] for p in response.json()["results"]] == [created["id"]]

    def test_filter_by_sku(self, auth_client, created, payload):
        payload.update(title="Linen Scarf", variants=[{"sku": "SCF-1", "price": "250"}])
        auth_client.post(BASE, payload, format="json")

        response = auth_client.get(BASE, {"sku": "kur-m"})

        assert [p["title"] for p in response.json()["results"]] == ["Cotton Kurta"]

    def test_retrieve(self, auth_client, created):
        response = auth_client.get(f"{BASE}{created['id']}/")

        assert response.status_code == 200
        assert response.json()["title"] == "Cotton Kurta"

    def test_retrieve_missing(self, auth_client):
        assert auth_client.get(f"{BASE}{uuid4()}/").status_code == 404


# ===========================================================================
# Update / Delete
# ===========================================================================


class TestProductUpdate:
    def test_put_replaces_variants(self, auth_client, created, payload):
        payload["variants"] = [{"sku": "KUR-XL", "price": "699.00"}]

        response = auth_client.put(f"{BASE}{created['id']}/", payload, format="json")

        assert response.status_code == 200
        assert [v["sku"] for v in response.json()["variants"]] == ["KUR-XL"]
        assert ProductVariant.objects.filter(product_id=created["id"]).count() == 1

    def test_patch_keeps_missing_fields(self, auth_client, created):
        response = auth_client.patch(
            f"{BASE}{created['id']}/", {"title": "Cotton Kurta (new)"}, format="json"
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Cotton Kurta (new)"
        assert data["description"] == "Soft cotton"
        assert data["tags"] == ["summer"]
        assert len(data["variants"]) == 2

    def test_put_missing(self, auth_client, payload):
        response = auth_client.put(f"{BASE}{uuid4()}/", payload, format="json")
        assert response.status_code == 404

    def test_patch_missing(self, auth_client):
        response = auth_client.patch(f"{BASE}{uuid4()}/", {"title": "x"}, format="json")
        assert response.status_code == 404

    def test_delete(self, auth_client, created):
        response = auth_client.delete(f"{BASE}{created['id']}/")

        assert response.status_code == 204
        assert not Product.objects.exists()
        assert not ProductVariant.objects.exists()

    def test_delete_missing(self, auth_client):
        assert auth_client.delete(f"{BASE}{uuid4()}/").status_code == 404
