"""Integration tests for OrderIngestionService with the Django repository.

The storefront is a mock.  Covers:
- Bulk sync: counts, skipped items, idempotency, fetch failure.
- All-or-nothing commit of a sync page.
- clear_orders, including the empty store.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from modules.core.exceptions import PersistenceError
from modules.core.models import OutboxEvent
from modules.orders.constants import AppStatus, ErrorCode
from modules.orders.ingestion import OrderIngestionService
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.storefront.exceptions import StorefrontError

pytestmark = pytest.mark.integration


@pytest.fixture()
def storefront():
    return MagicMock()


@pytest.fixture()
def service(storefront):
    return OrderIngestionService(
        order_repository=OrderDjangoRepository(), storefront=storefront
    )


# ===========================================================================
# ingest_one
# ===========================================================================


class TestIngestOne:
    def test_commits_immediately(self, service, raw_order):
        record = service.ingest_one(raw_order())

        assert record.shopify_id == "shp-5551234567"
        assert Order.objects.filter(shopify_id="shp-5551234567").exists()

    def test_force_cancelled(self, service, raw_order):
        service.ingest_one(raw_order(), force_status=AppStatus.CANCELLED)

        assert Order.objects.get().app_status == AppStatus.CANCELLED


# ===========================================================================
# sync_recent_orders
# ===========================================================================


class TestSyncRecentOrders:
    def test_upserts_every_order(self, service, storefront, raw_order):
        storefront.list_orders.return_value = [raw_order(id=1), raw_order(id=2)]

        result = service.sync_recent_orders(limit=25)

        assert result.success is True
        assert (result.synced, result.failed) == (2, 0)
        storefront.list_orders.assert_called_once_with(limit=25)
        assert set(Order.objects.values_list("shopify_id", flat=True)) == {"shp-1", "shp-2"}

    def test_second_sync_is_idempotent(self, service, storefront, raw_order):
        storefront.list_orders.return_value = [raw_order(id=1), raw_order(id=2)]

        service.sync_recent_orders()
        result = service.sync_recent_orders()

        assert result.synced == 2
        assert Order.objects.count() == 2

    def test_sync_keeps_local_status(self, service, storefront, raw_order):
        storefront.list_orders.return_value = [raw_order(id=1)]
        service.sync_recent_orders()
        Order.objects.filter(shopify_id="shp-1").update(app_status=AppStatus.CONFIRMED)

        service.sync_recent_orders()

        assert Order.objects.get(shopify_id="shp-1").app_status == AppStatus.CONFIRMED

    def test_malformed_optional_fields_still_sync(self, service, storefront, raw_order):
        odd = raw_order(
            id=2, customer="guest", line_items=[42, {"title": "Scarf", "quantity": "two"}]
        )
        storefront.list_orders.return_value = [raw_order(id=1), odd]

        result = service.sync_recent_orders()

        assert (result.synced, result.failed) == (2, 0)
        stored = Order.objects.get(shopify_id="shp-2")
        assert stored.customer["email"] == "priya@example.com"
        assert [item["quantity"] for item in stored.line_items] == [0]

    def test_items_without_id_are_skipped(self, service, storefront, raw_order):
        broken = raw_order()
        del broken["id"]
        storefront.list_orders.return_value = [raw_order(id=1), broken, "garbage"]

        result = service.sync_recent_orders()

        assert result.success is True
        assert (result.synced, result.failed) == (1, 2)

    def test_empty_page(self, service, storefront):
        storefront.list_orders.return_value = []

        result = service.sync_recent_orders()

        assert result.success is True
        assert (result.synced, result.failed) == (0, 0)

    def test_fetch_failure(self, service, storefront):
        storefront.list_orders.side_effect = StorefrontError("HTTP 401", 401)

        result = service.sync_recent_orders()

        assert result.success is False
        assert result.error_code == ErrorCode.STOREFRONT_ERROR
        assert not Order.objects.exists()

    def test_commit_failure_writes_nothing(self, service, storefront, raw_order):
        storefront.list_orders.return_value = [raw_order(id=1), raw_order(id=2)]

        with patch(
            "modules.core.batch.WriteBatch.commit",
            side_effect=PersistenceError("database is locked"),
        ):
            result = service.sync_recent_orders()

        assert result.success is False
        assert result.error_code == ErrorCode.PERSISTENCE_ERROR
        assert (result.synced, result.failed) == (0, 2)
        assert not Order.objects.exists()


# ===========================================================================
# clear_orders
# ===========================================================================


class TestClearOrders:
    def test_deletes_everything(self, service, storefront, raw_order):
        storefront.list_orders.return_value = [raw_order(id=1), raw_order(id=2)]
        service.sync_recent_orders()

        result = service.clear_orders()

        assert result.success is True
        assert result.deleted == 2
        assert not Order.objects.exists()
        assert OutboxEvent.objects.filter(event_type="OrdersCleared").count() == 1

    def test_empty_store(self, service):
        result = service.clear_orders()

        assert result.success is True
        assert result.deleted == 0
        assert not OutboxEvent.objects.filter(event_type="OrdersCleared").exists()
