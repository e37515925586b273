"""Unit tests for FulfillmentService.

Collaborators (repository, storefront, carrier gateways) are mocks, so
these tests pin the orchestration rules:
- confirm/cancel map repository outcomes to result codes.
- cancel reaches the storefront before touching the local status.
- waybill assignment falls back to the secondary carrier and records
  every failed attempt.
- bulk_confirm is all-or-nothing; bulk_cancel is per item.
"""

from __future__ import annotations

from unittest.mock import MagicMock, call

import pytest
from django.db import DatabaseError

from modules.carriers.constants import Carrier
from modules.carriers.dtos import CarrierResult
from modules.carriers.gateways import ShiprocketGateway
from modules.orders.constants import AppStatus, ErrorCode
from modules.orders.exceptions import InvalidOrderStatus, OrderNotFound
from modules.orders.models import Order
from modules.orders.services import FulfillmentService
from modules.storefront.exceptions import StorefrontError

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _order(shopify_id="shp-1001", status=AppStatus.NEW, **fields) -> Order:
    return Order(shopify_id=shopify_id, app_status=status, **fields)


@pytest.fixture()
def repo():
    return MagicMock()


@pytest.fixture()
def storefront():
    return MagicMock()


@pytest.fixture()
def primary():
    gateway = MagicMock()
    gateway.carrier = Carrier.DELHIVERY
    return gateway


@pytest.fixture()
def secondary():
    gateway = MagicMock()
    gateway.carrier = Carrier.SHIPROCKET
    return gateway


@pytest.fixture()
def service(repo, storefront, primary, secondary):
    return FulfillmentService(
        order_repository=repo,
        storefront=storefront,
        primary_carrier=primary,
        secondary_carrier=secondary,
    )


# ===========================================================================
# confirm
# ===========================================================================


class TestConfirm:
    def test_success(self, service, repo):
        repo.transition.return_value = _order(status=AppStatus.CONFIRMED)

        result = service.confirm("shp-1001")

        assert result.success is True
        assert result.app_status == AppStatus.CONFIRMED
        repo.transition.assert_called_once_with("shp-1001", AppStatus.CONFIRMED)

    def test_not_found(self, service, repo):
        repo.transition.side_effect = OrderNotFound("Order shp-404 not found.")

        result = service.confirm("shp-404")

        assert result.success is False
        assert result.error_code == ErrorCode.NOT_FOUND

    def test_invalid_transition(self, service, repo):
        repo.transition.side_effect = InvalidOrderStatus(
            "Cannot transition from CONFIRMED to CONFIRMED."
        )

        result = service.confirm("shp-1001")

        assert result.success is False
        assert result.error_code == ErrorCode.INVALID_TRANSITION

    def test_write_failure(self, service, repo):
        repo.transition.side_effect = DatabaseError("locked")

        result = service.confirm("shp-1001")

        assert result.success is False
        assert result.error_code == ErrorCode.PERSISTENCE_ERROR


# ===========================================================================
# cancel
# ===========================================================================


class TestCancel:
    def test_cancels_storefront_then_local(self, service, repo, storefront):
        manager = MagicMock()
        manager.attach_mock(storefront.cancel_order, "cancel_order")
        manager.attach_mock(repo.transition, "transition")
        repo.get_by_key.return_value = _order(shopify_id="shp-5551234567")
        repo.transition.return_value = _order(
            shopify_id="shp-5551234567", status=AppStatus.CANCELLED
        )

        result = service.cancel("shp-5551234567")

        assert result.success is True
        assert result.app_status == AppStatus.CANCELLED
        assert manager.mock_calls == [
            call.cancel_order("5551234567"),
            call.transition("shp-5551234567", AppStatus.CANCELLED),
        ]

    def test_confirmed_order_can_be_cancelled(self, service, repo):
        repo.get_by_key.return_value = _order(status=AppStatus.CONFIRMED)
        repo.transition.return_value = _order(status=AppStatus.CANCELLED)

        assert service.cancel("shp-1001").success is True

    def test_storefront_failure_leaves_order_unchanged(self, service, repo, storefront):
        repo.get_by_key.return_value = _order()
        storefront.cancel_order.side_effect = StorefrontError("422 already fulfilled", 422)

        result = service.cancel("shp-1001")

        assert result.success is False
        assert result.error_code == ErrorCode.STOREFRONT_ERROR
        repo.transition.assert_not_called()

    @pytest.mark.parametrize("status", [AppStatus.READY_TO_DISPATCH, AppStatus.CANCELLED])
    def test_terminal_order_is_rejected_without_storefront_call(
        self, service, repo, storefront, status
    ):
        repo.get_by_key.return_value = _order(status=status)

        result = service.cancel("shp-1001")

        assert result.error_code == ErrorCode.INVALID_TRANSITION
        storefront.cancel_order.assert_not_called()

    def test_missing_order(self, service, repo, storefront):
        repo.get_by_key.return_value = None

        result = service.cancel("shp-404")

        assert result.error_code == ErrorCode.NOT_FOUND
        storefront.cancel_order.assert_not_called()

    def test_local_write_failure_after_storefront_cancel(self, service, repo):
        repo.get_by_key.return_value = _order()
        repo.transition.side_effect = DatabaseError("locked")

        result = service.cancel("shp-1001")

        assert result.error_code == ErrorCode.PERSISTENCE_ERROR


# ===========================================================================
# assign_waybill
# ===========================================================================


class TestAssignWaybill:
    def test_primary_success_skips_secondary(self, service, repo, primary, secondary):
        order = _order(status=AppStatus.CONFIRMED)
        repo.get_by_key.return_value = order
        primary.assign.return_value = CarrierResult.assigned("DL123", "https://label/DL123")
        repo.record_waybill.return_value = _order(
            status=AppStatus.READY_TO_DISPATCH,
            carrier=Carrier.DELHIVERY,
            awb_number="DL123",
            awb_label_url="https://label/DL123",
        )

        result = service.assign_waybill("shp-1001")

        assert result.success is True
        assert result.carrier == Carrier.DELHIVERY
        assert result.awb_number == "DL123"
        assert result.app_status == AppStatus.READY_TO_DISPATCH
        primary.assign.assert_called_once_with(order)
        secondary.assign.assert_not_called()
        repo.add_carrier_error.assert_not_called()
        repo.record_waybill.assert_called_once_with(
            "shp-1001",
            carrier=Carrier.DELHIVERY,
            awb_number="DL123",
            label_url="https://label/DL123",
        )

    def test_falls_back_to_secondary(self, service, repo, primary, secondary):
        repo.get_by_key.return_value = _order(status=AppStatus.CONFIRMED)
        primary.assign.return_value = CarrierResult.failed("Pincode not serviceable", "REJECTED")
        secondary.assign.return_value = CarrierResult.assigned("SR999", None)
        repo.record_waybill.return_value = _order(
            status=AppStatus.READY_TO_DISPATCH,
            carrier=Carrier.SHIPROCKET,
            awb_number="SR999",
        )

        result = service.assign_waybill("shp-1001")

        assert result.success is True
        assert result.carrier == Carrier.SHIPROCKET
        repo.add_carrier_error.assert_called_once_with(
            "shp-1001",
            carrier=Carrier.DELHIVERY,
            code="REJECTED",
            message="Pincode not serviceable",
        )

    def test_both_carriers_fail(self, service, repo, primary, secondary):
        repo.get_by_key.return_value = _order(status=AppStatus.CONFIRMED)
        primary.assign.return_value = CarrierResult.failed("Timed out", "TIMEOUT")
        secondary.assign.return_value = CarrierResult.failed("Bad token", "HTTP_401")

        result = service.assign_waybill("shp-1001")

        assert result.success is False
        assert result.error_code == ErrorCode.CARRIER_ERROR
        assert result.message.startswith("All carriers failed.")
        assert "Timed out" in result.message
        assert "Bad token" in result.message
        assert repo.add_carrier_error.call_count == 2
        repo.record_waybill.assert_not_called()

    def test_secondary_answer_without_waybill_is_a_failure(self, repo, storefront, primary):
        session = MagicMock()
        session.post.side_effect = [
            MagicMock(json=MagicMock(return_value={"shipment_id": 88})),
            MagicMock(
                json=MagicMock(
                    return_value={"awb_assign_status": 1, "response": {"data": {"awb_code": ""}}}
                )
            ),
        ]
        service = FulfillmentService(
            order_repository=repo,
            storefront=storefront,
            primary_carrier=primary,
            secondary_carrier=ShiprocketGateway(
                base_url="https://sr.example.com", api_token="sr-token", session=session
            ),
        )
        repo.get_by_key.return_value = _order(status=AppStatus.CONFIRMED)
        primary.assign.return_value = CarrierResult.failed("Timed out", "TIMEOUT")

        result = service.assign_waybill("shp-1001")

        assert result.success is False
        assert result.error_code == ErrorCode.CARRIER_ERROR
        assert repo.add_carrier_error.call_args_list[1] == call(
            "shp-1001",
            carrier=Carrier.SHIPROCKET,
            code="INVALID_RESPONSE",
            message="Carrier returned no waybill number.",
        )
        repo.record_waybill.assert_not_called()

    def test_missing_error_code_uses_default(self, service, repo, primary, secondary):
        repo.get_by_key.return_value = _order(status=AppStatus.CONFIRMED)
        primary.assign.return_value = CarrierResult(
            success=False, error_message="unknown", error_code=None
        )
        secondary.assign.return_value = CarrierResult.assigned("SR1", None)
        repo.record_waybill.return_value = _order(
            status=AppStatus.READY_TO_DISPATCH, carrier=Carrier.SHIPROCKET, awb_number="SR1"
        )

        service.assign_waybill("shp-1001")

        assert repo.add_carrier_error.call_args.kwargs["code"] == "API_ERROR"

    @pytest.mark.parametrize(
        "status",
        [AppStatus.NEW, AppStatus.READY_TO_DISPATCH, AppStatus.CANCELLED],
    )
    def test_requires_confirmed(self, service, repo, primary, status):
        repo.get_by_key.return_value = _order(status=status)

        result = service.assign_waybill("shp-1001")

        assert result.error_code == ErrorCode.INVALID_TRANSITION
        primary.assign.assert_not_called()

    def test_missing_order(self, service, repo, primary):
        repo.get_by_key.return_value = None

        assert service.assign_waybill("shp-404").error_code == ErrorCode.NOT_FOUND
        primary.assign.assert_not_called()

    def test_status_changed_before_waybill_stored(self, service, repo, primary):
        repo.get_by_key.return_value = _order(status=AppStatus.CONFIRMED)
        primary.assign.return_value = CarrierResult.assigned("DL1", None)
        repo.record_waybill.side_effect = InvalidOrderStatus("Order is CANCELLED.")

        result = service.assign_waybill("shp-1001")

        assert result.error_code == ErrorCode.INVALID_TRANSITION


# ===========================================================================
# Bulk operations
# ===========================================================================


def _stage_noop(key, to_status, batch):
    batch.add(f"confirm {key}", lambda: None)


def _stage_broken(key, to_status, batch):
    def write():
        raise DatabaseError("connection lost")

    batch.add(f"confirm {key}", write)


class TestBulkConfirm:
    def test_confirms_valid_and_reports_invalid(self, service, repo):
        orders = {
            "shp-1": _order("shp-1"),
            "shp-2": _order("shp-2", status=AppStatus.CANCELLED),
            "shp-3": _order("shp-3"),
        }
        repo.get_by_key.side_effect = orders.get
        repo.stage_transition.side_effect = _stage_noop

        result = service.bulk_confirm(["shp-1", "shp-2", "shp-3", "shp-404"])

        assert result.success == 2
        assert result.error == 2
        assert set(result.errors) == {"shp-2", "shp-404"}
        staged = [c.args[0] for c in repo.stage_transition.call_args_list]
        assert staged == ["shp-1", "shp-3"]

    def test_duplicate_keys_count_once(self, service, repo):
        repo.get_by_key.return_value = _order()
        repo.stage_transition.side_effect = _stage_noop

        result = service.bulk_confirm(["shp-1001", "shp-1001"])

        assert result.success == 1
        assert repo.stage_transition.call_count == 1

    def test_commit_failure_fails_every_item(self, service, repo):
        repo.get_by_key.side_effect = lambda key: _order(key)
        repo.stage_transition.side_effect = _stage_broken

        result = service.bulk_confirm(["shp-1", "shp-2", "shp-3"])

        assert result.success == 0
        assert result.error == 3
        assert set(result.errors) == {"shp-1", "shp-2", "shp-3"}

    def test_empty_input(self, service):
        result = service.bulk_confirm([])
        assert (result.success, result.error) == (0, 0)


class TestBulkCancel:
    def test_independent_outcomes(self, service, repo, storefront):
        orders = {
            "shp-1": _order("shp-1"),
            "shp-2": _order("shp-2", status=AppStatus.CONFIRMED),
            "shp-3": _order("shp-3", status=AppStatus.READY_TO_DISPATCH),
        }
        repo.get_by_key.side_effect = orders.get
        repo.transition.side_effect = lambda key, status: _order(key, status=status)

        result = service.bulk_cancel(["shp-1", "shp-2", "shp-3"])

        assert result.success == 2
        assert result.error == 1
        assert list(result.errors) == ["shp-3"]
        assert storefront.cancel_order.call_count == 2

    def test_storefront_failure_only_affects_that_order(self, service, repo, storefront):
        repo.get_by_key.side_effect = lambda key: _order(key)
        repo.transition.side_effect = lambda key, status: _order(key, status=status)
        storefront.cancel_order.side_effect = [None, StorefrontError("boom", 500)]

        result = service.bulk_cancel(["shp-1", "shp-2"])

        assert result.success == 1
        assert "shp-2" in result.errors
