"""Fulfillment service layer (Use Cases).

Drives an order through the fulfillment state machine:

    NEW -> CONFIRMED -> READY_TO_DISPATCH
    NEW -> CANCELLED, CONFIRMED -> CANCELLED

Rules enforced:
- Transitions are validated against ``VALID_TRANSITIONS`` and written with
  conditional updates; a failed operation leaves the order unchanged.
- Cancellation reaches the storefront first; the local status only
  changes after the storefront accepted it.
- Waybill assignment tries the primary carrier, then the secondary one.
  Every failed attempt is appended to the order's carrier errors.
- ``bulk_confirm`` commits all valid confirmations in one batch or none.
- ``bulk_cancel`` cancels one order at a time with independent outcomes.

Every operation returns a result DTO; business failures never raise.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List

import structlog
from django.db import DatabaseError

from modules.carriers.constants import DEFAULT_ERROR_CODE
from modules.core.batch import WriteBatch
from modules.core.exceptions import PersistenceError
from modules.orders.constants import AppStatus, ErrorCode
from modules.orders.dtos import ActionResult, BulkActionResult
from modules.orders.exceptions import InvalidOrderStatus, OrderNotFound
from modules.storefront.exceptions import StorefrontError

if TYPE_CHECKING:
    from modules.carriers.gateways import ICarrierGateway
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.storefront.client import IStorefrontClient

logger = structlog.get_logger(__name__)


class FulfillmentService:
    """Application service for operator actions on orders.

    Receives the repository, the storefront client and both carrier
    gateways via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        storefront: IStorefrontClient,
        primary_carrier: ICarrierGateway,
        secondary_carrier: ICarrierGateway,
    ) -> None:
        self._order_repo = order_repository
        self._storefront = storefront
        self._carriers = (primary_carrier, secondary_carrier)

    # ------------------------------------------------------------------
    # Single-order commands
    # ------------------------------------------------------------------

    def confirm(self, shopify_id: str) -> ActionResult:
        """NEW -> CONFIRMED."""
        log = logger.bind(shopify_id=shopify_id)
        try:
            order = self._order_repo.transition(shopify_id, AppStatus.CONFIRMED)
        except OrderNotFound as exc:
            return ActionResult.failed(shopify_id, str(exc), ErrorCode.NOT_FOUND)
        except InvalidOrderStatus as exc:
            log.warning("order.confirm_not_allowed", error=str(exc))
            return ActionResult.failed(shopify_id, str(exc), ErrorCode.INVALID_TRANSITION)
        except DatabaseError as exc:
            log.error("order.confirm_write_failed", error=str(exc))
            return ActionResult.failed(
                shopify_id, "Failed to update order status.", ErrorCode.PERSISTENCE_ERROR
            )

        log.info("order.confirmed")
        return self._success(order, "Order confirmed.")

    def cancel(self, shopify_id: str) -> ActionResult:
        """NEW/CONFIRMED -> CANCELLED, storefront first."""
        log = logger.bind(shopify_id=shopify_id)
        order = self._order_repo.get_by_key(shopify_id)
        if order is None:
            return ActionResult.failed(
                shopify_id, f"Order {shopify_id} not found.", ErrorCode.NOT_FOUND
            )
        if not order.can_transition_to(AppStatus.CANCELLED):
            log.warning("order.cancel_not_allowed", current_status=order.app_status)
            return ActionResult.failed(
                shopify_id,
                f"Cannot cancel order in status {order.app_status}.",
                ErrorCode.INVALID_TRANSITION,
            )

        try:
            self._storefront.cancel_order(order.storefront_order_id)
        except StorefrontError as exc:
            log.warning("order.storefront_cancel_failed", error=str(exc))
            return ActionResult.failed(
                shopify_id,
                f"Storefront rejected the cancellation: {exc}",
                ErrorCode.STOREFRONT_ERROR,
            )

        try:
            order = self._order_repo.transition(shopify_id, AppStatus.CANCELLED)
        except OrderNotFound as exc:
            return ActionResult.failed(shopify_id, str(exc), ErrorCode.NOT_FOUND)
        except InvalidOrderStatus as exc:
            log.error("order.cancel_lost_race", error=str(exc))
            return ActionResult.failed(shopify_id, str(exc), ErrorCode.INVALID_TRANSITION)
        except DatabaseError as exc:
            log.error("order.cancel_write_failed", error=str(exc))
            return ActionResult.failed(
                shopify_id,
                "Cancelled on the storefront but the local update failed.",
                ErrorCode.PERSISTENCE_ERROR,
            )

        log.info("order.cancelled")
        return self._success(order, "Order cancelled.")

    def assign_waybill(self, shopify_id: str) -> ActionResult:
        """CONFIRMED -> READY_TO_DISPATCH via primary, then secondary carrier."""
        log = logger.bind(shopify_id=shopify_id)
        order = self._order_repo.get_by_key(shopify_id)
        if order is None:
            return ActionResult.failed(
                shopify_id, f"Order {shopify_id} not found.", ErrorCode.NOT_FOUND
            )
        if order.app_status != AppStatus.CONFIRMED:
            return ActionResult.failed(
                shopify_id,
                f"Waybills can only be assigned to CONFIRMED orders (is {order.app_status}).",
                ErrorCode.INVALID_TRANSITION,
            )

        failures: List[str] = []
        try:
            for gateway in self._carriers:
                result = gateway.assign(order)
                if result.success:
                    updated = self._order_repo.record_waybill(
                        shopify_id,
                        carrier=gateway.carrier,
                        awb_number=result.waybill_number,
                        label_url=result.label_url,
                    )
                    log.info(
                        "order.waybill_assigned",
                        carrier=gateway.carrier,
                        awb_number=result.waybill_number,
                        attempts=len(failures) + 1,
                    )
                    return self._success(
                        updated, f"Waybill {result.waybill_number} assigned via {gateway.carrier}."
                    )

                self._order_repo.add_carrier_error(
                    shopify_id,
                    carrier=gateway.carrier,
                    code=result.error_code or DEFAULT_ERROR_CODE,
                    message=result.error_message,
                )
                failures.append(f"{gateway.carrier}: {result.error_message}")
        except OrderNotFound as exc:
            return ActionResult.failed(shopify_id, str(exc), ErrorCode.NOT_FOUND)
        except InvalidOrderStatus as exc:
            log.error("order.waybill_lost_race", error=str(exc))
            return ActionResult.failed(shopify_id, str(exc), ErrorCode.INVALID_TRANSITION)
        except DatabaseError as exc:
            log.error("order.waybill_write_failed", error=str(exc))
            return ActionResult.failed(
                shopify_id, "Failed to store the waybill.", ErrorCode.PERSISTENCE_ERROR
            )

        log.warning("order.waybill_all_carriers_failed", failures=failures)
        return ActionResult.failed(
            shopify_id,
            "All carriers failed. " + " | ".join(failures),
            ErrorCode.CARRIER_ERROR,
        )

    # ------------------------------------------------------------------
    # Bulk commands
    # ------------------------------------------------------------------

    def bulk_confirm(self, shopify_ids: Iterable[str]) -> BulkActionResult:
        """Confirm every valid order in one all-or-nothing batch."""
        keys = list(dict.fromkeys(shopify_ids))
        batch = WriteBatch(label="bulk-confirm")
        errors = {}
        for key in keys:
            order = self._order_repo.get_by_key(key)
            if order is None:
                errors[key] = f"Order {key} not found."
            elif not order.can_transition_to(AppStatus.CONFIRMED):
                errors[key] = f"Cannot confirm order in status {order.app_status}."
            else:
                self._order_repo.stage_transition(key, AppStatus.CONFIRMED, batch)

        try:
            batch.commit()
        except (PersistenceError, OrderNotFound, InvalidOrderStatus) as exc:
            logger.error("order.bulk_confirm_failed", error=str(exc), count=len(keys))
            return BulkActionResult(
                success=0,
                error=len(keys),
                errors={key: f"Batch commit failed: {exc}" for key in keys},
            )

        logger.info("order.bulk_confirmed", confirmed=len(batch), rejected=len(errors))
        return BulkActionResult(success=len(batch), error=len(errors), errors=errors)

    def bulk_cancel(self, shopify_ids: Iterable[str]) -> BulkActionResult:
        """Cancel orders one by one; each outcome is independent."""
        succeeded = 0
        errors = {}
        for key in dict.fromkeys(shopify_ids):
            result = self.cancel(key)
            if result.success:
                succeeded += 1
            else:
                errors[key] = result.message

        logger.info("order.bulk_cancelled", cancelled=succeeded, rejected=len(errors))
        return BulkActionResult(success=succeeded, error=len(errors), errors=errors)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _success(order: Order, message: str) -> ActionResult:
        return ActionResult(
            success=True,
            shopify_id=order.shopify_id,
            message=message,
            app_status=order.app_status,
            carrier=order.carrier,
            awb_number=order.awb_number,
            awb_label_url=order.awb_label_url,
        )


def default_fulfillment_service() -> FulfillmentService:
    """Service wired with production collaborators (Delhivery primary)."""
    from modules.carriers.gateways import DelhiveryGateway, ShiprocketGateway
    from modules.orders.repositories.django_repository import OrderDjangoRepository
    from modules.storefront.client import ShopifyClient

    return FulfillmentService(
        order_repository=OrderDjangoRepository(),
        storefront=ShopifyClient.from_settings(),
        primary_carrier=DelhiveryGateway.from_settings(),
        secondary_carrier=ShiprocketGateway.from_settings(),
    )
