"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderIngested,
    OrdersCleared,
    WaybillAssigned,
    WaybillAssignmentFailed,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderIngestedHandler(IEventHandler[OrderIngested]):
    def handle(self, event: OrderIngested) -> None:
        logger.info(
            "order.event.ingested",
            shopify_id=event.aggregate_id,
            created=event.data.get("created"),
        )


class OrderConfirmedHandler(IEventHandler[OrderConfirmed]):
    def handle(self, event: OrderConfirmed) -> None:
        logger.info("order.event.confirmed", shopify_id=event.aggregate_id)


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        logger.info(
            "order.event.cancelled",
            shopify_id=event.aggregate_id,
            source=event.data.get("source"),
        )


class WaybillAssignedHandler(IEventHandler[WaybillAssigned]):
    def handle(self, event: WaybillAssigned) -> None:
        logger.info(
            "order.event.waybill_assigned",
            shopify_id=event.aggregate_id,
            carrier=event.data.get("carrier"),
            awb_number=event.data.get("awb_number"),
        )


class WaybillAssignmentFailedHandler(IEventHandler[WaybillAssignmentFailed]):
    def handle(self, event: WaybillAssignmentFailed) -> None:
        logger.warning(
            "order.event.waybill_failed",
            shopify_id=event.aggregate_id,
            carrier=event.data.get("carrier"),
            code=event.data.get("code"),
        )


class OrdersClearedHandler(IEventHandler[OrdersCleared]):
    def handle(self, event: OrdersCleared) -> None:
        logger.warning("order.event.cleared", deleted=event.data.get("deleted"))


order_ingested_handler = OrderIngestedHandler()
order_confirmed_handler = OrderConfirmedHandler()
order_cancelled_handler = OrderCancelledHandler()
waybill_assigned_handler = WaybillAssignedHandler()
waybill_assignment_failed_handler = WaybillAssignmentFailedHandler()
orders_cleared_handler = OrdersClearedHandler()
