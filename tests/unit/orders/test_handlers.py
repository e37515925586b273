"""Unit tests for Orders event handlers and their bus wiring."""

from __future__ import annotations

import logging

import pytest

from modules.orders.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderIngested,
    OrdersCleared,
    WaybillAssigned,
    WaybillAssignmentFailed,
)
from modules.orders.handlers import (
    OrderCancelledHandler,
    OrderConfirmedHandler,
    OrderIngestedHandler,
    OrdersClearedHandler,
    WaybillAssignedHandler,
    WaybillAssignmentFailedHandler,
)
from shared.infrastructure.bus import event_bus

pytestmark = pytest.mark.unit


def _messages(caplog):
    return [record.getMessage() for record in caplog.records]


@pytest.mark.parametrize(
    "handler, event, expected",
    [
        (OrderIngestedHandler(), OrderIngested("shp-1", {"created": True}), "order.event.ingested"),
        (OrderConfirmedHandler(), OrderConfirmed("shp-1"), "order.event.confirmed"),
        (
            OrderCancelledHandler(),
            OrderCancelled("shp-1", {"source": "operator"}),
            "order.event.cancelled",
        ),
        (
            WaybillAssignedHandler(),
            WaybillAssigned("shp-1", {"carrier": "delhivery", "awb_number": "AWB1"}),
            "order.event.waybill_assigned",
        ),
        (
            WaybillAssignmentFailedHandler(),
            WaybillAssignmentFailed("shp-1", {"carrier": "delhivery", "code": "TIMEOUT"}),
            "order.event.waybill_failed",
        ),
        (OrdersClearedHandler(), OrdersCleared("*", {"deleted": 3}), "order.event.cleared"),
    ],
)
def test_handler_logs_event(caplog, handler, event, expected):
    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        handler.handle(event)

    assert any(expected in message for message in _messages(caplog))


def test_waybill_handler_logs_carrier_and_number(caplog):
    event = WaybillAssigned("shp-9", {"carrier": "shiprocket", "awb_number": "SR-77"})

    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        WaybillAssignedHandler().handle(event)

    assert any("SR-77" in m and "shiprocket" in m for m in _messages(caplog))


def test_app_ready_subscribes_handlers_to_the_bus(caplog):
    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        event_bus.publish(OrderConfirmed("shp-42"))

    assert any(
        "order.event.confirmed" in m and "shp-42" in m for m in _messages(caplog)
    )
