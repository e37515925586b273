from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.orders"
    label = "orders"

    def ready(self) -> None:
        from modules.orders.events import (
            OrderCancelled,
            OrderConfirmed,
            OrderIngested,
            OrdersCleared,
            WaybillAssigned,
            WaybillAssignmentFailed,
        )
        from modules.orders.handlers import (
            order_cancelled_handler,
            order_confirmed_handler,
            order_ingested_handler,
            orders_cleared_handler,
            waybill_assigned_handler,
            waybill_assignment_failed_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(OrderIngested, order_ingested_handler)
        event_bus.subscribe(OrderConfirmed, order_confirmed_handler)
        event_bus.subscribe(OrderCancelled, order_cancelled_handler)
        event_bus.subscribe(WaybillAssigned, waybill_assigned_handler)
        event_bus.subscribe(WaybillAssignmentFailed, waybill_assignment_failed_handler)
        event_bus.subscribe(OrdersCleared, orders_cleared_handler)
