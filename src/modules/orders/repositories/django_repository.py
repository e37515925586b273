"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.

Concurrency control:
- Status changes are conditional single-row updates
  (``UPDATE ... WHERE app_status IN (...)``), so two racing operators can
  never both move the same order.
- Upserts lock the existing row with ``select_for_update()``; a race on
  the first insert is resolved by the unique ``shopify_id`` constraint and
  a savepoint retry.

Every committed mutation appends an ``OutboxEvent`` in the same
transaction (see ``modules.core.outbox``).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import structlog
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import QuerySet
from django.utils import timezone

from modules.core.batch import WriteBatch
from modules.core.outbox import record_event
from modules.orders.constants import AppStatus, sources_for
from modules.orders.dtos import OrderRecord
from modules.orders.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderIngested,
    OrdersCleared,
    WaybillAssigned,
    WaybillAssignmentFailed,
)
from modules.orders.exceptions import InvalidOrderStatus, OrderNotFound
from modules.orders.models import CarrierError, Order
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"

_TRANSITION_EVENTS = {
    AppStatus.CONFIRMED: OrderConfirmed,
    AppStatus.CANCELLED: OrderCancelled,
}


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order by internal UUID; ``None`` for unknown or invalid IDs."""
        try:
            return Order.objects.prefetch_related("carrier_errors").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_key(self, shopify_id: str) -> Optional[Order]:
        return (
            Order.objects.prefetch_related("carrier_errors")
            .filter(shopify_id=shopify_id)
            .first()
        )

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Order]:
        """List orders with optional ORM filters.

        Returns a lazy QuerySet so the API layer can keep filtering,
        ordering and paginating it.  Carrier errors are prefetched.
        """
        queryset = Order.objects.prefetch_related("carrier_errors")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def keys(self) -> List[str]:
        return list(Order.objects.values_list("shopify_id", flat=True))

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    def save(self, entity: Order) -> Order:
        entity.save()
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        order = self.get_by_id(id)
        if not order:
            return False
        self._delete_by_key(order.shopify_id)
        return True

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    @transaction.atomic
    def upsert(
        self, record: OrderRecord, force_status: Optional[str] = None
    ) -> Tuple[Order, bool]:
        fields = record.ingestion_fields()
        fields["synced_at"] = timezone.now()
        log = logger.bind(shopify_id=record.shopify_id, force_status=force_status)

        order = Order.objects.select_for_update().filter(shopify_id=record.shopify_id).first()
        created = False
        if order is None:
            try:
                with transaction.atomic():
                    order = Order.objects.create(
                        shopify_id=record.shopify_id,
                        app_status=force_status or record.app_status,
                        carrier=record.carrier,
                        awb_number=record.awb_number,
                        awb_label_url=record.awb_label_url,
                        **fields,
                    )
                created = True
            except IntegrityError:
                log.info("order.upsert_insert_race")
                order = Order.objects.select_for_update().get(shopify_id=record.shopify_id)

        previous_status = order.app_status
        if not created:
            for field, value in fields.items():
                setattr(order, field, value)
            update_fields = list(fields)
            if force_status and force_status != order.app_status:
                if order.can_transition_to(force_status):
                    order.app_status = force_status
                    update_fields.append("app_status")
                else:
                    log.warning(
                        "order.forced_status_ignored", current_status=order.app_status
                    )
            order.save(update_fields=update_fields)

        record_event(
            OrderIngested(
                aggregate_id=order.shopify_id,
                data={"created": created, "app_status": order.app_status},
            ),
            topic=OUTBOX_TOPIC,
        )
        cancelled_now = (
            force_status == AppStatus.CANCELLED
            and order.app_status == AppStatus.CANCELLED
            and (created or previous_status != AppStatus.CANCELLED)
        )
        if cancelled_now:
            record_event(
                OrderCancelled(aggregate_id=order.shopify_id, data={"source": "storefront"}),
                topic=OUTBOX_TOPIC,
            )

        log.info("order.upserted", created=created, app_status=order.app_status)
        return order, created

    def stage_upsert(
        self, record: OrderRecord, batch: WriteBatch, force_status: Optional[str] = None
    ) -> None:
        batch.add(
            f"upsert {record.shopify_id}",
            lambda: self.upsert(record, force_status=force_status),
        )

    # ------------------------------------------------------------------
    # Fulfillment writes
    # ------------------------------------------------------------------

    @transaction.atomic
    def transition(self, shopify_id: str, to_status: str) -> Order:
        updated = Order.objects.filter(
            shopify_id=shopify_id, app_status__in=sources_for(to_status)
        ).update(app_status=to_status, updated_at=timezone.now())
        if not updated:
            self._raise_for_missed_update(shopify_id, to_status)

        event_class = _TRANSITION_EVENTS.get(to_status)
        if event_class is not None:
            record_event(
                event_class(aggregate_id=shopify_id, data={"source": "operator"}),
                topic=OUTBOX_TOPIC,
            )
        logger.info("order.transitioned", shopify_id=shopify_id, app_status=to_status)
        return Order.objects.get(shopify_id=shopify_id)

    def stage_transition(self, shopify_id: str, to_status: str, batch: WriteBatch) -> None:
        batch.add(
            f"transition {shopify_id} to {to_status}",
            lambda: self.transition(shopify_id, to_status),
        )

    @transaction.atomic
    def record_waybill(
        self,
        shopify_id: str,
        carrier: str,
        awb_number: str,
        label_url: Optional[str],
    ) -> Order:
        updated = Order.objects.filter(
            shopify_id=shopify_id, app_status=AppStatus.CONFIRMED
        ).update(
            carrier=carrier,
            awb_number=awb_number,
            awb_label_url=label_url,
            app_status=AppStatus.READY_TO_DISPATCH,
            updated_at=timezone.now(),
        )
        if not updated:
            self._raise_for_missed_update(shopify_id, AppStatus.READY_TO_DISPATCH)

        record_event(
            WaybillAssigned(
                aggregate_id=shopify_id,
                data={"carrier": carrier, "awb_number": awb_number, "label_url": label_url},
            ),
            topic=OUTBOX_TOPIC,
        )
        logger.info(
            "order.waybill_recorded",
            shopify_id=shopify_id,
            carrier=carrier,
            awb_number=awb_number,
        )
        return Order.objects.get(shopify_id=shopify_id)

    @transaction.atomic
    def add_carrier_error(
        self, shopify_id: str, carrier: str, code: str, message: str
    ) -> CarrierError:
        order_id = (
            Order.objects.filter(shopify_id=shopify_id).values_list("id", flat=True).first()
        )
        if order_id is None:
            raise OrderNotFound(f"Order {shopify_id} not found.")

        error = CarrierError.objects.create(
            order_id=order_id, carrier=carrier, code=code, message=message
        )
        record_event(
            WaybillAssignmentFailed(
                aggregate_id=shopify_id,
                data={"carrier": carrier, "code": code, "message": message},
            ),
            topic=OUTBOX_TOPIC,
        )
        logger.info(
            "order.carrier_error_recorded", shopify_id=shopify_id, carrier=carrier, code=code
        )
        return error

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def stage_delete(self, shopify_id: str, batch: WriteBatch) -> None:
        batch.add(f"delete {shopify_id}", lambda: self._delete_by_key(shopify_id))

    def stage_cleared_notice(self, deleted: int, batch: WriteBatch) -> None:
        batch.add(
            "outbox OrdersCleared",
            lambda: record_event(
                OrdersCleared(aggregate_id="*", data={"deleted": deleted}),
                topic=OUTBOX_TOPIC,
            ),
        )

    def _delete_by_key(self, shopify_id: str) -> int:
        deleted, _ = Order.objects.filter(shopify_id=shopify_id).delete()
        logger.info("order.deleted", shopify_id=shopify_id)
        return deleted

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _raise_for_missed_update(shopify_id: str, to_status: str) -> None:
        current = (
            Order.objects.filter(shopify_id=shopify_id)
            .values_list("app_status", flat=True)
            .first()
        )
        if current is None:
            raise OrderNotFound(f"Order {shopify_id} not found.")
        raise InvalidOrderStatus(f"Cannot move order {shopify_id} from {current} to {to_status}.")
