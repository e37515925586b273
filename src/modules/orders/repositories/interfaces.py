"""Order repository interface.

Extends ``IRepository[Order]`` with the writes the ingestion and
fulfillment services need.  Every method addresses orders by
``shopify_id``; ``stage_*`` variants append the write to a caller-owned
``WriteBatch`` instead of applying it.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional, Tuple

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.core.batch import WriteBatch
    from modules.orders.dtos import OrderRecord
    from modules.orders.models import CarrierError, Order


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root."""

    @abstractmethod
    def get_by_key(self, shopify_id: str) -> Optional[Order]:
        """Retrieve an order (with its carrier errors) by ``shopify_id``."""

    @abstractmethod
    def keys(self) -> List[str]:
        """Every stored ``shopify_id``."""

    @abstractmethod
    def upsert(
        self, record: OrderRecord, force_status: Optional[str] = None
    ) -> Tuple[Order, bool]:
        """Create or merge *record*; return ``(order, created)``.

        An existing order keeps its locally owned fields.  *force_status*
        is applied to new orders, and to existing ones only when their
        current status allows the transition.
        """

    @abstractmethod
    def stage_upsert(
        self, record: OrderRecord, batch: WriteBatch, force_status: Optional[str] = None
    ) -> None:
        """Append ``upsert(record, force_status)`` to *batch*."""

    @abstractmethod
    def transition(self, shopify_id: str, to_status: str) -> Order:
        """Move an order to *to_status* with a conditional update.

        Raises:
            OrderNotFound: no order has this key.
            InvalidOrderStatus: the current status does not allow the move.
        """

    @abstractmethod
    def stage_transition(self, shopify_id: str, to_status: str, batch: WriteBatch) -> None:
        """Append ``transition(shopify_id, to_status)`` to *batch*."""

    @abstractmethod
    def record_waybill(
        self,
        shopify_id: str,
        carrier: str,
        awb_number: str,
        label_url: Optional[str],
    ) -> Order:
        """Store carrier + waybill and mark a CONFIRMED order READY_TO_DISPATCH.

        Raises:
            OrderNotFound: no order has this key.
            InvalidOrderStatus: the order is no longer CONFIRMED.
        """

    @abstractmethod
    def add_carrier_error(
        self, shopify_id: str, carrier: str, code: str, message: str
    ) -> CarrierError:
        """Append one failed carrier attempt to the order's error log."""

    @abstractmethod
    def stage_delete(self, shopify_id: str, batch: WriteBatch) -> None:
        """Append the deletion of one order to *batch*."""

    @abstractmethod
    def stage_cleared_notice(self, deleted: int, batch: WriteBatch) -> None:
        """Append the change notification for a clear-all to *batch*."""
