"""Domain events for the Orders bounded context.

``aggregate_id`` is always the order's ``shopify_id``.
"""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderIngested(DomainEvent):
    """Raised when a storefront order is created or refreshed locally."""


@dataclass(frozen=True)
class OrderConfirmed(DomainEvent):
    """Raised when an operator confirms an order."""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when an order is cancelled (operator or storefront)."""


@dataclass(frozen=True)
class WaybillAssigned(DomainEvent):
    """Raised when a carrier waybill is stored and the order is ready to dispatch."""


@dataclass(frozen=True)
class WaybillAssignmentFailed(DomainEvent):
    """Raised when a carrier attempt fails and its error is recorded."""


@dataclass(frozen=True)
class OrdersCleared(DomainEvent):
    """Raised once per clear-all operation."""
