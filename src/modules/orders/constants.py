"""Order domain constants.

Defines the fulfillment status choices, the valid transitions of the
fulfillment state machine and the error codes returned by the services.
"""

from django.db import models


class AppStatus(models.TextChoices):
    NEW = "NEW", "New"
    CONFIRMED = "CONFIRMED", "Confirmed"
    READY_TO_DISPATCH = "READY_TO_DISPATCH", "Ready to dispatch"
    CANCELLED = "CANCELLED", "Cancelled"


VALID_TRANSITIONS: dict[str, set[str]] = {
    AppStatus.NEW: {AppStatus.CONFIRMED, AppStatus.CANCELLED},
    AppStatus.CONFIRMED: {AppStatus.READY_TO_DISPATCH, AppStatus.CANCELLED},
    AppStatus.READY_TO_DISPATCH: set(),
    AppStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[str] = {AppStatus.READY_TO_DISPATCH, AppStatus.CANCELLED}


def sources_for(target: str) -> set[str]:
    """Statuses from which *target* can be reached in one step."""
    return {source for source, targets in VALID_TRANSITIONS.items() if target in targets}


# Storefront order ids are stored under this prefix.
SHOPIFY_ID_PREFIX = "shp-"
DEFAULT_CURRENCY = "INR"
# Shopify sends null for orders that have not been paid or fulfilled yet.
DEFAULT_FINANCIAL_STATUS = "pending"
DEFAULT_FULFILLMENT_STATUS = "unfulfilled"


class WebhookTopic:
    ORDER_CREATED = "orders/create"
    ORDER_UPDATED = "orders/updated"
    ORDER_CANCELLED = "orders/cancelled"

    ORDER_TOPICS = frozenset({ORDER_CREATED, ORDER_UPDATED, ORDER_CANCELLED})


class ErrorCode:
    """``error_code`` values carried by service results."""

    NOT_FOUND = "not_found"
    INVALID_TRANSITION = "invalid_transition"
    STOREFRONT_ERROR = "storefront_error"
    CARRIER_ERROR = "carrier_error"
    PERSISTENCE_ERROR = "persistence_error"
