"""Order domain exceptions.

Raised by the normalizer and the repository when business rules are
violated.  The services catch these at their boundary and return a
failed result carrying an ``error_code``; the views translate that code
into an HTTP status.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """No order exists for the requested ``shopify_id``."""


class InvalidOrderStatus(Exception):
    """The order's current status does not allow the requested transition."""


class InvalidOrderPayload(Exception):
    """A raw storefront payload cannot be turned into an order record."""
