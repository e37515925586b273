"""Webhook intake exceptions.

Each one maps to a fixed HTTP status in the webhook view.
"""

from __future__ import annotations


class WebhookNotConfigured(Exception):
    """The shared webhook secret is not set (500)."""


class WebhookValidationError(Exception):
    """Required headers are missing or the body is not a JSON object (400)."""


class WebhookAuthenticationError(Exception):
    """The HMAC signature does not match the raw body (401)."""


class MarkerWriteFailed(Exception):
    """The order was stored but the delivery could not be marked processed (500)."""
