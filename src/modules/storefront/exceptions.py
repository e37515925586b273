"""Storefront integration exceptions."""

from __future__ import annotations

from typing import Optional


class StorefrontError(Exception):
    """A storefront Admin API call failed (transport, HTTP status or payload)."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StorefrontNotConfigured(StorefrontError):
    """Store domain or access token is missing from the settings."""
