"""Carrier gateway exceptions.

These never leave a gateway: ``assign`` turns them into failed
``CarrierResult`` objects.
"""

from __future__ import annotations

from modules.carriers.constants import DEFAULT_ERROR_CODE


class CarrierRejected(Exception):
    """The carrier answered but refused to book the shipment."""

    def __init__(self, message: str, code: str = DEFAULT_ERROR_CODE) -> None:
        super().__init__(message)
        self.code = code
