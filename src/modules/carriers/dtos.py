"""Carrier gateway result DTO (Pydantic v2, immutable)."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from modules.carriers.constants import DEFAULT_ERROR_CODE


class CarrierResult(BaseModel):
    """Outcome of one waybill-assignment attempt.

    A successful result always carries a waybill number; a failed one
    always carries an error message and code.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    waybill_number: Optional[str] = None
    label_url: Optional[str] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None

    @model_validator(mode="after")
    def consistent_outcome(self):
        if self.success and not self.waybill_number:
            raise ValueError("A successful carrier result needs a waybill number.")
        if not self.success and not self.error_message:
            raise ValueError("A failed carrier result needs an error message.")
        return self

    @classmethod
    def assigned(cls, waybill_number: str, label_url: Optional[str]) -> CarrierResult:
        return cls(success=True, waybill_number=waybill_number, label_url=label_url)

    @classmethod
    def failed(cls, message: str, code: str = DEFAULT_ERROR_CODE) -> CarrierResult:
        return cls(success=False, error_message=message, error_code=code)
