# backend/taxilog/domain/models.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


class ModelValidationError(ValueError):
    """Raised when service records or billing cycles fail basic validation."""


PAYMENT_METHODS = ("Tarjeta", "Efectivo", "Amex", "Abonado")

CYCLE_OPEN = "open"
CYCLE_CLOSED = "closed"


def _require_text(value: object, name: str, *, allow_empty: bool = True) -> None:
    if not isinstance(value, str):
        raise ModelValidationError(f"{name} must be a string")
    if not allow_empty and not value.strip():
        raise ModelValidationError(f"{name} must be a non-empty string")


def _require_optional_text(value: object, name: str) -> None:
    if value is not None and not isinstance(value, str):
        raise ModelValidationError(f"{name} must be a string or None")


@dataclass(frozen=True)
class ServiceRecord:
    """
    A logged transport service.

    price and discount_percent are kept exactly as typed ("12,5", "10.00",
    "" ...). Parsing happens in the money layer, never here.
    """
    id: str
    date: date
    origin: str
    destination: str
    company: str
    price: str
    discount_percent: str
    payment_method: str
    observations: str = ""
    client_name: Optional[str] = None
    client_id: Optional[str] = None
    client_phone: Optional[str] = None
    billing_cycle_id: Optional[str] = None

    def __post_init__(self) -> None:
        _require_text(self.id, "ServiceRecord.id", allow_empty=False)
        if not isinstance(self.date, date):
            raise ModelValidationError("ServiceRecord.date must be a date")
        for name in ("origin", "destination", "company", "price", "discount_percent", "observations"):
            _require_text(getattr(self, name), f"ServiceRecord.{name}")
        if self.payment_method not in PAYMENT_METHODS:
            raise ModelValidationError(
                f"ServiceRecord.payment_method must be one of {', '.join(PAYMENT_METHODS)}"
            )
        for name in ("client_name", "client_id", "client_phone", "billing_cycle_id"):
            _require_optional_text(getattr(self, name), f"ServiceRecord.{name}")


@dataclass(frozen=True)
class BillingCycle:
    """
    A billing period. Open cycles have no end_date yet.
    """
    id: str
    name: str
    start_date: date
    end_date: Optional[date] = None
    status: str = CYCLE_OPEN

    def __post_init__(self) -> None:
        _require_text(self.id, "BillingCycle.id", allow_empty=False)
        _require_text(self.name, "BillingCycle.name", allow_empty=False)
        if not isinstance(self.start_date, date):
            raise ModelValidationError("BillingCycle.start_date must be a date")
        if self.status not in (CYCLE_OPEN, CYCLE_CLOSED):
            raise ModelValidationError("BillingCycle.status must be 'open' or 'closed'")

        if self.end_date is not None:
            if not isinstance(self.end_date, date):
                raise ModelValidationError("BillingCycle.end_date must be a date or None")
            if self.end_date < self.start_date:
                raise ModelValidationError("BillingCycle.end_date must not be before start_date")
        elif self.status == CYCLE_CLOSED:
            raise ModelValidationError("a closed BillingCycle must have an end_date")
