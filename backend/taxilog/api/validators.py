from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from taxilog.domain.models import BillingCycle, ModelValidationError, ServiceRecord


class ApiValidationError(ValueError):
    """Raised when request payload validation fails."""


GROUP_BY_CHOICES = ("none", "day", "month", "payment_method")
PARSE_KINDS = ("amount", "percent")


def parse_iso_date(value: object, field_name: str) -> date:
    if not isinstance(value, str):
        raise ApiValidationError(f"'{field_name}' must be an ISO date string (YYYY-MM-DD).")
    try:
        # the client stores full ISO timestamps for some records
        return date.fromisoformat(value.strip()[:10])
    except ValueError as e:
        raise ApiValidationError(f"'{field_name}' must be an ISO date string (YYYY-MM-DD).") from e


def _optional_str(raw: Dict[str, Any], key: str, idx: int) -> Optional[str]:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ApiValidationError(f"Service at index {idx}: '{key}' must be a string.")
    return value


def parse_service_record(raw: object, idx: int) -> ServiceRecord:
    if not isinstance(raw, dict):
        raise ApiValidationError(f"Service at index {idx} must be an object.")

    record_id = raw.get("id")
    # the mobile client uses Date.now() numbers as ids
    if isinstance(record_id, int) and not isinstance(record_id, bool):
        record_id = str(record_id)

    try:
        return ServiceRecord(
            id=record_id,
            date=parse_iso_date(raw.get("date"), f"services[{idx}].date"),
            origin=raw.get("origin", ""),
            destination=raw.get("destination", ""),
            company=raw.get("company", ""),
            price=raw.get("price", ""),
            discount_percent=raw.get("discountPercent", raw.get("discount_percent", "")),
            payment_method=raw.get("paymentMethod", raw.get("payment_method")),
            observations=raw.get("observations", ""),
            client_name=_optional_str(raw, "clientName", idx),
            client_id=_optional_str(raw, "clientId", idx),
            client_phone=_optional_str(raw, "clientPhone", idx),
            billing_cycle_id=_optional_str(raw, "billingCycleId", idx),
        )
    except ModelValidationError as e:
        raise ApiValidationError(f"Service at index {idx}: {e}") from e


def parse_service_records(raw_services: object) -> List[ServiceRecord]:
    if not isinstance(raw_services, list):
        raise ApiValidationError("'services' must be a list.")

    records = [parse_service_record(raw, idx) for idx, raw in enumerate(raw_services)]

    seen: set[str] = set()
    for record in records:
        if record.id in seen:
            raise ApiValidationError(f"Service ids must be unique (duplicate: {record.id}).")
        seen.add(record.id)

    return records


def parse_billing_cycle(raw: object) -> BillingCycle:
    if not isinstance(raw, dict):
        raise ApiValidationError("'cycle' must be an object.")

    end_raw = raw.get("endDate", raw.get("end_date"))
    try:
        return BillingCycle(
            id=raw.get("id"),
            name=raw.get("name"),
            start_date=parse_iso_date(raw.get("startDate", raw.get("start_date")), "cycle.startDate"),
            end_date=None if end_raw is None else parse_iso_date(end_raw, "cycle.endDate"),
            status=raw.get("status", "open"),
        )
    except ModelValidationError as e:
        raise ApiValidationError(f"Invalid cycle: {e}") from e


def parse_group_by(raw: object) -> str:
    if raw is None:
        return "none"
    if raw not in GROUP_BY_CHOICES:
        raise ApiValidationError(f"'group_by' must be one of: {', '.join(GROUP_BY_CHOICES)}.")
    return raw


def parse_kind(raw: object) -> str:
    if raw is None:
        return "amount"
    if raw not in PARSE_KINDS:
        raise ApiValidationError(f"'kind' must be one of: {', '.join(PARSE_KINDS)}.")
    return raw


def parse_optional_text(data: Dict[str, Any], key: str) -> Optional[str]:
    if key not in data:
        raise ApiValidationError(f"Missing field: {key}")
    value = data[key]
    if value is not None and not isinstance(value, str):
        raise ApiValidationError(f"'{key}' must be a string or null.")
    return value
