# backend/taxilog/domain/totals.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Tuple, TypeVar

from taxilog.domain.models import BillingCycle, ServiceRecord
from taxilog.domain.money import (
    apply_discount,
    is_discount_rate_in_range,
    percent_text_to_bps,
    sum_cents,
    text_to_cents,
)

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)


@dataclass(frozen=True)
class PricedService:
    """
    A ServiceRecord with its amounts resolved to integer cents.

    price_cents is None when the typed price does not parse; such a record
    is "incomplete" and contributes nothing to totals.
    """
    record: ServiceRecord
    price_cents: Optional[int]
    discount_bps: int
    discount_cents: int
    net_cents: int

    @property
    def is_complete(self) -> bool:
        return self.price_cents is not None

    @property
    def rate_in_range(self) -> bool:
        return is_discount_rate_in_range(self.discount_bps)


def price_service(record: ServiceRecord) -> PricedService:
    """
    Resolve a record's typed price/discount into cents.

    An unparseable or empty discount counts as 0%.
    """
    price_cents = text_to_cents(record.price)
    bps = percent_text_to_bps(record.discount_percent)
    if bps is None:
        bps = 0

    if price_cents is None:
        return PricedService(record=record, price_cents=None, discount_bps=bps, discount_cents=0, net_cents=0)

    d = apply_discount(price_cents, bps)
    return PricedService(
        record=record,
        price_cents=price_cents,
        discount_bps=bps,
        discount_cents=d.discount_cents,
        net_cents=d.net_cents,
    )


@dataclass(frozen=True)
class Totals:
    """
    Aggregated cents for a set of services.

    count only includes complete records. incomplete_ids lists records whose
    price did not parse; out_of_range_ids lists records whose discount rate
    is outside [0%, 100%] (they are still summed).
    """
    count: int = 0
    total_price_cents: int = 0
    total_discount_cents: int = 0
    total_net_cents: int = 0
    incomplete_ids: Tuple[str, ...] = field(default_factory=tuple)
    out_of_range_ids: Tuple[str, ...] = field(default_factory=tuple)

    def __add__(self, other: "Totals") -> "Totals":
        if not isinstance(other, Totals):
            return NotImplemented
        return Totals(
            count=self.count + other.count,
            total_price_cents=sum_cents(self.total_price_cents, other.total_price_cents),
            total_discount_cents=sum_cents(self.total_discount_cents, other.total_discount_cents),
            total_net_cents=sum_cents(self.total_net_cents, other.total_net_cents),
            incomplete_ids=self.incomplete_ids + other.incomplete_ids,
            out_of_range_ids=self.out_of_range_ids + other.out_of_range_ids,
        )


def _totals_for_priced(priced: PricedService) -> Totals:
    if not priced.is_complete:
        return Totals(incomplete_ids=(priced.record.id,))
    return Totals(
        count=1,
        total_price_cents=priced.price_cents,
        total_discount_cents=priced.discount_cents,
        total_net_cents=priced.net_cents,
        out_of_range_ids=() if priced.rate_in_range else (priced.record.id,),
    )


def _fold(records: Iterable[ServiceRecord]) -> Totals:
    totals = Totals()
    for record in records:
        totals = totals + _totals_for_priced(price_service(record))
    return totals


def _warn_out_of_range(totals: Totals) -> None:
    if totals.out_of_range_ids:
        logger.warning(
            "discount_rate_out_of_range",
            extra={"service_ids": list(totals.out_of_range_ids)},
        )


def summarize(records: Iterable[ServiceRecord]) -> Totals:
    """
    Sum price, discount and net over records in integer cents.

    total_net_cents == total_price_cents - total_discount_cents always holds
    because every record's net is derived from its own price and discount.
    """
    totals = _fold(records)
    _warn_out_of_range(totals)
    return totals


def _group(records: Iterable[ServiceRecord], key: Callable[[ServiceRecord], K]) -> Dict[K, Totals]:
    buckets: Dict[K, List[ServiceRecord]] = {}
    for record in records:
        buckets.setdefault(key(record), []).append(record)

    grouped = {k: _fold(buckets[k]) for k in sorted(buckets)}
    _warn_out_of_range(sum(grouped.values(), Totals()))
    return grouped


def totals_by_day(records: Iterable[ServiceRecord]) -> Dict[date, Totals]:
    return _group(records, lambda r: r.date)


def totals_by_month(records: Iterable[ServiceRecord]) -> Dict[Tuple[int, int], Totals]:
    return _group(records, lambda r: (r.date.year, r.date.month))


def totals_by_payment_method(records: Iterable[ServiceRecord]) -> Dict[str, Totals]:
    return _group(records, lambda r: r.payment_method)


def services_in_cycle(records: Iterable[ServiceRecord], cycle: BillingCycle) -> List[ServiceRecord]:
    return [r for r in records if r.billing_cycle_id == cycle.id]


def totals_for_cycle(records: Iterable[ServiceRecord], cycle: BillingCycle) -> Totals:
    return summarize(services_in_cycle(records, cycle))


def services_in_year(records: Iterable[ServiceRecord], year: int) -> List[ServiceRecord]:
    return [r for r in records if r.date.year == year]
