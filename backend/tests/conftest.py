from datetime import date

import pytest

from taxilog.domain.models import ServiceRecord


@pytest.fixture()
def make_service():
    def _make(
        id="1",
        *,
        day=date(2025, 3, 14),
        price="10.00",
        discount_percent="",
        payment_method="Tarjeta",
        **kwargs,
    ):
        fields = {
            "origin": "Aeropuerto",
            "destination": "Estación Delicias",
            "company": "Radio Taxi",
        }
        fields.update(kwargs)
        return ServiceRecord(
            id=id,
            date=day,
            price=price,
            discount_percent=discount_percent,
            payment_method=payment_method,
            **fields,
        )

    return _make
