# backend/taxilog/services/csv_export.py
from __future__ import annotations

import csv
import io
import logging
import re
from typing import Iterable, List

from taxilog.domain.models import ServiceRecord
from taxilog.domain.money import cents_to_dot_string
from taxilog.domain.totals import price_service

logger = logging.getLogger(__name__)


CSV_HEADER = (
    "Fecha",
    "Mes",
    "Origen",
    "Destino",
    "Empresa",
    "Precio",
    "Descuento(%)",
    "Descuento(€)",
    "Total",
    "Observaciones",
)

MONTH_NAMES = (
    "Enero",
    "Febrero",
    "Marzo",
    "Abril",
    "Mayo",
    "Junio",
    "Julio",
    "Agosto",
    "Septiembre",
    "Octubre",
    "Noviembre",
    "Diciembre",
)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_-]+")


def _row_for(record: ServiceRecord) -> List[str]:
    priced = price_service(record)
    if priced.is_complete:
        amounts = [
            cents_to_dot_string(priced.price_cents),
            # bps share the two-decimal shape of cents: 1050 -> "10.50"
            cents_to_dot_string(priced.discount_bps),
            cents_to_dot_string(priced.discount_cents),
            cents_to_dot_string(priced.net_cents),
        ]
    else:
        amounts = ["", "", "", ""]

    return [
        record.date.strftime("%d/%m/%Y"),
        MONTH_NAMES[record.date.month - 1],
        record.origin,
        record.destination,
        record.company,
        *amounts,
        record.observations,
    ]


def build_services_csv(records: Iterable[ServiceRecord]) -> str:
    """
    Render services as the annual CSV log.

    Rows are sorted by date (stable for equal dates). Amount columns use the
    canonical dot form ("12.34") so spreadsheets and text_to_cents() read
    them back exactly. Records whose price does not parse keep their row
    with empty amount cells.
    """
    ordered = sorted(records, key=lambda r: r.date)

    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for record in ordered:
        writer.writerow(_row_for(record))

    logger.info("csv_export_generated", extra={"rows": len(ordered)})
    return buf.getvalue()


def csv_filename(vehicle_id: str, year: int) -> str:
    """
    "MOVIL Z-41", 2025 -> "log_anual_MOVIL_Z-41_2025.csv"
    """
    token = _UNSAFE_FILENAME_CHARS.sub("_", vehicle_id.strip()).strip("_") or "vehiculo"
    return f"log_anual_{token}_{year}.csv"
