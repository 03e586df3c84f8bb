from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict

from flask import Blueprint, Response, current_app, jsonify, request

from taxilog.api.validators import (
    ApiValidationError,
    parse_billing_cycle,
    parse_group_by,
    parse_kind,
    parse_optional_text,
    parse_service_records,
)
from taxilog.domain.money import (
    apply_discount,
    cents_to_display,
    cents_to_dot_string,
    is_discount_rate_in_range,
    percent_text_to_bps,
    text_to_cents,
)
from taxilog.domain.totals import (
    Totals,
    services_in_year,
    summarize,
    totals_by_day,
    totals_by_month,
    totals_by_payment_method,
    totals_for_cycle,
)
from taxilog.services.csv_export import build_services_csv, csv_filename

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__, url_prefix="/api")


def _json_error(message: str, *, status: int = 400, code: str = "bad_request"):
    return jsonify({"error": {"code": code, "message": message}}), status


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ApiValidationError("Request body must be a JSON object.")
    return data


def _display(cents: int) -> str:
    return cents_to_display(cents, use_locale=current_app.config.get("MONEY_LOCALE_FORMATTING", True))


def _totals_json(totals: Totals) -> Dict[str, Any]:
    return {
        "count": totals.count,
        "total_price_cents": totals.total_price_cents,
        "total_discount_cents": totals.total_discount_cents,
        "total_net_cents": totals.total_net_cents,
        "display": {
            "total_price": _display(totals.total_price_cents),
            "total_discount": _display(totals.total_discount_cents),
            "total_net": _display(totals.total_net_cents),
        },
        "incomplete_ids": list(totals.incomplete_ids),
        "out_of_range_ids": list(totals.out_of_range_ids),
    }


@api_bp.errorhandler(ApiValidationError)
def _handle_validation_error(e: ApiValidationError):
    return _json_error(str(e), status=400)


@api_bp.get("/health")
def health():
    return jsonify({"status": "ok"}), 200


@api_bp.post("/money/parse")
def parse_money_endpoint():
    """
    JSON: {"text": str | null, "kind": "amount" | "percent"}

    Unparseable text is not an error: the client asks while the user is
    still typing, so it gets 200 with valid=false.
    """
    data = _json_body()
    text = parse_optional_text(data, "text")
    kind = parse_kind(data.get("kind"))

    if kind == "percent":
        bps = percent_text_to_bps(text)
        return jsonify(
            {
                "valid": bps is not None,
                "bps": bps,
                "canonical": None if bps is None else cents_to_dot_string(bps),
                "rate_in_range": None if bps is None else is_discount_rate_in_range(bps),
            }
        ), 200

    cents = text_to_cents(text)
    return jsonify(
        {
            "valid": cents is not None,
            "cents": cents,
            "canonical": None if cents is None else cents_to_dot_string(cents),
            "display": None if cents is None else _display(cents),
        }
    ), 200


@api_bp.post("/money/discount")
def discount_endpoint():
    data = _json_body()
    price = parse_optional_text(data, "price")
    discount_percent = parse_optional_text(data, "discount_percent")

    price_cents = text_to_cents(price)
    if price_cents is None:
        return _json_error("'price' is not a valid amount.", status=422, code="invalid_price")

    bps = percent_text_to_bps(discount_percent)
    if bps is None:
        return _json_error("'discount_percent' is not a valid percentage.", status=422, code="invalid_discount")

    d = apply_discount(price_cents, bps)
    return jsonify(
        {
            "price_cents": price_cents,
            "discount_bps": bps,
            "discount_cents": d.discount_cents,
            "net_cents": d.net_cents,
            "rate_in_range": is_discount_rate_in_range(bps),
            "display": {
                "price": _display(price_cents),
                "discount": _display(d.discount_cents),
                "net": _display(d.net_cents),
            },
        }
    ), 200


@api_bp.post("/reports/summary")
def summary_endpoint():
    """
    JSON: {"services": [...], "group_by": "none"|"day"|"month"|"payment_method",
           "cycle": {...} (optional)}

    With a cycle, only services tagged with that cycle id are summarized and
    group_by is ignored.
    """
    data = _json_body()
    records = parse_service_records(data.get("services"))
    group_by = parse_group_by(data.get("group_by"))

    if data.get("cycle") is not None:
        cycle = parse_billing_cycle(data["cycle"])
        totals = totals_for_cycle(records, cycle)
        body: Dict[str, Any] = {
            "cycle": {"id": cycle.id, "name": cycle.name, "status": cycle.status},
            "totals": _totals_json(totals),
        }
    elif group_by == "day":
        body = {"groups": [{"key": k.isoformat(), "totals": _totals_json(t)} for k, t in totals_by_day(records).items()]}
    elif group_by == "month":
        body = {"groups": [{"key": f"{y:04d}-{m:02d}", "totals": _totals_json(t)} for (y, m), t in totals_by_month(records).items()]}
    elif group_by == "payment_method":
        body = {"groups": [{"key": k, "totals": _totals_json(t)} for k, t in totals_by_payment_method(records).items()]}
    else:
        body = {"totals": _totals_json(summarize(records))}

    logger.info(
        "report_summary_generated",
        extra={"services": len(records), "group_by": group_by},
    )
    return jsonify(body), 200


@api_bp.post("/reports/csv")
def csv_endpoint():
    data = _json_body()
    records = parse_service_records(data.get("services"))

    year = data.get("year")
    if year is None:
        year = date.today().year
    if not isinstance(year, int) or isinstance(year, bool):
        raise ApiValidationError("'year' must be an integer.")

    # annual log: only services dated in the requested year
    records = services_in_year(records, year)
    if not records:
        return _json_error(f"No services to export for {year}.", status=422, code="no_services")

    content = build_services_csv(records)
    filename = csv_filename(current_app.config.get("VEHICLE_ID", ""), year)
    return Response(
        content,
        status=200,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
