# backend/taxilog/domain/money.py
from __future__ import annotations

import functools
import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional

from babel import Locale, UnknownLocaleError
from babel.numbers import format_currency

logger = logging.getLogger(__name__)


class MoneyError(ValueError):
    """Raised when the money helpers are called with non-integer amounts."""


CURRENCY = "EUR"
CURRENCY_SUFFIX = " €"
DISPLAY_LOCALE = "es_ES"

# 10000 bps == 100%
BPS_DENOMINATOR = 10_000
MAX_DISCOUNT_BPS = 10_000

# Longest accepted integer part. Far above any service price, and keeps
# int() under the interpreter's digit limit for str conversion.
MAX_INTEGER_DIGITS = 15

# Grammar after normalization. [0-9] rather than \d so that only ASCII
# digits reach int().
_NUMBER_RE = re.compile(r"-?[0-9]*\.?[0-9]*")
_HAS_DIGIT = re.compile(r"[0-9]")
# str patterns treat U+00A0 and U+202F as whitespace too.
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class Discount:
    """
    Result of applying a discount rate to an amount.
    Both values are integer cents.
    """
    discount_cents: int
    net_cents: int


def _require_int(value: object, name: str) -> int:
    # bool is an int subclass but never a valid amount
    if not isinstance(value, int) or isinstance(value, bool):
        raise MoneyError(f"{name} must be an int")
    return value


def _normalize_number_text(text: object) -> Optional[str]:
    """
    Normalize typed decimal text to "-?digits.digits" or return None.

    - drop all whitespace (including non-breaking spaces)
    - if a comma is present, dots are thousands separators and the comma
      is the decimal separator ("1.234,56" -> "1234.56")
    - otherwise a dot is the decimal separator
    """
    if not isinstance(text, str):
        return None

    s = _WHITESPACE_RE.sub("", text)
    if "," in s:
        s = s.replace(".", "").replace(",", ".")

    if not _NUMBER_RE.fullmatch(s) or not _HAS_DIGIT.search(s):
        return None
    if len(s.lstrip("-").partition(".")[0]) > MAX_INTEGER_DIGITS:
        return None
    return s


def _to_hundredths(normalized: str) -> int:
    """
    "12.3" -> 1230, "-0.057" -> -5.
    Fraction digits past the second are truncated, never rounded.
    """
    negative = normalized.startswith("-")
    digits = normalized[1:] if negative else normalized

    whole, _, fraction = digits.partition(".")
    fraction = (fraction + "00")[:2]

    value = int(whole or "0") * 100 + int(fraction)
    return -value if negative else value


def text_to_cents(text: Optional[str]) -> Optional[int]:
    """
    Parse user-typed money text into integer cents.

    Accepts examples:
      "12" -> 1200
      "12,3" -> 1230
      "12.30" -> 1230
      " 1.234,56 " -> 123456
      "12.347" -> 1234  (truncated)
      "12." -> 1200  (partial input while typing)

    Returns None instead of raising for anything unparseable:
      None, "", "abc", "-", "-.", "12.34.56"
    nor for an integer part longer than MAX_INTEGER_DIGITS.

    None means "no value", which callers must not confuse with 0.
    """
    normalized = _normalize_number_text(text)
    if normalized is None:
        return None
    return _to_hundredths(normalized)


def percent_text_to_bps(text: Optional[str]) -> Optional[int]:
    """
    Parse percentage text into basis points (1% == 100 bps).

      "10" -> 1000
      "10,5" -> 1050
      "10.50" -> 1050
      "33.339" -> 3333  (truncated)

    Same grammar and failure rules as text_to_cents().
    """
    normalized = _normalize_number_text(text)
    if normalized is None:
        return None
    return _to_hundredths(normalized)


def apply_discount(cents: int, bps: int) -> Discount:
    """
    discount = half-up(cents * bps / 10000), symmetric around zero.
    net = cents - discount.

    This is the only place where amounts are rounded. Rates outside
    [0, 10000] are not rejected here; see is_discount_rate_in_range().
    """
    _require_int(cents, "cents")
    _require_int(bps, "bps")

    numerator = cents * bps
    # floor division on the magnitude == truncation toward zero
    magnitude = (abs(numerator) + BPS_DENOMINATOR // 2) // BPS_DENOMINATOR
    discount = magnitude if numerator >= 0 else -magnitude

    return Discount(discount_cents=discount, net_cents=cents - discount)


def is_discount_rate_in_range(bps: int) -> bool:
    return 0 <= _require_int(bps, "bps") <= MAX_DISCOUNT_BPS


def cents_to_dot_string(cents: int) -> str:
    """
    Canonical storage/CSV form: 1234 -> "12.34", -5 -> "-0.05".
    text_to_cents() parses it back to the same value.
    """
    _require_int(cents, "cents")
    sign = "-" if cents < 0 else ""
    units, minor = divmod(abs(cents), 100)
    return f"{sign}{units}.{minor:02d}"


def _format_display_manual(cents: int) -> str:
    sign = "-" if cents < 0 else ""
    units, minor = divmod(abs(cents), 100)
    grouped = f"{units:,}".replace(",", ".")
    return f"{sign}{grouped},{minor:02d}{CURRENCY_SUFFIX}"


@functools.lru_cache(maxsize=None)
def _display_formatter(locale_name: str) -> Optional[Callable[[Decimal], str]]:
    # Built once per locale, failures included.
    try:
        locale = Locale.parse(locale_name)
    except (UnknownLocaleError, ValueError):
        logger.warning(
            "display_formatter_unavailable",
            extra={"locale": locale_name},
        )
        return None
    return functools.partial(format_currency, currency=CURRENCY, locale=locale)


def cents_to_display(cents: int, *, use_locale: bool = True) -> str:
    """
    Format cents for people: 1234 -> "12,34 €", -500 -> "-5,00 €".

    With use_locale the es_ES CLDR rules decide thousands grouping;
    otherwise (or when the locale data cannot be loaded) groups of three
    are separated with ".". Both render the same value to the cent.
    """
    _require_int(cents, "cents")

    formatter = _display_formatter(DISPLAY_LOCALE) if use_locale else None
    if formatter is None:
        return _format_display_manual(cents)

    # exact: Decimal(1234).scaleb(-2) == Decimal("12.34")
    text = formatter(Decimal(cents).scaleb(-2))
    return text.replace("\u00a0", " ").replace("\u202f", " ")


def sum_cents(*values: int) -> int:
    """
    Sum cents with type checks (no floats).
    """
    total = 0
    for v in values:
        total += _require_int(v, "all values")
    return total
