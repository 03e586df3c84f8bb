# backend/tests/test_money.py
import logging
import random

import pytest

from taxilog.domain import money
from taxilog.domain.money import (
    Discount,
    MoneyError,
    apply_discount,
    cents_to_display,
    cents_to_dot_string,
    is_discount_rate_in_range,
    percent_text_to_bps,
    sum_cents,
    text_to_cents,
)


def test_text_to_cents_basic_formats():
    assert text_to_cents("12") == 1200
    assert text_to_cents("12.34") == 1234
    assert text_to_cents("12,34") == 1234
    assert text_to_cents("12,3") == 1230
    assert text_to_cents("12.30") == 1230
    assert text_to_cents("0.10") == 10
    assert text_to_cents("0") == 0


def test_text_to_cents_thousands_separator_with_decimal_comma():
    assert text_to_cents(" 1.234,56 ") == 123456
    assert text_to_cents("1.234.567,8") == 123456780
    assert text_to_cents("1.234,") == 123400


def test_text_to_cents_strips_all_whitespace():
    assert text_to_cents("1 234,56") == 123456
    assert text_to_cents("1\u00a0234,56\u202f") == 123456
    assert text_to_cents("\t12.5\n") == 1250


def test_text_to_cents_truncates_extra_fraction_digits():
    assert text_to_cents("12.347") == 1234
    assert text_to_cents("12,349") == 1234
    assert text_to_cents("0.009") == 0


def test_text_to_cents_partial_input_while_typing():
    assert text_to_cents("12.") == 1200
    assert text_to_cents(".5") == 50
    assert text_to_cents(",05") == 5


def test_text_to_cents_negative():
    assert text_to_cents("-12.34") == -1234
    assert text_to_cents("-0,05") == -5
    assert text_to_cents("-7") == -700


def test_text_to_cents_longest_integer_part():
    assert text_to_cents("9" * 15) == int("9" * 15) * 100
    assert text_to_cents("-" + "9" * 15 + ",99") == -(int("9" * 15) * 100 + 99)
    # long fractions are truncated, not rejected
    assert text_to_cents("1." + "9" * 5000) == 199


@pytest.mark.parametrize(
    "bad",
    [
        None, "", "   ", "abc", "-", ".", "-.", ",", "12.34.56", "12,34,56", "1-2", "12a", "€12", "12 €", "--1", "+5", "١٢",
        "1" * 16, "-" + "9" * 16 + ",5", "1" * 5000,
    ],
)
def test_text_to_cents_returns_none_for_malformed_input(bad):
    assert text_to_cents(bad) is None


def test_text_to_cents_never_raises_for_non_string_input():
    assert text_to_cents(12) is None  # type: ignore[arg-type]
    assert text_to_cents(12.5) is None  # type: ignore[arg-type]
    assert text_to_cents(b"12") is None  # type: ignore[arg-type]


def test_text_to_cents_distinguishes_missing_from_zero():
    assert text_to_cents("0,00") == 0
    assert text_to_cents("") is None


def test_comma_and_dot_decimal_are_equivalent():
    for s in ["12.34", "0.5", "100", "-3.07", "9.999", "7."]:
        assert text_to_cents(s.replace(".", ",")) == text_to_cents(s)


def test_canonical_dot_string_round_trips():
    rng = random.Random(1234)
    samples = [0, 1, 9, 10, 99, 100, 101, 123456, 10**9 - 1]
    samples += [rng.randrange(10**9) for _ in range(200)]
    for c in samples:
        assert text_to_cents(cents_to_dot_string(c)) == c


def test_cents_to_dot_string_formats():
    assert cents_to_dot_string(1234) == "12.34"
    assert cents_to_dot_string(5) == "0.05"
    assert cents_to_dot_string(-5) == "-0.05"
    assert cents_to_dot_string(0) == "0.00"
    assert cents_to_dot_string(-123456) == "-1234.56"


def test_cents_to_dot_string_negative_round_trips():
    for c in [-1, -99, -100, -123456]:
        assert text_to_cents(cents_to_dot_string(c)) == c


def test_percent_text_to_bps():
    assert percent_text_to_bps("10") == 1000
    assert percent_text_to_bps("10,5") == 1050
    assert percent_text_to_bps("10.50") == 1050
    assert percent_text_to_bps("2.5") == 250
    assert percent_text_to_bps("33.339") == 3333
    assert percent_text_to_bps("0") == 0
    assert percent_text_to_bps("100") == 10000
    assert percent_text_to_bps("-5") == -500


@pytest.mark.parametrize("bad", [None, "", ".", "-", "-.", "abc", "10%", "1.2.3", "9" * 5000])
def test_percent_text_to_bps_rejects_malformed(bad):
    assert percent_text_to_bps(bad) is None


def test_apply_discount_concrete_cases():
    assert apply_discount(1000, 250) == Discount(discount_cents=25, net_cents=975)
    assert apply_discount(1, 5000) == Discount(discount_cents=1, net_cents=0)
    assert apply_discount(3, 3333) == Discount(discount_cents=1, net_cents=2)


def test_apply_discount_half_up_at_midpoint():
    # 0.05 at 10% -> 0.5 cents -> 1
    assert apply_discount(5, 1000).discount_cents == 1
    # 0.04 at 10% -> 0.4 cents -> 0
    assert apply_discount(4, 1000).discount_cents == 0


def test_apply_discount_symmetric_for_negative_numerators():
    assert apply_discount(-1, 5000) == Discount(discount_cents=-1, net_cents=0)
    assert apply_discount(-3, 3333) == Discount(discount_cents=-1, net_cents=-2)
    assert apply_discount(-4, 1000).discount_cents == 0


@pytest.mark.parametrize("amount", [0, 1, -1, 999, 123456789, -50, 10**9])
def test_apply_discount_zero_rate_is_identity(amount):
    assert apply_discount(amount, 0) == Discount(discount_cents=0, net_cents=amount)


def test_apply_discount_full_rate():
    assert apply_discount(1234, 10000) == Discount(discount_cents=1234, net_cents=0)


def test_apply_discount_out_of_range_rates_are_not_rejected():
    # surcharge
    assert apply_discount(1000, -1000) == Discount(discount_cents=-100, net_cents=1100)
    # more than 100%
    assert apply_discount(1000, 15000) == Discount(discount_cents=1500, net_cents=-500)


def test_apply_discount_large_magnitudes_are_exact():
    d = apply_discount(10**9, 10**4)
    assert d == Discount(discount_cents=10**9, net_cents=0)
    d = apply_discount(999_999_999, 3333)
    assert d.discount_cents == (999_999_999 * 3333 + 5000) // 10000


def test_apply_discount_rejects_non_int_arguments():
    with pytest.raises(MoneyError):
        apply_discount(10.0, 100)  # type: ignore[arg-type]
    with pytest.raises(MoneyError):
        apply_discount(1000, "10")  # type: ignore[arg-type]
    with pytest.raises(MoneyError):
        apply_discount(True, 100)  # type: ignore[arg-type]


def test_is_discount_rate_in_range():
    assert is_discount_rate_in_range(0)
    assert is_discount_rate_in_range(10000)
    assert not is_discount_rate_in_range(-1)
    assert not is_discount_rate_in_range(10001)


def test_aggregation_has_no_precision_drift():
    rng = random.Random(42)
    pairs = [(rng.randrange(0, 50_000), rng.randrange(0, 10_001)) for _ in range(2000)]
    results = [apply_discount(a, r) for a, r in pairs]

    sum_of_nets = sum(d.net_cents for d in results)
    sum_of_amounts = sum(a for a, _ in pairs)
    sum_of_discounts = sum(d.discount_cents for d in results)
    assert sum_of_nets == sum_of_amounts - sum_of_discounts


def test_cents_to_display_manual_path():
    assert cents_to_display(1234, use_locale=False) == "12,34 €"
    assert cents_to_display(0, use_locale=False) == "0,00 €"
    assert cents_to_display(-500, use_locale=False) == "-5,00 €"
    assert cents_to_display(-1234, use_locale=False) == "-12,34 €"
    assert cents_to_display(5, use_locale=False) == "0,05 €"
    assert cents_to_display(123456789, use_locale=False) == "1.234.567,89 €"


def test_cents_to_display_locale_path():
    assert cents_to_display(1234) == "12,34 €"
    assert cents_to_display(0) == "0,00 €"
    assert cents_to_display(-500) == "-5,00 €"
    assert cents_to_display(-1234) == "-12,34 €"
    assert cents_to_display(1234567) == "12.345,67 €"


@pytest.mark.parametrize("cents", [0, 7, -7, 1234, 123456, -123456, 987654321])
def test_display_paths_agree_on_value(cents):
    localized = cents_to_display(cents).replace(".", "")
    manual = cents_to_display(cents, use_locale=False).replace(".", "")
    assert localized == manual


def test_cents_to_display_falls_back_when_locale_data_missing(monkeypatch):
    money._display_formatter.cache_clear()
    monkeypatch.setattr(money, "DISPLAY_LOCALE", "xx_YY")
    assert cents_to_display(123456789) == "1.234.567,89 €"
    assert money._display_formatter("xx_YY") is None


def test_missing_locale_is_reported_once(monkeypatch, caplog):
    money._display_formatter.cache_clear()
    monkeypatch.setattr(money, "DISPLAY_LOCALE", "xx_YY")
    with caplog.at_level(logging.WARNING, logger="taxilog.domain.money"):
        for cents in (1, 2, 3):
            cents_to_display(cents)

    warnings = [r for r in caplog.records if r.getMessage() == "display_formatter_unavailable"]
    assert len(warnings) == 1


def test_display_formatter_is_built_once():
    money._display_formatter.cache_clear()
    first = money._display_formatter(money.DISPLAY_LOCALE)
    assert first is not None
    assert money._display_formatter(money.DISPLAY_LOCALE) is first


def test_cents_to_display_rejects_non_int():
    with pytest.raises(MoneyError):
        cents_to_display(12.34)  # type: ignore[arg-type]


def test_sum_cents():
    assert sum_cents(1, 2, 3) == 6
    assert sum_cents() == 0
    with pytest.raises(MoneyError):
        sum_cents(1, 2.0)  # type: ignore[arg-type]
