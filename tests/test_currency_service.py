import pytest

from invoicer.services.currency_service import (
    CURRENCY_SYMBOLS,
    STATIC_RATES_TO_USD,
    convert_amount,
    format_money,
    get_symbol,
)


@pytest.mark.parametrize("code", sorted(STATIC_RATES_TO_USD))
def test_convert_same_currency_is_identity(code):
    assert convert_amount(123.45, code, code) == 123.45


def test_convert_missing_code_is_identity():
    assert convert_amount(50, None, "USD") == 50
    assert convert_amount(50, "EURO", "") == 50


def test_convert_round_trip_between_known_currencies():
    codes = sorted(STATIC_RATES_TO_USD)
    for a in codes:
        for b in codes:
            back = convert_amount(convert_amount(250.0, a, b), b, a)
            assert back == pytest.approx(250.0)


def test_convert_known_rates():
    assert convert_amount(100, "EURO", "USD") == pytest.approx(108.0)
    assert convert_amount(100, "USD", "KSH") == pytest.approx(15500.0)
    assert convert_amount(100, "PUNDS", "EURO") == pytest.approx(125 / 1.08)


def test_unknown_code_counts_as_usd():
    assert convert_amount(100, "XYZ", "USD") == pytest.approx(100)
    assert convert_amount(100, "EURO", "XYZ") == pytest.approx(108)


def test_symbols():
    assert CURRENCY_SYMBOLS["PUNDS"] == "£"
    assert get_symbol("KSH") == "KSh "
    assert get_symbol("XYZ") == ""
    assert format_money(129.2, "USD") == "$129.20"
    assert format_money(1500, "TZS") == "TSh 1500.00"
