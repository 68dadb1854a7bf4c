"""Unit tests for the ISO 4217 currency registry."""

from decimal import Decimal

import pytest

from invoice_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from invoice_kernel.exceptions import InvalidCurrencyError


class TestCurrencyRegistry:

    @pytest.mark.parametrize("code", ["USD", "EUR", "GBP", "MYR", "SGD"])
    def test_invoice_form_currencies_are_valid(self, code):
        assert CurrencyRegistry.is_valid(code)

    def test_lowercase_accepted(self):
        assert CurrencyRegistry.is_valid("eur")

    @pytest.mark.parametrize("code", ["", "XXX", "US", None, 123])
    def test_invalid_codes(self, code):
        assert not CurrencyRegistry.is_valid(code)

    def test_validate_normalizes(self):
        assert CurrencyRegistry.validate(" gbp ") == "GBP"

    def test_validate_rejects_unknown(self):
        with pytest.raises(InvalidCurrencyError) as exc_info:
            CurrencyRegistry.validate("ABC")
        assert exc_info.value.currency == "ABC"
        assert exc_info.value.field == "currency"

    def test_validate_rejects_empty(self):
        with pytest.raises(InvalidCurrencyError):
            CurrencyRegistry.validate("")

    def test_decimal_places(self):
        assert CurrencyRegistry.get_decimal_places("USD") == 2
        assert CurrencyRegistry.get_decimal_places("JPY") == 0
        assert CurrencyRegistry.get_decimal_places("KWD") == 3

    def test_unknown_currency_defaults_to_two_places(self):
        assert CurrencyRegistry.get_decimal_places("ZZZ") == 2

    def test_symbols(self):
        assert CurrencyRegistry.get_symbol("USD") == "$"
        assert CurrencyRegistry.get_symbol("EUR") == "€"
        assert CurrencyRegistry.get_symbol("MYR") == "RM"

    def test_symbol_falls_back_to_code(self):
        assert CurrencyRegistry.get_symbol("chf") == "CHF"
        assert CurrencyRegistry.get_symbol("ZZZ") == "ZZZ"

    def test_all_codes(self):
        codes = CurrencyRegistry.all_codes()
        assert {"USD", "EUR", "JPY"} <= codes
        assert all(len(code) == 3 for code in codes)


class TestCurrencyInfo:

    def test_quantum(self):
        assert CurrencyInfo("USD", 2, "US Dollar").quantum == Decimal("0.01")
        assert CurrencyInfo("JPY", 0, "Yen").quantum == Decimal("1")
        assert CurrencyInfo("KWD", 3, "Dinar").quantum == Decimal("0.001")
