"""Tests for InvoiceConfig validation and YAML loading."""

import pytest
import yaml

from invoice_kernel.config import DEFAULT_TERMS, InvoiceConfig, load_config


class TestInvoiceConfig:

    def test_defaults(self):
        config = InvoiceConfig.with_defaults()
        assert config.default_currency == "USD"
        assert config.allowed_currencies == ("USD", "EUR", "GBP", "MYR", "SGD")
        assert config.default_payment_terms_days == 30
        assert config.default_terms == DEFAULT_TERMS
        assert config.default_locale == "en-US"
        assert config.invoice_number_prefix == "INV"
        assert config.payment_number_prefix == "PAY"
        assert config.number_width == 6

    def test_codes_normalized(self):
        config = InvoiceConfig(default_currency="eur", allowed_currencies=("usd", " eur "))
        assert config.default_currency == "EUR"
        assert config.allowed_currencies == ("USD", "EUR")
        assert config.is_allowed_currency("Usd")
        assert not config.is_allowed_currency("GBP")

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"allowed_currencies": ("USD", "XXX")}, "unknown codes"),
            ({"allowed_currencies": ()}, "cannot be empty"),
            ({"default_currency": "JPY"}, "must be one of"),
            ({"default_payment_terms_days": -1}, "cannot be negative"),
            ({"default_locale": "fr-FR"}, "default_locale"),
            ({"invoice_number_prefix": "inv"}, "upper-case"),
            ({"payment_number_prefix": "P-Y"}, "upper-case"),
            ({"payment_number_prefix": "INV"}, "must differ"),
            ({"number_width": 0}, "number_width"),
            ({"number_width": 13}, "number_width"),
        ],
    )
    def test_invalid_values(self, overrides, message):
        with pytest.raises(ValueError, match=message):
            InvoiceConfig(**overrides)

    def test_from_dict(self):
        config = InvoiceConfig.from_dict(
            {"default_currency": "GBP", "allowed_currencies": ["GBP", "EUR"], "number_width": 5}
        )
        assert config.default_currency == "GBP"
        assert config.allowed_currencies == ("GBP", "EUR")
        assert config.number_width == 5

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ValueError, match="Unknown invoice configuration keys"):
            InvoiceConfig.from_dict({"default_currency": "USD", "fiscal_year_start": 4})


class TestLoadConfig:

    def test_top_level(self, tmp_path):
        path = tmp_path / "invoicing.yaml"
        path.write_text("default_currency: SGD\ndefault_payment_terms_days: 14\n")
        config = load_config(path)
        assert config.default_currency == "SGD"
        assert config.default_payment_terms_days == 14

    def test_nested_section(self, tmp_path):
        path = tmp_path / "company.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "invoicing": {
                        "default_currency": "MYR",
                        "allowed_currencies": ["MYR", "SGD"],
                        "default_locale": "en-GB",
                        "invoice_number_prefix": "SI",
                    }
                }
            )
        )
        config = load_config(str(path))
        assert config.default_currency == "MYR"
        assert config.allowed_currencies == ("MYR", "SGD")
        assert config.default_locale == "en-GB"
        assert config.invoice_number_prefix == "SI"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == InvoiceConfig()

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- USD\n- EUR\n")
        with pytest.raises(ValueError, match="expected a mapping"):
            load_config(path)

    def test_invalid_value_in_file(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("number_width: 40\n")
        with pytest.raises(ValueError):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")
