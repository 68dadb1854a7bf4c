"""
Invoicing Configuration Schema.

Defines the structure and defaults for invoicing settings: the default
currency and payment terms offered on new invoices, the currencies a
company invoices in, display locale and document number prefixes.
Values are loaded from a YAML file or a dict at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Self

import yaml

from invoice_kernel.domain.currency import CurrencyRegistry
from invoice_kernel.domain.formatting import LOCALES
from invoice_kernel.logging_config import get_logger

logger = get_logger("config")

DEFAULT_TERMS = (
    "Payment is due within 30 days from the invoice date. "
    "Late payments may be subject to fees."
)


@dataclass
class InvoiceConfig:
    """
    Configuration schema for invoicing.

    Override at instantiation with company-specific values:

        config = InvoiceConfig(
            default_currency="MYR",
            default_payment_terms_days=14,
        )
    """

    # Currency
    default_currency: str = "USD"
    allowed_currencies: tuple[str, ...] = ("USD", "EUR", "GBP", "MYR", "SGD")

    # Payment terms
    default_payment_terms_days: int = 30
    default_terms: str = DEFAULT_TERMS

    # Presentation
    default_locale: str = "en-US"

    # Document numbering
    invoice_number_prefix: str = "INV"
    payment_number_prefix: str = "PAY"
    number_width: int = 6

    def __post_init__(self):
        self.default_currency = (self.default_currency or "").strip().upper()
        self.allowed_currencies = tuple(
            (code or "").strip().upper() for code in self.allowed_currencies
        )

        unknown = [c for c in self.allowed_currencies if not CurrencyRegistry.is_valid(c)]
        if unknown:
            raise ValueError(f"allowed_currencies contains unknown codes: {unknown}")
        if not self.allowed_currencies:
            raise ValueError("allowed_currencies cannot be empty")
        if self.default_currency not in self.allowed_currencies:
            raise ValueError(
                f"default_currency '{self.default_currency}' must be one of "
                f"{list(self.allowed_currencies)}"
            )

        if self.default_payment_terms_days < 0:
            raise ValueError("default_payment_terms_days cannot be negative")

        if self.default_locale not in LOCALES:
            raise ValueError(
                f"default_locale must be one of {sorted(LOCALES)}, got '{self.default_locale}'"
            )

        for name in ("invoice_number_prefix", "payment_number_prefix"):
            prefix = getattr(self, name)
            if not prefix or not prefix.isalnum() or not prefix.isupper() or not prefix[0].isalpha():
                raise ValueError(f"{name} must be upper-case alphanumeric, got '{prefix}'")
        if self.invoice_number_prefix == self.payment_number_prefix:
            raise ValueError("invoice and payment number prefixes must differ")
        if not 1 <= self.number_width <= 12:
            raise ValueError(f"number_width must be between 1 and 12, got {self.number_width}")

        logger.info(
            "invoice_config_initialized",
            extra={
                "default_currency": self.default_currency,
                "allowed_currencies": list(self.allowed_currencies),
                "default_payment_terms_days": self.default_payment_terms_days,
                "default_locale": self.default_locale,
                "invoice_number_prefix": self.invoice_number_prefix,
                "payment_number_prefix": self.payment_number_prefix,
            },
        )

    def is_allowed_currency(self, code: str) -> bool:
        return (code or "").strip().upper() in self.allowed_currencies

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the standard defaults."""
        logger.info("invoice_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create config from a dictionary (e.g. loaded from a file)."""
        logger.info(
            "invoice_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown invoice configuration keys: {unknown}")
        values = dict(data)
        if "allowed_currencies" in values:
            values["allowed_currencies"] = tuple(values["allowed_currencies"])
        return cls(**values)


def load_config(path: str | Path) -> InvoiceConfig:
    """
    Load an ``InvoiceConfig`` from a YAML file.

    The settings may sit at the top level or under an ``invoicing`` key.
    An empty file yields the defaults.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if a value fails validation.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping, got {type(data).__name__}")
    if "invoicing" in data:
        data = data["invoicing"] or {}
    logger.info("invoice_config_file_loaded", extra={"path": str(path)})
    return InvoiceConfig.from_dict(data)
