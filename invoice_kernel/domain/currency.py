"""Currency -- ISO 4217 registry with minor units and display symbols."""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar

from invoice_kernel.exceptions import InvalidCurrencyError


@dataclass(frozen=True)
class CurrencyInfo:
    """Information about a single ISO 4217 currency."""

    code: str
    decimal_places: int
    name: str
    symbol: str | None = None  # None: display the code itself

    @property
    def quantum(self) -> Decimal:
        """Smallest representable unit, for Decimal.quantize()."""
        return Decimal(1).scaleb(-self.decimal_places)


class CurrencyRegistry:
    """Registry of ISO 4217 currencies used by the sales back office."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        # Currencies offered on the invoice forms
        "USD": CurrencyInfo("USD", 2, "US Dollar", "$"),
        "EUR": CurrencyInfo("EUR", 2, "Euro", "€"),
        "GBP": CurrencyInfo("GBP", 2, "Pound Sterling", "£"),
        "MYR": CurrencyInfo("MYR", 2, "Malaysian Ringgit", "RM"),
        "SGD": CurrencyInfo("SGD", 2, "Singapore Dollar", "S$"),
        # Other majors
        "AUD": CurrencyInfo("AUD", 2, "Australian Dollar", "A$"),
        "CAD": CurrencyInfo("CAD", 2, "Canadian Dollar", "CA$"),
        "CHF": CurrencyInfo("CHF", 2, "Swiss Franc"),
        "CNY": CurrencyInfo("CNY", 2, "Chinese Yuan", "CN¥"),
        "HKD": CurrencyInfo("HKD", 2, "Hong Kong Dollar", "HK$"),
        "INR": CurrencyInfo("INR", 2, "Indian Rupee", "₹"),
        "NZD": CurrencyInfo("NZD", 2, "New Zealand Dollar", "NZ$"),
        "AED": CurrencyInfo("AED", 2, "UAE Dirham"),
        "BRL": CurrencyInfo("BRL", 2, "Brazilian Real", "R$"),
        "DKK": CurrencyInfo("DKK", 2, "Danish Krone"),
        "IDR": CurrencyInfo("IDR", 2, "Indonesian Rupiah"),
        "MXN": CurrencyInfo("MXN", 2, "Mexican Peso", "MX$"),
        "NOK": CurrencyInfo("NOK", 2, "Norwegian Krone"),
        "PHP": CurrencyInfo("PHP", 2, "Philippine Peso", "₱"),
        "PLN": CurrencyInfo("PLN", 2, "Polish Zloty"),
        "SEK": CurrencyInfo("SEK", 2, "Swedish Krona"),
        "THB": CurrencyInfo("THB", 2, "Thai Baht"),
        "ZAR": CurrencyInfo("ZAR", 2, "South African Rand"),
        # Zero decimal currencies
        "JPY": CurrencyInfo("JPY", 0, "Japanese Yen", "¥"),
        "KRW": CurrencyInfo("KRW", 0, "South Korean Won", "₩"),
        "VND": CurrencyInfo("VND", 0, "Vietnamese Dong", "₫"),
        "CLP": CurrencyInfo("CLP", 0, "Chilean Peso"),
        "ISK": CurrencyInfo("ISK", 0, "Icelandic Krona"),
        # Three decimal currencies
        "BHD": CurrencyInfo("BHD", 3, "Bahraini Dinar"),
        "JOD": CurrencyInfo("JOD", 3, "Jordanian Dinar"),
        "KWD": CurrencyInfo("KWD", 3, "Kuwaiti Dinar"),
        "OMR": CurrencyInfo("OMR", 3, "Omani Rial"),
        "TND": CurrencyInfo("TND", 3, "Tunisian Dinar"),
    }

    # Minor units assumed for codes outside the registry (display only)
    DEFAULT_DECIMAL_PLACES: ClassVar[int] = 2

    @classmethod
    def is_valid(cls, code: str) -> bool:
        """Check if a currency code is known."""
        if not code or not isinstance(code, str):
            return False
        return code.upper().strip() in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        """Get currency information by code."""
        if not code or not isinstance(code, str):
            return None
        return cls._CURRENCIES.get(code.upper().strip())

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        """Get decimal places for a currency."""
        info = cls.get_info(code)
        return info.decimal_places if info else cls.DEFAULT_DECIMAL_PLACES

    @classmethod
    def get_symbol(cls, code: str) -> str:
        """Display symbol, falling back to the upper-cased code."""
        info = cls.get_info(code)
        if info and info.symbol:
            return info.symbol
        return code.upper().strip() if isinstance(code, str) else str(code)

    @classmethod
    def validate(cls, code: str) -> str:
        """Validate and normalize a currency code."""
        if not code or not isinstance(code, str):
            raise InvalidCurrencyError(repr(code))

        normalized = code.upper().strip()
        if normalized not in cls._CURRENCIES:
            raise InvalidCurrencyError(code)
        return normalized

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        """Get all valid currency codes."""
        return frozenset(cls._CURRENCIES.keys())
