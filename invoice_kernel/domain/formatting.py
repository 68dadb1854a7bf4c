"""
Presentation Formatter -- locale-aware display strings.

Renders amounts and dates for invoice lists, detail views and payment
dialogs. Formatting never feeds back into calculation, and it never
raises for display input: unknown locales fall back to ``en-US``,
unknown currencies print their code, and unparseable dates are returned
unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from invoice_kernel.domain.currency import CurrencyRegistry
from invoice_kernel.domain.models import parse_date
from invoice_kernel.domain.money import Money, to_decimal
from invoice_kernel.exceptions import ValidationError

DEFAULT_LOCALE = "en-US"

_EN_MONTHS = (
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
)
_EN_MONTHS_ABBR = tuple(name[:3] for name in _EN_MONTHS)
_DE_MONTHS = (
    "Januar", "Februar", "März", "April", "Mai", "Juni", "Juli",
    "August", "September", "Oktober", "November", "Dezember",
)
_DE_MONTHS_ABBR = (
    "Jan.", "Feb.", "März", "Apr.", "Mai", "Juni", "Juli",
    "Aug.", "Sept.", "Okt.", "Nov.", "Dez.",
)


@dataclass(frozen=True)
class LocaleFormat:
    """Separators, symbol placement and date patterns for one locale."""
    group: str
    decimal: str
    symbol_first: bool
    months: tuple[str, ...]
    months_abbr: tuple[str, ...]
    # str.format patterns over d, dd, m, mm, y, mon and month
    date_short: str
    date_medium: str
    date_long: str


LOCALES: dict[str, LocaleFormat] = {
    "en-US": LocaleFormat(
        group=",",
        decimal=".",
        symbol_first=True,
        months=_EN_MONTHS,
        months_abbr=_EN_MONTHS_ABBR,
        date_short="{m}/{d}/{y}",
        date_medium="{mon} {d}, {y}",
        date_long="{month} {d}, {y}",
    ),
    "en-GB": LocaleFormat(
        group=",",
        decimal=".",
        symbol_first=True,
        months=_EN_MONTHS,
        months_abbr=_EN_MONTHS_ABBR,
        date_short="{dd}/{mm}/{y}",
        date_medium="{d} {mon} {y}",
        date_long="{d} {month} {y}",
    ),
    "de-DE": LocaleFormat(
        group=".",
        decimal=",",
        symbol_first=False,
        months=_DE_MONTHS,
        months_abbr=_DE_MONTHS_ABBR,
        date_short="{d}.{m}.{y}",
        date_medium="{d}. {mon} {y}",
        date_long="{d}. {month} {y}",
    ),
}


def get_locale(locale: str | None) -> LocaleFormat:
    """Look up a locale, accepting ``en_US`` as well as ``en-US``."""
    key = (locale or DEFAULT_LOCALE).replace("_", "-")
    return LOCALES.get(key, LOCALES[DEFAULT_LOCALE])


def _group_digits(amount: Decimal, places: int, fmt: LocaleFormat) -> str:
    text = f"{amount:,.{places}f}"
    if fmt.group == "," and fmt.decimal == ".":
        return text
    return text.translate(str.maketrans({",": fmt.group, ".": fmt.decimal}))


def format_currency(
    amount: Decimal | int | str,
    currency_code: str,
    locale: str = DEFAULT_LOCALE,
) -> str:
    """
    Format an amount with the currency symbol for ``locale``.

    >>> format_currency(Decimal("1234.5"), "USD")
    '$1,234.50'
    >>> format_currency(Decimal("1234.5"), "EUR", "de-DE")
    '1.234,50 €'
    """
    code = (currency_code or "").strip().upper()
    if isinstance(amount, float):
        amount = repr(amount)
    try:
        value = to_decimal(amount)
    except ValidationError:
        return f"{amount} {code}".strip()

    fmt = get_locale(locale)
    info = CurrencyRegistry.get_info(code)
    places = info.decimal_places if info else 2
    symbol = info.symbol if info and info.symbol else code
    quantized = abs(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 and quantized != 0 else ""
    digits = _group_digits(quantized, places, fmt)

    if not fmt.symbol_first:
        return f"{sign}{digits} {symbol}"
    if symbol == code:
        return f"{sign}{code} {digits}"
    return f"{sign}{symbol}{digits}"


def format_money(money: Money, locale: str = DEFAULT_LOCALE) -> str:
    return format_currency(money.amount, money.currency, locale)


def format_date(value: Any, locale: str = DEFAULT_LOCALE, style: str = "medium") -> str:
    """
    Format a date as ``short`` (1/5/2025), ``medium`` (Jan 5, 2025) or
    ``long`` (January 5, 2025) for ``locale``.
    """
    if value is None:
        return ""
    try:
        day: date = parse_date(value, "date")
    except ValidationError:
        return value if isinstance(value, str) else str(value)

    fmt = get_locale(locale)
    pattern = {
        "short": fmt.date_short,
        "long": fmt.date_long,
    }.get(style, fmt.date_medium)
    return pattern.format(
        d=day.day,
        dd=f"{day.day:02d}",
        m=day.month,
        mm=f"{day.month:02d}",
        y=day.year,
        mon=fmt.months_abbr[day.month - 1],
        month=fmt.months[day.month - 1],
    )
