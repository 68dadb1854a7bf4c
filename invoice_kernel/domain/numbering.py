"""
Document numbering -- ``INV-2025-000042`` style identifiers.

Invoice and payment numbers are ``{prefix}-{year}-{n}`` with ``n``
zero-padded and restarting at 1 each calendar year. A number is assigned
once and never changes.

``DocumentNumberer`` is the allocation seam: ``SequentialNumberer`` keeps
counters in memory, the persistence adapter allocates from a locked
counter table.
"""

from __future__ import annotations

import re
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import NamedTuple

from invoice_kernel.exceptions import ValidationError
from invoice_kernel.logging_config import get_logger

logger = get_logger("domain.numbering")

INVOICE_PREFIX = "INV"
PAYMENT_PREFIX = "PAY"
DEFAULT_WIDTH = 6

_NUMBER_RE = re.compile(r"^(?P<prefix>[A-Z][A-Z0-9]*)-(?P<year>\d{4})-(?P<seq>\d+)$")


class DocumentNumber(NamedTuple):
    prefix: str
    year: int
    sequence: int


def format_document_number(prefix: str, year: int, sequence: int, width: int = DEFAULT_WIDTH) -> str:
    if sequence < 1:
        raise ValidationError("sequence", f"must be positive, got {sequence}")
    return f"{prefix}-{year}-{sequence:0{width}d}"


def parse_document_number(number: str) -> DocumentNumber:
    match = _NUMBER_RE.match((number or "").strip())
    if match is None:
        raise ValidationError("document_number", f"{number!r} is not PREFIX-YYYY-NNNNNN")
    return DocumentNumber(match["prefix"], int(match["year"]), int(match["seq"]))


def next_document_number(
    prefix: str,
    year: int,
    existing: Iterable[str],
    width: int = DEFAULT_WIDTH,
) -> str:
    """
    The number following the highest one already issued for prefix/year.

    Numbers for other prefixes or years, and strings that do not parse,
    are ignored.
    """
    highest = 0
    for number in existing:
        try:
            parsed = parse_document_number(number)
        except ValidationError:
            continue
        if parsed.prefix == prefix and parsed.year == year:
            highest = max(highest, parsed.sequence)
    return format_document_number(prefix, year, highest + 1, width)


class DocumentNumberer(ABC):
    """Allocates unique document numbers."""

    @abstractmethod
    def next_number(self, prefix: str, year: int) -> str:
        ...


class SequentialNumberer(DocumentNumberer):
    """
    In-memory per-prefix, per-year counters.

    Thread-safe. Counters start from zero unless seeded with numbers
    already issued.
    """

    def __init__(self, width: int = DEFAULT_WIDTH, issued: Iterable[str] = ()):
        self._width = width
        self._counters: dict[tuple[str, int], int] = {}
        self._lock = threading.Lock()
        self.seed(issued)

    def seed(self, issued: Iterable[str]) -> None:
        """Advance counters past numbers that already exist."""
        with self._lock:
            for number in issued:
                parsed = parse_document_number(number)
                key = (parsed.prefix, parsed.year)
                self._counters[key] = max(self._counters.get(key, 0), parsed.sequence)

    def next_number(self, prefix: str, year: int) -> str:
        with self._lock:
            value = self._counters.get((prefix, year), 0) + 1
            self._counters[(prefix, year)] = value
        number = format_document_number(prefix, year, value, self._width)
        logger.debug("document_number_allocated", extra={"number": number})
        return number
