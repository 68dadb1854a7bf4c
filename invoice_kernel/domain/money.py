"""
Money -- fixed-precision arithmetic primitives.

Responsibility:
    ``round2`` is the single rounding primitive for every invoice
    calculation: each line total and each aggregation step is routed
    through it, so totals are reproducible step by step instead of being
    rounded once at the end. ``to_decimal`` is the boundary conversion for
    caller-supplied numbers, and ``Money`` pairs an amount with the
    currency it is denominated in.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every other domain module.

Invariants enforced:
    - Decimal-only arithmetic: floats are rejected at the boundary.
    - Half-up rounding to two places for all document amounts.
    - No silent currency mixing in Money arithmetic.

Failure modes:
    - ValidationError for float, bool, non-numeric or non-finite input.
    - CurrencyMismatchError when Money operations mix currencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from invoice_kernel.domain.currency import CurrencyRegistry
from invoice_kernel.exceptions import CurrencyMismatchError, ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def round2(value: Decimal) -> Decimal:
    """Round to 2 decimal places, halves away from zero."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Decimal | int | str, field: str = "amount") -> Decimal:
    """
    Convert a caller-supplied number into a finite Decimal.

    Accepts Decimal, int and numeric strings. Floats are refused: they
    cannot carry an exact two-place amount across the boundary.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(field, f"{type(value).__name__} is not a decimal-safe type")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError(field, f"{value!r} is not a number") from None
    else:
        raise ValidationError(field, f"unsupported type {type(value).__name__}")

    if not result.is_finite():
        raise ValidationError(field, f"{value!r} is not a finite number")
    return result


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object.

    Pairs a Decimal amount with its ISO 4217 currency code. Used wherever
    an amount leaves the kernel so the currency always travels with it.
    """

    amount: Decimal
    currency: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "currency", CurrencyRegistry.validate(self.currency))

    @classmethod
    def of(cls, amount: Decimal | int | str, currency: str) -> Money:
        """Factory method for creating Money."""
        return cls(amount=to_decimal(amount), currency=currency)

    @classmethod
    def zero(cls, currency: str) -> Money:
        """Create a zero amount in the given currency."""
        return cls(amount=ZERO, currency=currency)

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    def round(self) -> Money:
        """Round to the currency's ISO 4217 minor units, half-up."""
        info = CurrencyRegistry.get_info(self.currency)
        quantum = info.quantum if info else CENT
        return Money(self.amount.quantize(quantum, rounding=ROUND_HALF_UP), self.currency)

    def _check(self, other: Money) -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency, other.currency)

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check(other)
        return Money(self.amount - other.amount, self.currency)

    def __neg__(self) -> Money:
        return Money(-self.amount, self.currency)

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check(other)
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check(other)
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check(other)
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check(other)
        return self.amount >= other.amount

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"
