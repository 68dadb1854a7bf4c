"""
Invoice Domain Models (``invoice_kernel.domain.models``).

Responsibility
--------------
Frozen dataclass value objects for the nouns of invoicing: line items,
payments and invoices, plus the enums that constrain them.  Each entity
converts to and from the camelCase JSON documents exchanged with the
REST layer.

Architecture position
---------------------
**Kernel domain layer** -- pure data definitions with ZERO I/O.  Built and
transformed by ``line_items``, ``aggregator``, ``ledger`` and ``workflow``;
returned to callers as immutable snapshots.

Invariants enforced
-------------------
* All models are ``frozen=True``; mutations produce new snapshots.
* All monetary fields are ``Decimal`` -- NEVER ``float``.
* Derived fields (``line_total``, ``sub_total``, ``tax_amount``,
  ``total_amount``, ``paid_amount``) are recomputed by ``from_dict``
  rather than trusted from the document.

Failure modes
-------------
* ``ValidationError`` for unknown enum values, unparseable dates and
  non-decimal numbers in ``from_dict`` / ``PaymentInput``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from invoice_kernel.domain.money import ZERO, Money, to_decimal
from invoice_kernel.exceptions import ValidationError


class Unit(Enum):
    """Unit of measure shown next to a quantity (no calculation effect)."""
    PCS = "pcs"
    HRS = "hrs"
    DAYS = "days"
    KG = "kg"
    M = "m"
    FT = "ft"


class PaymentMethod(Enum):
    """How a payment was received."""
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    CHECK = "check"
    ONLINE = "online"
    OTHER = "other"


class InvoiceStatus(Enum):
    """Invoice lifecycle states (values are the wire strings)."""
    DRAFT = "Draft"
    SENT = "Sent"
    PAID = "Paid"
    PARTIAL = "Partial"
    OVERDUE = "Overdue"
    CANCELLED = "Cancelled"


def parse_enum(enum_cls: type[Enum], value: Any, field_name: str) -> Any:
    """Coerce a wire value into ``enum_cls``, raising ValidationError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(field_name, f"{value!r} is not one of: {allowed}") from None


def parse_date(value: Any, field_name: str) -> date:
    """Parse a date from a date, datetime or ISO-8601 string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            if "T" in text:
                return datetime.fromisoformat(text).date()
            return date.fromisoformat(text)
        except ValueError:
            pass
    raise ValidationError(field_name, f"{value!r} is not a date")


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_date(value: Any, field_name: str) -> date | None:
    if value in (None, ""):
        return None
    return parse_date(value, field_name)


@dataclass(frozen=True)
class LineItem:
    """
    A single row of an invoice.

    ``line_total`` is derived by ``line_items.compute_line_total``; build
    instances with ``line_items.make_line_item`` rather than directly.
    """
    description: str
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal
    unit: Unit = Unit.PCS
    product_code: str | None = None
    sort_order: int = 0

    @property
    def is_blank(self) -> bool:
        """Row has no description and is ignored by every calculation."""
        return not self.description.strip()

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "quantity": str(self.quantity),
            "unitPrice": str(self.unit_price),
            "lineTotal": str(self.line_total),
            "unit": self.unit.value,
            "productCode": self.product_code,
            "sortOrder": self.sort_order,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LineItem:
        """Build from a JSON document; ``lineTotal`` is recomputed, not read."""
        from invoice_kernel.domain.line_items import make_line_item

        return make_line_item(
            description=data.get("description") or "",
            quantity=data.get("quantity", 1),
            unit_price=data.get("unitPrice", 0),
            unit=data.get("unit") or Unit.PCS,
            product_code=data.get("productCode"),
            sort_order=int(data.get("sortOrder", 0)),
        )


@dataclass(frozen=True)
class PaymentInput:
    """Caller-supplied payment details, before a number is assigned."""
    amount: Decimal
    payment_date: date
    payment_method: PaymentMethod
    reference: str | None = None
    notes: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "amount", to_decimal(self.amount, "amount"))
        object.__setattr__(self, "payment_date", parse_date(self.payment_date, "payment_date"))
        object.__setattr__(
            self,
            "payment_method",
            parse_enum(PaymentMethod, self.payment_method, "payment_method"),
        )
        object.__setattr__(self, "reference", _optional_text(self.reference))
        object.__setattr__(self, "notes", _optional_text(self.notes))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PaymentInput:
        if not data.get("paymentMethod"):
            raise ValidationError("payment_method", "a payment method is required")
        return cls(
            amount=data.get("amount", ""),
            payment_date=data.get("paymentDate"),
            payment_method=data.get("paymentMethod"),
            reference=data.get("reference"),
            notes=data.get("notes"),
        )


@dataclass(frozen=True)
class Payment:
    """A payment recorded against an invoice. Immutable once created."""
    id: UUID
    payment_number: str
    amount: Decimal
    payment_date: date
    payment_method: PaymentMethod
    reference: str | None = None
    notes: str | None = None

    @classmethod
    def from_input(
        cls,
        payment_input: PaymentInput,
        payment_number: str,
        payment_id: UUID | None = None,
    ) -> Payment:
        return cls(
            id=payment_id or uuid4(),
            payment_number=payment_number,
            amount=payment_input.amount,
            payment_date=payment_input.payment_date,
            payment_method=payment_input.payment_method,
            reference=payment_input.reference,
            notes=payment_input.notes,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "paymentNumber": self.payment_number,
            "amount": str(self.amount),
            "paymentDate": self.payment_date.isoformat(),
            "paymentMethod": self.payment_method.value,
            "reference": self.reference,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Payment:
        return cls(
            id=UUID(str(data["id"])),
            payment_number=data["paymentNumber"],
            amount=to_decimal(data["amount"], "amount"),
            payment_date=parse_date(data["paymentDate"], "payment_date"),
            payment_method=parse_enum(PaymentMethod, data["paymentMethod"], "payment_method"),
            reference=_optional_text(data.get("reference")),
            notes=_optional_text(data.get("notes")),
        )


@dataclass(frozen=True)
class Invoice:
    """
    A customer invoice snapshot.

    Totals and ``paid_amount`` are always derived.  ``base_status`` keeps
    the last user-driven state (Draft or Sent) that the status machine
    falls back to when no derived state applies; ``manual_override``
    records a manual correction that suppresses overdue derivation.
    """
    id: UUID
    customer_id: int | str
    invoice_date: date
    due_date: date
    currency: str
    items: tuple[LineItem, ...]
    tax_rate: Decimal
    discount_amount: Decimal
    sub_total: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal = ZERO
    payments: tuple[Payment, ...] = field(default_factory=tuple)
    status: InvoiceStatus = InvoiceStatus.DRAFT
    base_status: InvoiceStatus = InvoiceStatus.DRAFT
    manual_override: bool = False
    invoice_number: str | None = None
    notes: str | None = None
    terms: str | None = None
    paid_date: date | None = None
    version: int = 0

    @property
    def outstanding(self) -> Decimal:
        """Amount still owed."""
        return self.total_amount - self.paid_amount

    def money(self, amount: Decimal) -> Money:
        """Pair an amount of this invoice with its currency."""
        return Money(amount, self.currency)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "invoiceNumber": self.invoice_number,
            "customerId": self.customer_id,
            "invoiceDate": self.invoice_date.isoformat(),
            "dueDate": self.due_date.isoformat(),
            "status": self.status.value,
            "baseStatus": self.base_status.value,
            "manualOverride": self.manual_override,
            "currency": self.currency,
            "items": [item.to_dict() for item in self.items],
            "taxRate": str(self.tax_rate),
            "discountAmount": str(self.discount_amount),
            "subTotal": str(self.sub_total),
            "taxAmount": str(self.tax_amount),
            "totalAmount": str(self.total_amount),
            "paidAmount": str(self.paid_amount),
            "paidDate": self.paid_date.isoformat() if self.paid_date else None,
            "payments": [p.to_dict() for p in self.payments],
            "notes": self.notes,
            "terms": self.terms,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Invoice:
        """
        Rehydrate a stored invoice document.

        Totals are recomputed from the items and ``paidAmount`` from the
        payments; the stored status is kept as-is (re-derive it with
        ``workflow.derive_status`` against the current date).
        """
        from invoice_kernel.domain.aggregator import compute_totals
        from invoice_kernel.domain.currency import CurrencyRegistry
        from invoice_kernel.domain.ledger import paid_to_date

        items = tuple(LineItem.from_dict(raw) for raw in data.get("items", []))
        tax_rate = to_decimal(data.get("taxRate", 0), "tax_rate")
        discount = to_decimal(data.get("discountAmount", 0), "discount_amount")
        totals = compute_totals(items, tax_rate, discount)
        payments = tuple(Payment.from_dict(raw) for raw in data.get("payments", []))
        status = parse_enum(InvoiceStatus, data.get("status", "Draft"), "status")

        return cls(
            id=UUID(str(data["id"])),
            invoice_number=data.get("invoiceNumber") or None,
            customer_id=data["customerId"],
            invoice_date=parse_date(data["invoiceDate"], "invoice_date"),
            due_date=parse_date(data["dueDate"], "due_date"),
            currency=CurrencyRegistry.validate(data.get("currency", "USD")),
            items=totals.items,
            tax_rate=tax_rate,
            discount_amount=discount,
            sub_total=totals.sub_total,
            tax_amount=totals.tax_amount,
            total_amount=totals.total_amount,
            paid_amount=paid_to_date(payments),
            payments=payments,
            status=status,
            base_status=parse_enum(
                InvoiceStatus, data.get("baseStatus", "Draft"), "base_status"
            ),
            manual_override=bool(data.get("manualOverride", False)),
            notes=_optional_text(data.get("notes")),
            terms=_optional_text(data.get("terms")),
            paid_date=_optional_date(data.get("paidDate"), "paid_date"),
            version=int(data.get("version", 0)),
        )
