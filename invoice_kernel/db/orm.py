"""
Invoice ORM Models (``invoice_kernel.db.orm``).

Responsibility
--------------
SQLAlchemy persistence models for invoices, their items and payments,
plus the counter table that document numbers are allocated from.  Maps
the frozen domain dataclasses in ``domain/models.py`` to tables.

Architecture position
---------------------
**Kernel > DB** -- persistence.  Imports from ``db.base`` only; the
domain dataclasses are imported inside ``to_dto`` so the domain layer
never depends on SQLAlchemy.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from invoice_kernel.db.base import Base, TimestampedBase


# ---------------------------------------------------------------------------
# 1. InvoiceModel
# ---------------------------------------------------------------------------


class InvoiceModel(TimestampedBase):
    """
    ORM model for invoices.

    Maps to the ``Invoice`` frozen dataclass.  Items and payments are
    stored in child tables.

    Guarantees:
        - invoice_number is unique (uq_invoices_invoice_number).
        - status and base_status stored as the enum's wire value.
        - version is the optimistic-lock counter checked on save.
    """

    __tablename__ = "invoices"

    __table_args__ = (
        UniqueConstraint("invoice_number", name="uq_invoices_invoice_number"),
        Index("idx_invoices_customer_id", "customer_id"),
        Index("idx_invoices_status", "status"),
        Index("idx_invoices_due_date", "due_date"),
    )

    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False)
    customer_id: Mapped[str] = mapped_column(String(64), nullable=False)
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="Draft")
    base_status: Mapped[str] = mapped_column(String(20), default="Draft")
    manual_override: Mapped[bool] = mapped_column(Boolean, default=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(7, 4), nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(nullable=False)
    sub_total: Mapped[Decimal] = mapped_column(nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    paid_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    terms: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    items: Mapped[list["InvoiceItemModel"]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="InvoiceItemModel.sort_order",
    )

    payments: Mapped[list["PaymentModel"]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PaymentModel.payment_number",
    )

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from invoice_kernel.domain.models import Invoice, InvoiceStatus

        return Invoice(
            id=self.id,
            invoice_number=self.invoice_number,
            customer_id=self.customer_id,
            invoice_date=self.invoice_date,
            due_date=self.due_date,
            currency=self.currency,
            items=tuple(item.to_dto() for item in self.items),
            tax_rate=self.tax_rate,
            discount_amount=self.discount_amount,
            sub_total=self.sub_total,
            tax_amount=self.tax_amount,
            total_amount=self.total_amount,
            paid_amount=self.paid_amount,
            payments=tuple(payment.to_dto() for payment in self.payments),
            status=InvoiceStatus(self.status),
            base_status=InvoiceStatus(self.base_status),
            manual_override=self.manual_override,
            notes=self.notes,
            terms=self.terms,
            paid_date=self.paid_date,
            version=self.version,
        )

    @classmethod
    def from_dto(cls, dto) -> "InvoiceModel":
        """Create ORM model from frozen dataclass."""
        model = cls(id=dto.id, version=dto.version)
        model.update_from_dto(dto)
        return model

    def update_from_dto(self, dto) -> None:
        """Copy every field except id and version from the dataclass."""
        self.invoice_number = dto.invoice_number
        self.customer_id = str(dto.customer_id)
        self.invoice_date = dto.invoice_date
        self.due_date = dto.due_date
        self.status = dto.status.value
        self.base_status = dto.base_status.value
        self.manual_override = dto.manual_override
        self.currency = dto.currency
        self.tax_rate = dto.tax_rate
        self.discount_amount = dto.discount_amount
        self.sub_total = dto.sub_total
        self.tax_amount = dto.tax_amount
        self.total_amount = dto.total_amount
        self.paid_amount = dto.paid_amount
        self.paid_date = dto.paid_date
        self.notes = dto.notes
        self.terms = dto.terms
        self.items = [InvoiceItemModel.from_dto(item) for item in dto.items]

        # Payments are append-only: keep existing rows, add the new ones.
        stored = {payment.id for payment in self.payments}
        for payment in dto.payments:
            if payment.id not in stored:
                self.payments.append(PaymentModel.from_dto(payment))

    def __repr__(self) -> str:
        return (
            f"<InvoiceModel {self.invoice_number} "
            f"status={self.status} total={self.total_amount} v{self.version}>"
        )


# ---------------------------------------------------------------------------
# 2. InvoiceItemModel
# ---------------------------------------------------------------------------


class InvoiceItemModel(Base):
    """
    ORM model for invoice line items.

    Maps to the ``LineItem`` frozen dataclass.  Items are replaced as a
    set whenever the invoice is saved.
    """

    __tablename__ = "invoice_items"

    __table_args__ = (
        Index("idx_invoice_items_invoice_id", "invoice_id"),
    )

    invoice_id: Mapped[UUID] = mapped_column(
        ForeignKey("invoices.id"), nullable=False
    )
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    line_total: Mapped[Decimal] = mapped_column(nullable=False)
    unit: Mapped[str] = mapped_column(String(10), default="pcs")
    product_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False)

    invoice: Mapped["InvoiceModel"] = relationship(back_populates="items")

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from invoice_kernel.domain.models import LineItem, Unit

        return LineItem(
            description=self.description,
            quantity=self.quantity,
            unit_price=self.unit_price,
            line_total=self.line_total,
            unit=Unit(self.unit),
            product_code=self.product_code,
            sort_order=self.sort_order,
        )

    @classmethod
    def from_dto(cls, dto) -> "InvoiceItemModel":
        """Create ORM model from frozen dataclass."""
        return cls(
            description=dto.description,
            quantity=dto.quantity,
            unit_price=dto.unit_price,
            line_total=dto.line_total,
            unit=dto.unit.value,
            product_code=dto.product_code,
            sort_order=dto.sort_order,
        )

    def __repr__(self) -> str:
        return f"<InvoiceItemModel #{self.sort_order} total={self.line_total}>"


# ---------------------------------------------------------------------------
# 3. PaymentModel
# ---------------------------------------------------------------------------


class PaymentModel(TimestampedBase):
    """
    ORM model for payments.

    Maps to the ``Payment`` frozen dataclass.  Rows are inserted once and
    never updated or deleted.
    """

    __tablename__ = "payments"

    __table_args__ = (
        UniqueConstraint("payment_number", name="uq_payments_payment_number"),
        Index("idx_payments_invoice_id", "invoice_id"),
    )

    invoice_id: Mapped[UUID] = mapped_column(
        ForeignKey("invoices.id"), nullable=False
    )
    payment_number: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    invoice: Mapped["InvoiceModel"] = relationship(back_populates="payments")

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from invoice_kernel.domain.models import Payment, PaymentMethod

        return Payment(
            id=self.id,
            payment_number=self.payment_number,
            amount=self.amount,
            payment_date=self.payment_date,
            payment_method=PaymentMethod(self.payment_method),
            reference=self.reference,
            notes=self.notes,
        )

    @classmethod
    def from_dto(cls, dto) -> "PaymentModel":
        """Create ORM model from frozen dataclass."""
        return cls(
            id=dto.id,
            payment_number=dto.payment_number,
            amount=dto.amount,
            payment_date=dto.payment_date,
            payment_method=dto.payment_method.value,
            reference=dto.reference,
            notes=dto.notes,
        )

    def __repr__(self) -> str:
        return f"<PaymentModel {self.payment_number} amount={self.amount}>"


# ---------------------------------------------------------------------------
# 4. SequenceCounter
# ---------------------------------------------------------------------------


class SequenceCounter(Base):
    """
    Document number counter table.

    One row per sequence name (``INV-2025``, ``PAY-2025``, ...) holding
    the last value issued.  Row-level locking keeps allocation monotonic.
    """

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
