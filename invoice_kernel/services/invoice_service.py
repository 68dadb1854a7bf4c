"""
Invoice Service - the operations a caller performs on invoices.

Thin orchestration layer that:
1. Fills defaults from InvoiceConfig (currency, due date, terms text)
2. Calls the aggregator for every change to items, tax rate or discount
3. Calls the ledger for payments and the workflow for status changes
4. Allocates document numbers through a DocumentNumberer
5. Summarises invoice lists and audits snapshots against the invariants

All computation lives in ``invoice_kernel.domain``.  Every operation takes
an invoice snapshot and returns a new one; a rejected operation raises
and leaves the input snapshot untouched.

Usage:
    service = InvoiceService(clock=DeterministicClock())
    invoice = service.create_invoice(
        customer_id=42,
        items=[{"description": "Consulting", "quantity": "2", "unit_price": "50.00"}],
        tax_rate=Decimal("10"),
    )
    invoice = service.pay_in_full(invoice, payment_method="card")
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from invoice_kernel.config import InvoiceConfig
from invoice_kernel.domain import ledger, workflow
from invoice_kernel.domain.aggregator import InvoiceTotals, compute_totals, validate_customer
from invoice_kernel.domain.clock import Clock, SystemClock
from invoice_kernel.domain.consistency import Violation, find_violations
from invoice_kernel.domain.currency import CurrencyRegistry
from invoice_kernel.domain.line_items import make_line_item
from invoice_kernel.domain.models import (
    Invoice,
    InvoiceStatus,
    LineItem,
    Payment,
    PaymentInput,
    PaymentMethod,
    parse_date,
)
from invoice_kernel.domain.money import Money, to_decimal
from invoice_kernel.domain.numbering import DocumentNumberer, SequentialNumberer
from invoice_kernel.domain.statistics import InvoiceStatistics, compute_statistics
from invoice_kernel.exceptions import InvoiceKernelError, ValidationError
from invoice_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.invoice")

_UPDATABLE_FIELDS = frozenset(
    {"tax_rate", "discount_amount", "currency", "customer_id", "due_date", "notes", "terms"}
)


class InvoiceService:
    """
    Creates and edits invoices and records payments against them.

    Holds no invoice state of its own.  The clock supplies "today" for
    overdue derivation and default dates; the numberer supplies invoice
    and payment numbers.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        config: InvoiceConfig | None = None,
        numberer: DocumentNumberer | None = None,
    ):
        self._clock = clock or SystemClock()
        self._config = config or InvoiceConfig.with_defaults()
        self._numberer = numberer or SequentialNumberer(width=self._config.number_width)

    @property
    def config(self) -> InvoiceConfig:
        return self._config

    def today(self) -> date:
        return self._clock.today()

    @contextmanager
    def _operation(self, operation: str, invoice_id: Any, customer_id: Any = None) -> Iterator[None]:
        """Bind log context for one operation and log rejections with their code."""
        with LogContext.bind(invoice_id=invoice_id, customer_id=customer_id):
            try:
                yield
            except InvoiceKernelError as exc:
                logger.warning(
                    "invoice_operation_rejected",
                    extra={"operation": operation, "error_code": exc.code, "reason": str(exc)},
                )
                raise

    # =========================================================================
    # Invoices
    # =========================================================================

    def _validate_currency(self, currency: str | None) -> str:
        code = CurrencyRegistry.validate(currency or self._config.default_currency)
        if not self._config.is_allowed_currency(code):
            raise ValidationError(
                "currency",
                f"{code} is not one of {', '.join(self._config.allowed_currencies)}",
            )
        return code

    @staticmethod
    def _coerce_items(items: Sequence[LineItem | Mapping[str, Any]]) -> list[LineItem]:
        coerced = []
        for index, item in enumerate(items):
            if isinstance(item, LineItem):
                coerced.append(item)
            else:
                fields = dict(item)
                fields.setdefault("sort_order", index)
                coerced.append(make_line_item(**fields))
        return coerced

    def create_invoice(
        self,
        customer_id: int | str,
        items: Sequence[LineItem | Mapping[str, Any]],
        tax_rate: Decimal | int | str = Decimal("0"),
        discount_amount: Decimal | int | str = Decimal("0"),
        currency: str | None = None,
        invoice_date: date | str | None = None,
        due_date: date | str | None = None,
        notes: str | None = None,
        terms: str | None = None,
        invoice_id: UUID | None = None,
    ) -> Invoice:
        """
        Create a Draft invoice with every total derived.

        ``due_date`` defaults to the invoice date plus the configured
        payment terms; ``terms`` defaults to the configured terms text.
        Blank rows in ``items`` are dropped and the rest renumbered.
        """
        invoice_id = invoice_id or uuid4()
        with self._operation("create_invoice", invoice_id, customer_id):
            validate_customer(customer_id)
            code = self._validate_currency(currency)
            issued = parse_date(invoice_date, "invoice_date") if invoice_date else self.today()
            due = (
                parse_date(due_date, "due_date")
                if due_date
                else issued + timedelta(days=self._config.default_payment_terms_days)
            )
            if due < issued:
                raise ValidationError("due_date", f"{due} is before the invoice date {issued}")

            totals = compute_totals(self._coerce_items(items), tax_rate, discount_amount)
            number = self._numberer.next_number(self._config.invoice_number_prefix, self.today().year)

            invoice = Invoice(
                id=invoice_id,
                invoice_number=number,
                customer_id=customer_id,
                invoice_date=issued,
                due_date=due,
                currency=code,
                items=totals.items,
                tax_rate=to_decimal(tax_rate, "tax_rate"),
                discount_amount=to_decimal(discount_amount, "discount_amount"),
                sub_total=totals.sub_total,
                tax_amount=totals.tax_amount,
                total_amount=totals.total_amount,
                notes=(notes or "").strip() or None,
                terms=(self._config.default_terms if terms is None else terms.strip() or None),
            )

            logger.info(
                "invoice_created",
                extra={
                    "invoice_number": number,
                    "currency": code,
                    "item_count": len(totals.items),
                    "total_amount": str(totals.total_amount),
                    "due_date": due.isoformat(),
                },
            )
            return invoice

    def update_invoice_items(
        self,
        invoice: Invoice,
        items: Sequence[LineItem | Mapping[str, Any]],
    ) -> Invoice:
        """Replace the items and recompute every total."""
        with self._operation("update_invoice_items", invoice.id, invoice.customer_id):
            workflow.ensure_editable(invoice, ["items"])
            totals = compute_totals(self._coerce_items(items), invoice.tax_rate, invoice.discount_amount)
            updated = self._with_totals(invoice, totals)

            logger.info(
                "invoice_items_updated",
                extra={
                    "item_count": len(totals.items),
                    "total_amount": str(updated.total_amount),
                },
            )
            return updated

    def _with_totals(self, invoice: Invoice, totals: InvoiceTotals, **changes: Any) -> Invoice:
        if totals.total_amount < invoice.paid_amount:
            raise ValidationError(
                "total_amount",
                f"{totals.total_amount} is less than the {invoice.paid_amount} already paid",
            )
        updated = replace(
            invoice,
            items=totals.items,
            sub_total=totals.sub_total,
            tax_amount=totals.tax_amount,
            total_amount=totals.total_amount,
            **changes,
        )
        return workflow.refresh_status(updated, self.today())

    def update_invoice(self, invoice: Invoice, **changes: Any) -> Invoice:
        """
        Change document fields.

        Tax rate, discount, currency and customer are structural: they are
        only accepted while the invoice is Draft or Sent.  Due date, notes
        and terms may change in any status except Cancelled, which accepts
        only notes.  Changing the due date clears a manual status override.
        """
        with self._operation("update_invoice", invoice.id, invoice.customer_id):
            unknown = sorted(set(changes) - _UPDATABLE_FIELDS)
            if unknown:
                raise ValidationError("invoice", f"cannot update {', '.join(unknown)}")
            workflow.ensure_editable(invoice, changes)

            updates: dict[str, Any] = {}
            if "customer_id" in changes:
                validate_customer(changes["customer_id"])
                updates["customer_id"] = changes["customer_id"]
            if "currency" in changes:
                updates["currency"] = self._validate_currency(changes["currency"])
            if "due_date" in changes:
                due = parse_date(changes["due_date"], "due_date")
                if due < invoice.invoice_date:
                    raise ValidationError("due_date", f"{due} is before the invoice date {invoice.invoice_date}")
                if due != invoice.due_date:
                    updates["due_date"] = due
                    updates["manual_override"] = False
            for text_field in ("notes", "terms"):
                if text_field in changes:
                    updates[text_field] = (changes[text_field] or "").strip() or None

            if "tax_rate" in changes or "discount_amount" in changes:
                tax_rate = to_decimal(changes.get("tax_rate", invoice.tax_rate), "tax_rate")
                discount = to_decimal(
                    changes.get("discount_amount", invoice.discount_amount), "discount_amount"
                )
                totals = compute_totals(invoice.items, tax_rate, discount)
                updated = self._with_totals(
                    invoice, totals, tax_rate=tax_rate, discount_amount=discount, **updates
                )
            else:
                updated = workflow.refresh_status(replace(invoice, **updates), self.today())

            logger.info(
                "invoice_updated",
                extra={"fields": sorted(changes), "status": updated.status.value},
            )
            return updated

    # =========================================================================
    # Payments
    # =========================================================================

    def add_payment(self, invoice: Invoice, payment_input: PaymentInput | Mapping[str, Any]) -> Invoice:
        """
        Record a payment.

        The payment number is allocated only after the amount has been
        accepted, so rejected payments never consume a number.
        """
        with self._operation("add_payment", invoice.id, invoice.customer_id):
            if not isinstance(payment_input, PaymentInput):
                payment_input = PaymentInput.from_dict(dict(payment_input))
            ledger.check_payment(invoice, payment_input.amount)

            number = self._numberer.next_number(self._config.payment_number_prefix, self.today().year)
            payment = Payment.from_input(payment_input, number)
            return ledger.apply_payment(invoice, payment, self.today())

    def pay_in_full(
        self,
        invoice: Invoice,
        payment_method: PaymentMethod | str,
        payment_date: date | str | None = None,
        reference: str | None = None,
        notes: str | None = None,
    ) -> Invoice:
        """Record a payment of exactly the outstanding balance."""
        payment_input = PaymentInput(
            amount=ledger.full_payment_amount(invoice),
            payment_date=payment_date or self.today(),
            payment_method=payment_method,
            reference=reference,
            notes=notes,
        )
        return self.add_payment(invoice, payment_input)

    def outstanding_balance(self, invoice: Invoice) -> Money:
        return invoice.money(ledger.outstanding_balance(invoice))

    # =========================================================================
    # Status
    # =========================================================================

    def set_status(self, invoice: Invoice, new_status: InvoiceStatus | str) -> Invoice:
        with self._operation("set_status", invoice.id, invoice.customer_id):
            return workflow.set_status(invoice, new_status, self.today())

    def refresh_status(self, invoice: Invoice) -> Invoice:
        """Re-derive the status against today, e.g. for a nightly overdue sweep."""
        with LogContext.bind(invoice_id=invoice.id, customer_id=invoice.customer_id):
            return workflow.refresh_status(invoice, self.today())

    # =========================================================================
    # Reporting
    # =========================================================================

    def statistics(self, invoices: Iterable[Invoice]) -> tuple[InvoiceStatistics, ...]:
        """Per-currency summary of ``invoices`` as of today."""
        return compute_statistics(invoices, self.today())

    def audit(self, invoice: Invoice) -> tuple[Violation, ...]:
        with LogContext.bind(invoice_id=invoice.id, customer_id=invoice.customer_id):
            return find_violations(invoice, self.today())
