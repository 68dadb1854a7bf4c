"""Invoice statistics -- dashboard counts and amounts, grouped by currency."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from invoice_kernel.domain.models import Invoice, InvoiceStatus
from invoice_kernel.domain.money import ZERO


@dataclass(frozen=True)
class InvoiceStatistics:
    """
    Summary for the invoices of one currency.

    Amounts are never converted between currencies. Cancelled invoices
    are counted but contribute nothing to the amounts.
    """
    currency: str
    total_invoices: int = 0
    total_amount: Decimal = ZERO
    paid_amount: Decimal = ZERO
    outstanding_amount: Decimal = ZERO
    overdue_count: int = 0
    draft_count: int = 0
    paid_count: int = 0
    cancelled_count: int = 0

    def to_dict(self) -> dict:
        return {
            "currency": self.currency,
            "totalInvoices": self.total_invoices,
            "totalAmount": str(self.total_amount),
            "paidAmount": str(self.paid_amount),
            "outstandingAmount": str(self.outstanding_amount),
            "overdueCount": self.overdue_count,
            "draftCount": self.draft_count,
            "paidCount": self.paid_count,
            "cancelledCount": self.cancelled_count,
        }


def is_overdue(invoice: Invoice, as_of: date) -> bool:
    """Past due with a balance, regardless of the stored status."""
    return (
        invoice.status not in (InvoiceStatus.PAID, InvoiceStatus.CANCELLED)
        and invoice.outstanding > 0
        and invoice.due_date < as_of
    )


def compute_statistics(invoices: Iterable[Invoice], as_of: date) -> tuple[InvoiceStatistics, ...]:
    """One ``InvoiceStatistics`` per currency, ordered by currency code."""
    buckets: dict[str, dict[str, int | Decimal]] = defaultdict(
        lambda: {
            "total_invoices": 0,
            "total_amount": ZERO,
            "paid_amount": ZERO,
            "outstanding_amount": ZERO,
            "overdue_count": 0,
            "draft_count": 0,
            "paid_count": 0,
            "cancelled_count": 0,
        }
    )
    for invoice in invoices:
        bucket = buckets[invoice.currency]
        bucket["total_invoices"] += 1
        if invoice.status == InvoiceStatus.CANCELLED:
            bucket["cancelled_count"] += 1
            continue
        bucket["total_amount"] += invoice.total_amount
        bucket["paid_amount"] += invoice.paid_amount
        bucket["outstanding_amount"] += invoice.outstanding
        if is_overdue(invoice, as_of):
            bucket["overdue_count"] += 1
        if invoice.status == InvoiceStatus.DRAFT:
            bucket["draft_count"] += 1
        elif invoice.status == InvoiceStatus.PAID:
            bucket["paid_count"] += 1

    return tuple(
        InvoiceStatistics(currency=currency, **buckets[currency])
        for currency in sorted(buckets)
    )
