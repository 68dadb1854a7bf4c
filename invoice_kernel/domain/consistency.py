"""
Consistency audit -- checks an invoice snapshot against every invariant.

Used on data loaded from storage or received from outside the kernel,
where totals and statuses may have been written by other code. Returns
violations instead of raising so a caller can report all of them at
once.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from invoice_kernel.domain.aggregator import (
    compute_sub_total,
    compute_tax_amount,
    compute_total,
)
from invoice_kernel.domain.ledger import paid_to_date
from invoice_kernel.domain.models import Invoice
from invoice_kernel.domain.money import round2
from invoice_kernel.domain.workflow import derive_status
from invoice_kernel.invariants import InvoiceInvariant
from invoice_kernel.logging_config import get_logger

logger = get_logger("domain.consistency")


@dataclass(frozen=True)
class Violation:
    invariant: InvoiceInvariant
    detail: str


def find_violations(invoice: Invoice, as_of: date) -> tuple[Violation, ...]:
    """All invariant violations in ``invoice``; empty when consistent."""
    found: list[Violation] = []

    def violated(invariant: InvoiceInvariant, detail: str) -> None:
        found.append(Violation(invariant, detail))

    for index, item in enumerate(invoice.items):
        if item.quantity <= 0 or item.unit_price < 0:
            violated(
                InvoiceInvariant.ITEM_AMOUNTS,
                f"item {index}: quantity {item.quantity}, unit price {item.unit_price}",
            )
        elif item.line_total != round2(item.quantity * item.unit_price):
            violated(
                InvoiceInvariant.LINE_TOTAL,
                f"item {index}: line total {item.line_total} "
                f"!= {round2(item.quantity * item.unit_price)}",
            )
        if item.sort_order != index:
            violated(InvoiceInvariant.SORT_ORDER, f"item {index} has sort order {item.sort_order}")

    sub_total = compute_sub_total(invoice.items)
    if invoice.sub_total != sub_total:
        violated(InvoiceInvariant.SUB_TOTAL, f"{invoice.sub_total} != {sub_total}")

    tax_amount = compute_tax_amount(invoice.sub_total, invoice.tax_rate)
    if invoice.tax_amount != tax_amount:
        violated(InvoiceInvariant.TAX_AMOUNT, f"{invoice.tax_amount} != {tax_amount}")

    total = compute_total(invoice.sub_total, invoice.tax_amount, invoice.discount_amount)
    if invoice.total_amount != total or invoice.total_amount < 0:
        violated(InvoiceInvariant.TOTAL_AMOUNT, f"{invoice.total_amount} != {total}")

    paid = paid_to_date(invoice.payments)
    if invoice.paid_amount != paid:
        violated(InvoiceInvariant.PAID_AMOUNT, f"{invoice.paid_amount} != {paid}")

    if invoice.paid_amount < 0 or invoice.paid_amount > invoice.total_amount:
        violated(
            InvoiceInvariant.NO_OVERPAYMENT,
            f"paid {invoice.paid_amount} of total {invoice.total_amount}",
        )

    expected = derive_status(invoice, as_of)
    if invoice.status != expected:
        violated(
            InvoiceInvariant.STATUS_CONSISTENT,
            f"status {invoice.status.value}, expected {expected.value}",
        )

    if found:
        logger.warning(
            "invoice_invariant_violations",
            extra={
                "invoice_id": str(invoice.id),
                "violations": [v.invariant.value for v in found],
            },
        )
    return tuple(found)
