"""
Payment Ledger -- append-only payment history for an invoice.

Responsibility:
    Records payments against an invoice, keeps ``paid_amount`` equal to
    the sum of the recorded payments and re-derives the status after each
    one.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.

Invariants enforced:
    - ``paid_amount == sum(payment.amount)`` at all times.
    - ``0 <= paid_amount <= total_amount``: no overpayment is accepted.
    - Paid history never decreases; there is no remove or void operation.
    - ``paid_date`` is the latest payment date once the invoice is fully
      paid, otherwise None.

Failure modes:
    - InvalidStateError: payment against a Cancelled invoice.
    - ValidationError: payment amount <= 0 or finer than one cent.
    - OverpaymentError: payment amount > outstanding balance.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from datetime import date
from decimal import Decimal

from invoice_kernel.domain.models import Invoice, InvoiceStatus, Payment
from invoice_kernel.domain.money import ZERO, round2
from invoice_kernel.domain.workflow import derive_status
from invoice_kernel.exceptions import InvalidStateError, OverpaymentError, ValidationError
from invoice_kernel.logging_config import get_logger

logger = get_logger("domain.ledger")


def paid_to_date(payments: Iterable[Payment]) -> Decimal:
    return sum((p.amount for p in payments), ZERO)


def outstanding_balance(invoice: Invoice) -> Decimal:
    return invoice.total_amount - invoice.paid_amount


def full_payment_amount(invoice: Invoice) -> Decimal:
    """Amount that settles the invoice exactly."""
    return outstanding_balance(invoice)


def check_payment(invoice: Invoice, amount: Decimal) -> None:
    """Raise if a payment of ``amount`` cannot be recorded on ``invoice``."""
    if invoice.status == InvoiceStatus.CANCELLED:
        raise InvalidStateError(str(invoice.id), invoice.status.value, "record a payment on")
    if amount <= 0:
        raise ValidationError("amount", f"must be greater than zero, got {amount}")
    if amount != round2(amount):
        raise ValidationError("amount", f"must be a whole number of cents, got {amount}")

    outstanding = outstanding_balance(invoice)
    if amount > outstanding:
        logger.warning(
            "payment_rejected_overpayment",
            extra={
                "invoice_id": str(invoice.id),
                "amount": str(amount),
                "outstanding": str(outstanding),
            },
        )
        raise OverpaymentError(str(invoice.id), amount, outstanding, invoice.currency)


def apply_payment(invoice: Invoice, payment: Payment, as_of: date) -> Invoice:
    """
    Record ``payment`` and return the updated snapshot.

    The input snapshot is untouched when any check fails.
    """
    check_payment(invoice, payment.amount)
    payment = replace(payment, amount=round2(payment.amount))

    payments = (*invoice.payments, payment)
    paid_amount = paid_to_date(payments)
    settled = paid_amount == invoice.total_amount
    updated = replace(
        invoice,
        payments=payments,
        paid_amount=paid_amount,
        paid_date=max(p.payment_date for p in payments) if settled else None,
    )
    updated = replace(updated, status=derive_status(updated, as_of))

    logger.info(
        "payment_applied",
        extra={
            "invoice_id": str(invoice.id),
            "payment_number": payment.payment_number,
            "amount": str(payment.amount),
            "paid_amount": str(paid_amount),
            "outstanding": str(outstanding_balance(updated)),
            "status": updated.status.value,
        },
    )
    return updated
