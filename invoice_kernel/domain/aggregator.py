"""
Invoice Aggregator -- document totals from line items.

Responsibility:
    Filters blank rows, sums line totals and applies document-level tax
    and discount. ``compute_totals`` is the single recompute entry point
    shared by invoice creation and editing, so a snapshot never leaves
    the kernel with stale totals.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.

Invariants enforced:
    - ``sub_total == sum(line_total)`` over non-blank rows.
    - ``tax_amount == round2(sub_total * tax_rate / 100)``.
    - ``total_amount == round2(sub_total + tax_amount - discount_amount)``
      and ``total_amount >= 0``.
    - Aggregation is idempotent: recomputing from the same inputs yields
      identical totals.

Failure modes:
    - ValidationError: no non-blank items, invalid item amounts,
      tax rate outside 0-100, negative discount, discount larger than
      subtotal plus tax, missing customer.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from decimal import Decimal

from invoice_kernel.domain.line_items import compute_line_total, renumber
from invoice_kernel.domain.models import LineItem
from invoice_kernel.domain.money import ZERO, round2, to_decimal
from invoice_kernel.exceptions import ValidationError
from invoice_kernel.logging_config import get_logger

logger = get_logger("domain.aggregator")

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class InvoiceTotals:
    """Result of one aggregation pass."""
    items: tuple[LineItem, ...]
    sub_total: Decimal
    tax_amount: Decimal
    total_amount: Decimal


def filter_items(items: Sequence[LineItem]) -> tuple[LineItem, ...]:
    """Drop rows whose description is blank and renumber the rest."""
    return renumber([item for item in items if not item.is_blank])


def compute_sub_total(items: Sequence[LineItem]) -> Decimal:
    return round2(sum((item.line_total for item in items if not item.is_blank), ZERO))


def compute_tax_amount(sub_total: Decimal, tax_rate: Decimal) -> Decimal:
    return round2(sub_total * tax_rate / HUNDRED)


def compute_total(sub_total: Decimal, tax_amount: Decimal, discount_amount: Decimal) -> Decimal:
    return round2(sub_total + tax_amount - discount_amount)


def validate_customer(customer_id: object) -> None:
    """A customer reference is required on every invoice."""
    if customer_id is None or (isinstance(customer_id, str) and not customer_id.strip()):
        raise ValidationError("customer_id", "a customer is required")


def validate_tax_rate(tax_rate: Decimal) -> Decimal:
    rate = to_decimal(tax_rate, "tax_rate")
    if rate < 0 or rate > HUNDRED:
        raise ValidationError("tax_rate", f"must be between 0 and 100, got {rate}")
    return rate


def validate_discount(discount_amount: Decimal) -> Decimal:
    discount = to_decimal(discount_amount, "discount_amount")
    if discount < 0:
        raise ValidationError("discount_amount", f"must not be negative, got {discount}")
    if discount != round2(discount):
        raise ValidationError("discount_amount", f"must be a whole number of cents, got {discount}")
    return round2(discount)


def compute_totals(
    items: Sequence[LineItem],
    tax_rate: Decimal | int | str,
    discount_amount: Decimal | int | str,
) -> InvoiceTotals:
    """
    Validate the rows and document adjustments and compute all totals.

    Each non-blank row's line total is recomputed from its quantity and
    unit price, so rows built elsewhere cannot carry a wrong total in.
    """
    rate = validate_tax_rate(tax_rate)
    discount = validate_discount(discount_amount)

    kept = filter_items(items)
    if not kept:
        raise ValidationError("items", "at least one item with a description is required")

    checked = []
    for item in kept:
        line_total = compute_line_total(item.quantity, item.unit_price)
        if line_total != item.line_total:
            logger.warning(
                "line_total_recomputed",
                extra={
                    "sort_order": item.sort_order,
                    "stored": str(item.line_total),
                    "computed": str(line_total),
                },
            )
            item = replace(item, line_total=line_total)
        checked.append(item)

    sub_total = compute_sub_total(checked)
    tax_amount = compute_tax_amount(sub_total, rate)
    if discount > sub_total + tax_amount:
        raise ValidationError(
            "discount_amount",
            f"{discount} exceeds subtotal plus tax ({sub_total + tax_amount})",
        )
    total_amount = compute_total(sub_total, tax_amount, discount)

    logger.debug(
        "invoice_totals_computed",
        extra={
            "item_count": len(checked),
            "sub_total": str(sub_total),
            "tax_amount": str(tax_amount),
            "total_amount": str(total_amount),
        },
    )
    return InvoiceTotals(
        items=tuple(checked),
        sub_total=sub_total,
        tax_amount=tax_amount,
        total_amount=total_amount,
    )
