"""
Invoice Invariants Contract.

These invariants hold for every invoice snapshot the kernel returns.
No configuration value may relax them.

This module only names them. Enforcement lives in the aggregator, the
ledger and the workflow; ``domain.consistency.find_violations`` audits a
snapshot against all of them.
"""

from enum import Enum, unique


@unique
class InvoiceInvariant(str, Enum):
    """Structural guarantees on invoice snapshots."""

    LINE_TOTAL = "line_total"
    """Each line total equals round2(quantity * unit_price)."""

    SUB_TOTAL = "sub_total"
    """The subtotal equals the sum of the line totals."""

    TAX_AMOUNT = "tax_amount"
    """The tax amount equals round2(sub_total * tax_rate / 100)."""

    TOTAL_AMOUNT = "total_amount"
    """The total equals round2(sub_total + tax_amount - discount_amount)
    and is never negative."""

    PAID_AMOUNT = "paid_amount"
    """The paid amount equals the sum of the recorded payments."""

    NO_OVERPAYMENT = "no_overpayment"
    """0 <= paid_amount <= total_amount."""

    STATUS_CONSISTENT = "status_consistent"
    """The stored status equals the status derived from the ledger and
    the due date (Cancelled excepted)."""

    SORT_ORDER = "sort_order"
    """Item sort orders are 0..n-1 in sequence."""

    ITEM_AMOUNTS = "item_amounts"
    """Every item has quantity > 0 and unit_price >= 0."""


ALL_INVOICE_INVARIANTS: frozenset[InvoiceInvariant] = frozenset(InvoiceInvariant)
