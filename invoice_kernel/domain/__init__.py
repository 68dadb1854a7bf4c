"""
Pure domain layer.

Invoice value objects and the calculations over them, with NO
dependencies on:
- ORM (SQLAlchemy)
- Database
- System time (a Clock is passed in)
- I/O

All domain objects are immutable and deterministic.
"""

from invoice_kernel.domain.aggregator import InvoiceTotals, compute_totals, filter_items
from invoice_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from invoice_kernel.domain.consistency import Violation, find_violations
from invoice_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from invoice_kernel.domain.formatting import format_currency, format_date, format_money
from invoice_kernel.domain.ledger import apply_payment, outstanding_balance, paid_to_date
from invoice_kernel.domain.line_items import (
    add_item,
    compute_line_total,
    edit_item,
    make_line_item,
    remove_item,
    renumber,
)
from invoice_kernel.domain.models import (
    Invoice,
    InvoiceStatus,
    LineItem,
    Payment,
    PaymentInput,
    PaymentMethod,
    Unit,
)
from invoice_kernel.domain.money import Money, round2, to_decimal
from invoice_kernel.domain.statistics import InvoiceStatistics, compute_statistics
from invoice_kernel.domain.workflow import INVOICE_WORKFLOW, derive_status, set_status

__all__ = [
    "Clock",
    "CurrencyInfo",
    "CurrencyRegistry",
    "DeterministicClock",
    "INVOICE_WORKFLOW",
    "Invoice",
    "InvoiceStatistics",
    "InvoiceStatus",
    "InvoiceTotals",
    "LineItem",
    "Money",
    "Payment",
    "PaymentInput",
    "PaymentMethod",
    "SystemClock",
    "Unit",
    "Violation",
    "add_item",
    "apply_payment",
    "compute_line_total",
    "compute_statistics",
    "compute_totals",
    "derive_status",
    "edit_item",
    "filter_items",
    "find_violations",
    "format_currency",
    "format_date",
    "format_money",
    "make_line_item",
    "outstanding_balance",
    "paid_to_date",
    "remove_item",
    "renumber",
    "round2",
    "set_status",
    "to_decimal",
]
