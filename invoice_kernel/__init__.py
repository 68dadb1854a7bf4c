"""
Invoice Kernel

The financial engine behind the sales back office:
- Line-item and document totals with per-step half-up rounding
- Append-only payment ledger with overpayment protection
- Derived invoice lifecycle status (Paid / Partial / Overdue)
- Locale-aware presentation of amounts and dates
"""

__version__ = "0.1.0"
