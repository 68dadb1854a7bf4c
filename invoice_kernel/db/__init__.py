"""
Persistence adapter.

SQLAlchemy models and engine management for storing invoices.  The
domain layer never imports from here.
"""

from invoice_kernel.db.base import Base, TimestampedBase, UUIDString
from invoice_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from invoice_kernel.db.orm import (
    InvoiceItemModel,
    InvoiceModel,
    PaymentModel,
    SequenceCounter,
)

__all__ = [
    "Base",
    "TimestampedBase",
    "UUIDString",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "reset_engine",
    "session_scope",
    "InvoiceItemModel",
    "InvoiceModel",
    "PaymentModel",
    "SequenceCounter",
]
