"""Services for the invoice kernel (orchestration and persistence)."""

from invoice_kernel.services.invoice_repository import InvoiceRepository
from invoice_kernel.services.invoice_service import InvoiceService
from invoice_kernel.services.sequence_service import SequenceNumberer, SequenceService

__all__ = [
    "InvoiceRepository",
    "InvoiceService",
    "SequenceNumberer",
    "SequenceService",
]
