"""
InvoiceRepository -- stores invoice snapshots through SQLAlchemy.

Responsibility:
    Loads and saves ``Invoice`` snapshots, assigns invoice numbers from
    the counter table on first save and rejects writes made from a stale
    snapshot.

Architecture position:
    Kernel > Services -- imperative shell.  The only code that touches
    both the domain dataclasses and the ORM models.

Invariants enforced:
    - Optimistic concurrency: ``save`` succeeds only when the stored
      version equals the snapshot's version; each save increments it.
    - Payments are append-only: stored payment rows are never updated
      or deleted.

Failure modes:
    - InvoiceNotFoundError: unknown invoice id.
    - OptimisticLockError: the stored invoice changed after the snapshot
      was loaded.

Does NOT commit; the caller owns the transaction (see ``session_scope``).
"""

from __future__ import annotations

from dataclasses import replace
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from invoice_kernel.db.orm import InvoiceModel
from invoice_kernel.domain.clock import Clock, SystemClock
from invoice_kernel.domain.models import Invoice
from invoice_kernel.domain.numbering import INVOICE_PREFIX
from invoice_kernel.exceptions import InvoiceNotFoundError, OptimisticLockError
from invoice_kernel.logging_config import get_logger
from invoice_kernel.services.sequence_service import SequenceNumberer

logger = get_logger("services.invoice_repository")


class InvoiceRepository:
    """Invoice persistence over a caller-owned session."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        invoice_prefix: str = INVOICE_PREFIX,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._prefix = invoice_prefix
        self._numberer = SequenceNumberer(session)

    @property
    def numberer(self) -> SequenceNumberer:
        """Counter-table numberer sharing this repository's session."""
        return self._numberer

    def _load(self, invoice_id: UUID) -> InvoiceModel:
        model = self._session.get(InvoiceModel, invoice_id, populate_existing=True)
        if model is None:
            raise InvoiceNotFoundError(str(invoice_id))
        return model

    def get(self, invoice_id: UUID) -> Invoice:
        return self._load(invoice_id).to_dto()

    def add(self, invoice: Invoice) -> Invoice:
        """
        Insert a new invoice and return the stored snapshot.

        An invoice without a number gets the next one from the counter
        table.
        """
        if invoice.invoice_number is None:
            number = self._numberer.next_number(self._prefix, self._clock.today().year)
            invoice = replace(invoice, invoice_number=number)

        model = InvoiceModel.from_dto(replace(invoice, version=0))
        self._session.add(model)
        self._session.flush()

        logger.info(
            "invoice_stored",
            extra={
                "invoice_id": str(invoice.id),
                "invoice_number": invoice.invoice_number,
                "total_amount": str(invoice.total_amount),
            },
        )
        return model.to_dto()

    def save(self, invoice: Invoice) -> Invoice:
        """
        Write a modified snapshot back and return it with the new version.

        Raises OptimisticLockError if another writer saved first.
        """
        model = self._load(invoice.id)
        if model.version != invoice.version:
            logger.warning(
                "invoice_version_conflict",
                extra={
                    "invoice_id": str(invoice.id),
                    "expected_version": invoice.version,
                    "actual_version": model.version,
                },
            )
            raise OptimisticLockError(str(invoice.id), invoice.version, model.version)

        model.update_from_dto(invoice)
        model.version = invoice.version + 1
        self._session.flush()

        logger.info(
            "invoice_saved",
            extra={
                "invoice_id": str(invoice.id),
                "version": model.version,
                "status": model.status,
            },
        )
        return model.to_dto()

    def list_by_customer(self, customer_id: int | str) -> list[Invoice]:
        """A customer's invoices, newest invoice date first."""
        models = self._session.execute(
            select(InvoiceModel)
            .where(InvoiceModel.customer_id == str(customer_id))
            .order_by(InvoiceModel.invoice_date.desc(), InvoiceModel.invoice_number.desc())
        ).scalars().all()
        return [model.to_dto() for model in models]

    def list_all(self) -> list[Invoice]:
        models = self._session.execute(
            select(InvoiceModel).order_by(InvoiceModel.invoice_number)
        ).scalars().all()
        return [model.to_dto() for model in models]
