"""
SequenceService -- monotonic document numbers via locked counter rows.

Responsibility:
    Allocates invoice and payment numbers from a dedicated counter table
    with row-level locking (``SELECT ... FOR UPDATE``), so numbers stay
    unique and ordered under concurrent writers.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Used by InvoiceRepository when an invoice is first stored, and by
    InvoiceService through ``SequenceNumberer`` for payment numbers.

Invariants enforced:
    - Monotonicity: the locked counter row is the sole source of the next
      value.  Numbers are never derived from the maximum already stored.
    - Transactional: an increment is visible only after the caller's
      transaction commits.  A rollback returns the value.

Failure modes:
    - IntegrityError: concurrent counter creation race (handled via
      savepoint rollback and retry).
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from invoice_kernel.db.orm import SequenceCounter
from invoice_kernel.domain.numbering import (
    DEFAULT_WIDTH,
    DocumentNumberer,
    format_document_number,
)
from invoice_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceService:
    """
    Transactional sequence numbers.

    Does NOT call ``session.commit()``; the caller controls boundaries.

    Usage:
        with session_scope() as session:
            value = SequenceService(session).next_value("INV-2025")
    """

    def __init__(self, session: Session):
        self._session = session

    def _locked_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, sequence_name: str) -> int:
        """Lock (or create) the counter row, increment it and return the value."""
        counter = self._locked_counter(sequence_name)

        if counter is None:
            if self._session.get_bind().dialect.name == "sqlite":
                # SQLite serializes writers; no creation race to guard.
                self._session.add(SequenceCounter(name=sequence_name, current_value=1))
                self._session.flush()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1

            savepoint = self._session.begin_nested()
            try:
                self._session.add(SequenceCounter(name=sequence_name, current_value=1))
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                self._session.expire_all()
                counter = self._locked_counter(sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """Current value of a sequence without incrementing; None if unused."""
        return self._session.execute(
            select(SequenceCounter.current_value).where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()


class SequenceNumberer(DocumentNumberer):
    """Document numbers backed by the counter table, one sequence per prefix and year."""

    def __init__(self, session: Session, width: int = DEFAULT_WIDTH):
        self._sequences = SequenceService(session)
        self._width = width

    def next_number(self, prefix: str, year: int) -> str:
        value = self._sequences.next_value(f"{prefix}-{year}")
        return format_document_number(prefix, year, value, self._width)
