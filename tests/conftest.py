"""
Pytest fixtures for the invoice kernel test suite.

Provides:
- Structured logging configured once per session, with a log capture fixture
- A deterministic clock and an InvoiceService built on it
- Invoice builders for the common scenarios
- In-memory SQLite sessions for the persistence adapter
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from invoice_kernel.config import InvoiceConfig
from invoice_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from invoice_kernel.domain.clock import DeterministicClock
from invoice_kernel.domain.line_items import make_line_item
from invoice_kernel.domain.numbering import SequentialNumberer
from invoice_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from invoice_kernel.services.invoice_service import InvoiceService

# Fixed "today" for every test that uses the clock fixtures.
TODAY = date(2025, 3, 15)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture invoice_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, service):
            service.create_invoice(...)
            logs = captured_logs()
            assert any(r["message"] == "invoice_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("invoice_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock and service fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Clock fixed at noon UTC on TODAY."""
    return DeterministicClock(
        datetime(TODAY.year, TODAY.month, TODAY.day, 12, 0, 0, tzinfo=timezone.utc)
    )


@pytest.fixture
def config() -> InvoiceConfig:
    return InvoiceConfig.with_defaults()


@pytest.fixture
def numberer() -> SequentialNumberer:
    return SequentialNumberer()


@pytest.fixture
def service(deterministic_clock, config, numberer) -> InvoiceService:
    return InvoiceService(clock=deterministic_clock, config=config, numberer=numberer)


# =============================================================================
# Invoice builders
# =============================================================================


@pytest.fixture
def sample_items():
    """2 x 50.00 and 1 x 25.50: subtotal 125.50."""
    return [
        make_line_item("Consulting", Decimal("2"), Decimal("50.00"), unit="hrs"),
        make_line_item("Materials", Decimal("1"), Decimal("25.50"), sort_order=1),
    ]


@pytest.fixture
def sample_invoice(service, sample_items):
    """Draft invoice: subtotal 125.50, tax 10% = 12.55, discount 5.00, total 133.05."""
    return service.create_invoice(
        customer_id=42,
        items=sample_items,
        tax_rate=Decimal("10"),
        discount_amount=Decimal("5.00"),
        invoice_date=TODAY,
        due_date=date(2025, 4, 14),
    )


@pytest.fixture
def sent_invoice(service, sample_invoice):
    return service.set_status(sample_invoice, "Sent")


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Fresh in-memory SQLite database per test."""
    init_engine_from_url("sqlite://")
    create_tables()
    session = get_session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        reset_engine()
