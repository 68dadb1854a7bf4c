"""
Tests for status derivation, manual transitions and the editability gate.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from invoice_kernel.domain.ledger import apply_payment
from invoice_kernel.domain.models import InvoiceStatus, Payment, PaymentInput
from invoice_kernel.domain.workflow import (
    INVOICE_WORKFLOW,
    derive_status,
    ensure_editable,
    is_editable,
    refresh_status,
    set_status,
)
from invoice_kernel.exceptions import InvalidStateError, ValidationError
from tests.conftest import TODAY

# sample_invoice is due 2025-04-14
AFTER_DUE = date(2025, 5, 1)


def _pay(invoice, amount: str):
    payment = Payment.from_input(
        PaymentInput(amount=Decimal(amount), payment_date=TODAY, payment_method="cash"),
        "PAY-2025-000001",
    )
    return apply_payment(invoice, payment, TODAY)


class TestDeriveStatus:

    def test_new_invoice_is_draft(self, sample_invoice):
        assert derive_status(sample_invoice, TODAY) == InvoiceStatus.DRAFT

    def test_draft_is_never_overdue(self, sample_invoice):
        assert derive_status(sample_invoice, AFTER_DUE) == InvoiceStatus.DRAFT

    def test_sent_past_due_is_overdue(self, sent_invoice):
        assert derive_status(sent_invoice, AFTER_DUE) == InvoiceStatus.OVERDUE

    def test_due_today_is_not_overdue(self, sent_invoice):
        assert derive_status(sent_invoice, sent_invoice.due_date) == InvoiceStatus.SENT

    def test_sent_before_due_stays_sent(self, sent_invoice):
        assert derive_status(sent_invoice, TODAY) == InvoiceStatus.SENT

    def test_partial(self, sent_invoice):
        assert derive_status(_pay(sent_invoice, "40.00"), AFTER_DUE) == InvoiceStatus.PARTIAL

    def test_paid(self, sent_invoice):
        assert derive_status(_pay(sent_invoice, "133.05"), AFTER_DUE) == InvoiceStatus.PAID

    def test_zero_total_is_not_paid(self, sample_invoice):
        free = replace(sample_invoice, total_amount=Decimal("0.00"))
        assert derive_status(free, TODAY) == InvoiceStatus.DRAFT

    def test_cancelled_is_kept(self, sample_invoice):
        cancelled = replace(sample_invoice, status=InvoiceStatus.CANCELLED)
        assert derive_status(cancelled, AFTER_DUE) == InvoiceStatus.CANCELLED

    def test_manual_override_suppresses_overdue(self, sent_invoice):
        overridden = replace(sent_invoice, manual_override=True)
        assert derive_status(overridden, AFTER_DUE) == InvoiceStatus.SENT

    def test_refresh_status(self, sent_invoice, captured_logs):
        refreshed = refresh_status(sent_invoice, AFTER_DUE)
        assert refreshed.status == InvoiceStatus.OVERDUE
        assert any(r["message"] == "invoice_status_derived" for r in captured_logs())

    def test_refresh_unchanged_returns_same_snapshot(self, sent_invoice):
        assert refresh_status(sent_invoice, TODAY) is sent_invoice


class TestSetStatus:

    def test_send(self, sample_invoice):
        sent = set_status(sample_invoice, "Sent", TODAY)
        assert sent.status == InvoiceStatus.SENT
        assert sent.base_status == InvoiceStatus.SENT
        assert not sent.manual_override

    def test_same_status_is_noop(self, sample_invoice):
        assert set_status(sample_invoice, InvoiceStatus.DRAFT, TODAY) is sample_invoice

    def test_revert_to_draft(self, sent_invoice):
        assert set_status(sent_invoice, "Draft", TODAY).status == InvoiceStatus.DRAFT

    def test_send_past_due_becomes_overdue(self, sample_invoice):
        sent = set_status(sample_invoice, "Sent", AFTER_DUE)
        assert sent.base_status == InvoiceStatus.SENT
        assert not sent.manual_override
        assert sent.status == InvoiceStatus.OVERDUE
        assert refresh_status(sent, AFTER_DUE).status == InvoiceStatus.OVERDUE

    def test_overdue_back_to_draft_then_send(self, sent_invoice):
        draft = set_status(refresh_status(sent_invoice, AFTER_DUE), "Draft", AFTER_DUE)
        assert draft.status == InvoiceStatus.DRAFT
        assert draft.manual_override
        resent = set_status(draft, "Sent", AFTER_DUE)
        assert not resent.manual_override
        assert resent.status == InvoiceStatus.OVERDUE

    def test_overdue_back_to_sent(self, sent_invoice):
        overdue = refresh_status(sent_invoice, AFTER_DUE)
        corrected = set_status(overdue, "Sent", AFTER_DUE)
        assert corrected.status == InvoiceStatus.SENT
        assert corrected.manual_override
        assert refresh_status(corrected, AFTER_DUE).status == InvoiceStatus.SENT

    def test_mark_overdue_when_past_due(self, sample_invoice):
        overdue = set_status(sample_invoice, "Overdue", AFTER_DUE)
        assert overdue.status == InvoiceStatus.OVERDUE
        assert overdue.base_status == InvoiceStatus.SENT

    def test_mark_overdue_before_due_rejected(self, sent_invoice, captured_logs):
        with pytest.raises(InvalidStateError):
            set_status(sent_invoice, "Overdue", TODAY)
        rejected = [r for r in captured_logs() if r["message"] == "invoice_transition_rejected"]
        assert rejected[0]["guard"] == "past_due"

    def test_mark_paid_without_payment_rejected(self, sample_invoice):
        with pytest.raises(InvalidStateError) as exc_info:
            set_status(sample_invoice, "Paid", TODAY)
        assert exc_info.value.code == "INVALID_STATE"

    def test_partial_cannot_go_back_to_sent(self, sent_invoice):
        partial = _pay(sent_invoice, "40.00")
        with pytest.raises(InvalidStateError):
            set_status(partial, "Sent", TODAY)

    def test_cancel_paid_invoice(self, sent_invoice):
        cancelled = set_status(_pay(sent_invoice, "133.05"), "Cancelled", TODAY)
        assert cancelled.status == InvoiceStatus.CANCELLED

    def test_cancelled_is_terminal(self, sample_invoice):
        cancelled = set_status(sample_invoice, "Cancelled", TODAY)
        for target in ("Draft", "Sent", "Paid"):
            with pytest.raises(InvalidStateError):
                set_status(cancelled, target, TODAY)

    def test_unknown_status(self, sample_invoice):
        with pytest.raises(ValidationError) as exc_info:
            set_status(sample_invoice, "Archived", TODAY)
        assert exc_info.value.field == "status"


class TestEditability:

    def test_draft_and_sent_fully_editable(self, sample_invoice, sent_invoice):
        for invoice in (sample_invoice, sent_invoice):
            assert is_editable(invoice, "items")
            assert is_editable(invoice, "tax_rate")

    def test_paid_locks_structure(self, sent_invoice):
        paid = _pay(sent_invoice, "133.05")
        assert not is_editable(paid, "items")
        assert not is_editable(paid, "currency")
        assert is_editable(paid, "due_date")
        assert is_editable(paid, "notes")

    def test_cancelled_allows_notes_only(self, sample_invoice):
        cancelled = set_status(sample_invoice, "Cancelled", TODAY)
        assert is_editable(cancelled, "notes")
        assert not is_editable(cancelled, "due_date")
        assert not is_editable(cancelled, "items")

    def test_ensure_editable_message(self, sent_invoice):
        overdue = refresh_status(sent_invoice, AFTER_DUE)
        with pytest.raises(InvalidStateError) as exc_info:
            ensure_editable(overdue, ["notes", "items"])
        assert str(exc_info.value) == (
            f"Cannot edit items of invoice {overdue.id} in status Overdue"
        )


class TestWorkflowDefinition:

    def test_terminal_state(self):
        assert INVOICE_WORKFLOW.terminal_states == (InvoiceStatus.CANCELLED,)
        assert all(t.from_state != InvoiceStatus.CANCELLED for t in INVOICE_WORKFLOW.transitions)

    def test_every_state_can_be_cancelled(self):
        for state in INVOICE_WORKFLOW.states:
            if state != InvoiceStatus.CANCELLED:
                assert INVOICE_WORKFLOW.find(state, InvoiceStatus.CANCELLED) is not None

    def test_find(self):
        transition = INVOICE_WORKFLOW.find(InvoiceStatus.DRAFT, InvoiceStatus.SENT)
        assert transition.action == "send"
        assert INVOICE_WORKFLOW.find(InvoiceStatus.PAID, InvoiceStatus.DRAFT) is None
