"""
Invoice Status State Machine.

Responsibility:
    Decides an invoice's status. ``Paid``, ``Partial`` and ``Overdue`` are
    derived from the ledger and the due date; ``Draft``, ``Sent`` and
    ``Cancelled`` are set by explicit user action. ``INVOICE_WORKFLOW``
    lists the manual transitions and the guards that must hold for each.

Architecture position:
    Kernel > Domain -- pure functions over invoice snapshots, zero I/O.
    The ledger calls ``derive_status`` after every payment; the service
    calls ``set_status`` and ``refresh_status``.

Invariants enforced:
    - ``Cancelled`` is terminal.
    - ``Paid`` iff outstanding is zero and total is positive.
    - ``Partial`` iff some, but not all, of the total has been paid.
    - ``Overdue`` only after the invoice has left ``Draft``, while a
      balance is outstanding past the due date and no manual override
      is active.
    - Structural edits only while ``Draft`` or ``Sent``.

Failure modes:
    - InvalidStateError: leaving ``Cancelled``, a transition whose guard
      does not hold, or a structural edit outside an editable status.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import date

from invoice_kernel.domain.models import Invoice, InvoiceStatus, parse_enum
from invoice_kernel.exceptions import InvalidStateError
from invoice_kernel.logging_config import get_logger

logger = get_logger("domain.workflow")


@dataclass(frozen=True)
class Guard:
    """A condition for a transition."""
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition."""
    from_state: InvoiceStatus
    to_state: InvoiceStatus
    action: str
    guard: Guard | None = None


@dataclass(frozen=True)
class Workflow:
    """A state machine definition."""
    name: str
    description: str
    initial_state: InvoiceStatus
    states: tuple[InvoiceStatus, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[InvoiceStatus, ...] = ()

    def find(self, from_state: InvoiceStatus, to_state: InvoiceStatus) -> Transition | None:
        for transition in self.transitions:
            if transition.from_state == from_state and transition.to_state == to_state:
                return transition
        return None


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

NO_PAYMENTS_APPLIED = Guard(
    name="no_payments_applied",
    description="No payment has been recorded against the invoice",
)

BALANCE_ZERO = Guard(
    name="balance_zero",
    description="Invoice total is positive and fully paid",
)

PARTIALLY_PAID = Guard(
    name="partially_paid",
    description="Some, but not all, of the total has been paid",
)

PAST_DUE = Guard(
    name="past_due",
    description="Unpaid balance outstanding after the due date",
)


def _no_payments(invoice: Invoice, as_of: date) -> bool:
    return invoice.paid_amount == 0


def _balance_zero(invoice: Invoice, as_of: date) -> bool:
    return invoice.total_amount > 0 and invoice.outstanding == 0


def _partially_paid(invoice: Invoice, as_of: date) -> bool:
    return invoice.paid_amount > 0 and invoice.outstanding > 0


def _past_due(invoice: Invoice, as_of: date) -> bool:
    return invoice.paid_amount == 0 and invoice.outstanding > 0 and invoice.due_date < as_of


_GUARD_CHECKS: dict[str, Callable[[Invoice, date], bool]] = {
    NO_PAYMENTS_APPLIED.name: _no_payments,
    BALANCE_ZERO.name: _balance_zero,
    PARTIALLY_PAID.name: _partially_paid,
    PAST_DUE.name: _past_due,
}


# -----------------------------------------------------------------------------
# Invoice Workflow
# -----------------------------------------------------------------------------

_D = InvoiceStatus.DRAFT
_S = InvoiceStatus.SENT
_PD = InvoiceStatus.PAID
_PT = InvoiceStatus.PARTIAL
_O = InvoiceStatus.OVERDUE
_C = InvoiceStatus.CANCELLED

INVOICE_WORKFLOW = Workflow(
    name="invoice",
    description="Customer invoice lifecycle",
    initial_state=_D,
    states=(_D, _S, _PD, _PT, _O, _C),
    transitions=(
        Transition(_D, _S, action="send", guard=NO_PAYMENTS_APPLIED),
        Transition(_S, _D, action="revert_to_draft", guard=NO_PAYMENTS_APPLIED),
        Transition(_O, _D, action="revert_to_draft", guard=NO_PAYMENTS_APPLIED),
        Transition(_O, _S, action="mark_sent", guard=NO_PAYMENTS_APPLIED),
        Transition(_D, _O, action="mark_overdue", guard=PAST_DUE),
        Transition(_S, _O, action="mark_overdue", guard=PAST_DUE),
        Transition(_D, _PT, action="mark_partial", guard=PARTIALLY_PAID),
        Transition(_S, _PT, action="mark_partial", guard=PARTIALLY_PAID),
        Transition(_O, _PT, action="mark_partial", guard=PARTIALLY_PAID),
        Transition(_D, _PD, action="mark_paid", guard=BALANCE_ZERO),
        Transition(_S, _PD, action="mark_paid", guard=BALANCE_ZERO),
        Transition(_O, _PD, action="mark_paid", guard=BALANCE_ZERO),
        Transition(_PT, _PD, action="mark_paid", guard=BALANCE_ZERO),
        Transition(_D, _C, action="cancel"),
        Transition(_S, _C, action="cancel"),
        Transition(_PT, _C, action="cancel"),
        Transition(_PD, _C, action="cancel"),
        Transition(_O, _C, action="cancel"),
    ),
    terminal_states=(_C,),
)

logger.debug(
    "invoice_workflow_registered",
    extra={
        "workflow_name": INVOICE_WORKFLOW.name,
        "state_count": len(INVOICE_WORKFLOW.states),
        "transition_count": len(INVOICE_WORKFLOW.transitions),
        "initial_state": INVOICE_WORKFLOW.initial_state.value,
    },
)

EDITABLE_STATUSES = frozenset({InvoiceStatus.DRAFT, InvoiceStatus.SENT})

# Fields whose change alters the document totals or its counterparty.
STRUCTURAL_FIELDS = frozenset(
    {"items", "tax_rate", "discount_amount", "currency", "customer_id"}
)
FREE_FIELDS = frozenset({"due_date", "notes", "terms", "status"})


def derive_status(invoice: Invoice, as_of: date) -> InvoiceStatus:
    """Status implied by the ledger, the due date and the base status."""
    if invoice.status == InvoiceStatus.CANCELLED:
        return InvoiceStatus.CANCELLED
    outstanding = invoice.outstanding
    if invoice.total_amount > 0 and outstanding == 0:
        return InvoiceStatus.PAID
    if invoice.paid_amount > 0 and outstanding > 0:
        return InvoiceStatus.PARTIAL
    if (
        outstanding > 0
        and invoice.due_date < as_of
        and invoice.base_status != InvoiceStatus.DRAFT
        and not invoice.manual_override
    ):
        return InvoiceStatus.OVERDUE
    return invoice.base_status


def refresh_status(invoice: Invoice, as_of: date) -> Invoice:
    """Return the snapshot with its status re-derived as of ``as_of``."""
    status = derive_status(invoice, as_of)
    if status == invoice.status:
        return invoice
    logger.info(
        "invoice_status_derived",
        extra={
            "invoice_id": str(invoice.id),
            "from_status": invoice.status.value,
            "to_status": status.value,
        },
    )
    return replace(invoice, status=status)


def is_editable(invoice: Invoice, field: str) -> bool:
    if invoice.status == InvoiceStatus.CANCELLED:
        return field == "notes"
    if field in FREE_FIELDS:
        return True
    return invoice.status in EDITABLE_STATUSES


def ensure_editable(invoice: Invoice, fields: Iterable[str]) -> None:
    """Raise InvalidStateError if any of ``fields`` is locked."""
    for field in sorted(fields):
        if not is_editable(invoice, field):
            raise InvalidStateError(str(invoice.id), invoice.status.value, f"edit {field} of")


def set_status(
    invoice: Invoice,
    new_status: InvoiceStatus | str,
    as_of: date,
) -> Invoice:
    """
    Apply a manual status change.

    Draft and Sent become the new base status. Moving an Overdue invoice
    back to Draft or Sent is recorded as a manual override so overdue
    derivation does not immediately undo the correction; sending a
    past-due Draft is not, and it derives Overdue at once. Paid, Partial
    and Overdue are accepted only when the ledger and due date already
    imply them.
    """
    target = parse_enum(InvoiceStatus, new_status, "status")
    current = invoice.status
    if target == current:
        return invoice
    if current in INVOICE_WORKFLOW.terminal_states:
        raise InvalidStateError(str(invoice.id), current.value, f"change status to {target.value} for")

    transition = INVOICE_WORKFLOW.find(current, target)
    if transition is None or (
        transition.guard is not None
        and not _GUARD_CHECKS[transition.guard.name](invoice, as_of)
    ):
        logger.warning(
            "invoice_transition_rejected",
            extra={
                "invoice_id": str(invoice.id),
                "from_status": current.value,
                "to_status": target.value,
                "guard": transition.guard.name if transition and transition.guard else None,
            },
        )
        raise InvalidStateError(str(invoice.id), current.value, f"change status to {target.value} for")

    if target == InvoiceStatus.CANCELLED:
        updated = replace(invoice, status=target)
    elif target in EDITABLE_STATUSES:
        updated = replace(
            invoice,
            base_status=target,
            manual_override=current == InvoiceStatus.OVERDUE,
        )
        updated = replace(updated, status=derive_status(updated, as_of))
    else:
        base = InvoiceStatus.SENT if target == InvoiceStatus.OVERDUE else invoice.base_status
        updated = replace(invoice, base_status=base, manual_override=False)
        updated = replace(updated, status=derive_status(updated, as_of))

    logger.info(
        "invoice_status_changed",
        extra={
            "invoice_id": str(invoice.id),
            "action": transition.action,
            "from_status": current.value,
            "to_status": updated.status.value,
            "manual_override": updated.manual_override,
        },
    )
    return updated
