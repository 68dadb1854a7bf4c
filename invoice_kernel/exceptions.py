"""
Typed Exception Hierarchy for the Invoice Kernel.

Every error raised by the kernel is a subclass of ``InvoiceKernelError``
and carries:
  1. a TYPED class (catch by type, not by message)
  2. a ``code`` class attribute (machine-readable, API-safe)
  3. structured attributes (rendered inline by the calling UI)

Example:
    try:
        invoice = service.add_payment(invoice, payment_input)
    except OverpaymentError as e:
        show_error(field="amount", max_allowed=e.outstanding)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InvoiceKernelError (base)
    |
    +-- ValidationError
    |   +-- InvalidCurrencyError
    |
    +-- OverpaymentError
    |
    +-- InvalidStateError
    |
    +-- CurrencyMismatchError
    |
    +-- PersistenceError
        +-- InvoiceNotFoundError
        +-- OptimisticLockError

===============================================================================
ERROR CODES
===============================================================================

Code                  | When Raised
----------------------|--------------------------------------------------------
VALIDATION_ERROR      | Malformed / out-of-range input (quantity <= 0,
                      | negative price, missing customer, amount <= 0, ...)
INVALID_CURRENCY      | Not a known ISO 4217 code
OVERPAYMENT           | Payment exceeds the outstanding balance
INVALID_STATE         | Mutation on a non-editable or cancelled invoice, or an
                      | illegal status transition
CURRENCY_MISMATCH     | Money arithmetic across two currencies
INVOICE_NOT_FOUND     | Repository lookup by id failed
OPTIMISTIC_LOCK_CONFLICT | Stored invoice changed since the snapshot was read

All kernel errors are recoverable: the operation that raised has not
changed anything, and the caller may retry after correcting its input.
"""

from decimal import Decimal


class InvoiceKernelError(Exception):
    """
    Base exception for all invoice kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVOICE_KERNEL_ERROR"


class ValidationError(InvoiceKernelError):
    """Input is malformed or out of range."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class InvalidCurrencyError(ValidationError):
    """Invalid ISO 4217 currency code provided."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__("currency", f"'{currency}' is not an ISO 4217 code")


class OverpaymentError(InvoiceKernelError):
    """Payment amount is larger than the outstanding balance."""

    code: str = "OVERPAYMENT"

    def __init__(
        self,
        invoice_id: str,
        amount: Decimal,
        outstanding: Decimal,
        currency: str,
    ):
        self.invoice_id = invoice_id
        self.amount = amount
        self.outstanding = outstanding
        self.currency = currency
        super().__init__(
            f"Payment of {amount} {currency} exceeds outstanding balance "
            f"{outstanding} {currency} on invoice {invoice_id}"
        )


class InvalidStateError(InvoiceKernelError):
    """
    Operation is not allowed in the invoice's current status.

    Raised for structural edits outside Draft/Sent, any payment on a
    Cancelled invoice, and illegal manual status transitions.
    """

    code: str = "INVALID_STATE"

    def __init__(self, invoice_id: str, status: str, action: str):
        self.invoice_id = invoice_id
        self.status = status
        self.action = action
        super().__init__(
            f"Cannot {action} invoice {invoice_id} in status {status}"
        )


class CurrencyMismatchError(InvoiceKernelError):
    """Attempted operation on mismatched currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, currency1: str, currency2: str):
        self.currency1 = currency1
        self.currency2 = currency2
        super().__init__(f"Currency mismatch: {currency1} vs {currency2}")


# Persistence adapter exceptions


class PersistenceError(InvoiceKernelError):
    """Base exception for repository errors."""

    code: str = "PERSISTENCE_ERROR"


class InvoiceNotFoundError(PersistenceError):
    """Invoice with given ID was not found."""

    code: str = "INVOICE_NOT_FOUND"

    def __init__(self, invoice_id: str):
        self.invoice_id = invoice_id
        super().__init__(f"Invoice not found: {invoice_id}")


class OptimisticLockError(PersistenceError):
    """Stored invoice was modified after the caller's snapshot was taken."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, invoice_id: str, expected_version: int, actual_version: int):
        self.invoice_id = invoice_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Optimistic lock conflict on invoice {invoice_id}: "
            f"expected version {expected_version}, found {actual_version}"
        )
