"""Tests for per-currency invoice statistics."""

from datetime import date
from decimal import Decimal

from invoice_kernel.domain.statistics import compute_statistics, is_overdue

AS_OF = date(2025, 6, 1)


def _create(service, price: str, currency: str = "USD", due: date = date(2025, 7, 1)):
    return service.create_invoice(
        customer_id=7,
        items=[{"description": "Service", "quantity": 1, "unit_price": price}],
        currency=currency,
        due_date=due,
    )


def test_statistics_grouped_by_currency(service):
    draft = _create(service, "100.00")
    partial = service.add_payment(
        service.set_status(_create(service, "200.00"), "Sent"),
        {"amount": "40.00", "paymentDate": "2025-03-15", "paymentMethod": "cash"},
    )
    late = service.set_status(_create(service, "50.00", due=date(2025, 4, 1)), "Sent")
    cancelled = service.set_status(_create(service, "10.00"), "Cancelled")
    paid_eur = service.pay_in_full(_create(service, "75.00", currency="EUR"), "card")

    eur, usd = compute_statistics([draft, partial, late, cancelled, paid_eur], AS_OF)

    assert usd.currency == "USD"
    assert usd.total_invoices == 4
    assert usd.total_amount == Decimal("350.00")
    assert usd.paid_amount == Decimal("40.00")
    assert usd.outstanding_amount == Decimal("310.00")
    assert usd.overdue_count == 1
    assert usd.draft_count == 1
    assert usd.paid_count == 0
    assert usd.cancelled_count == 1

    assert eur.currency == "EUR"
    assert eur.total_invoices == 1
    assert eur.paid_amount == Decimal("75.00")
    assert eur.outstanding_amount == Decimal("0.00")
    assert eur.paid_count == 1


def test_empty():
    assert compute_statistics([], AS_OF) == ()


def test_is_overdue_ignores_paid(service):
    paid = service.pay_in_full(_create(service, "10.00", due=date(2025, 4, 1)), "cash")
    assert not is_overdue(paid, AS_OF)


def test_to_dict(service):
    (stats,) = compute_statistics([_create(service, "12.50")], AS_OF)
    assert stats.to_dict() == {
        "currency": "USD",
        "totalInvoices": 1,
        "totalAmount": "12.50",
        "paidAmount": "0.00",
        "outstandingAmount": "12.50",
        "overdueCount": 0,
        "draftCount": 1,
        "paidCount": 0,
        "cancelledCount": 0,
    }
