"""
Hypothesis-based fuzzing of the invoice arithmetic and the payment ledger.

Properties checked:
- round2 is idempotent, two-place and within half a cent of its input
- Totals satisfy the aggregation formulas for arbitrary items, rate and discount
- Recomputing totals from their own output changes nothing
- Any payment sequence keeps 0 <= paid <= total and never decreases paid
- Statuses derived after each payment agree with the balance
"""

from datetime import date, datetime, timezone
from decimal import Decimal

from hypothesis import HealthCheck, assume, given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from invoice_kernel.domain.aggregator import compute_totals
from invoice_kernel.domain.clock import DeterministicClock
from invoice_kernel.domain.consistency import find_violations
from invoice_kernel.domain.line_items import make_line_item
from invoice_kernel.domain.models import InvoiceStatus, PaymentInput
from invoice_kernel.domain.money import round2
from invoice_kernel.exceptions import OverpaymentError
from invoice_kernel.services.invoice_service import InvoiceService

TODAY = date(2025, 3, 15)

quantities = st.decimals(
    min_value=Decimal("0.01"), max_value=Decimal("10000"), places=2,
    allow_nan=False, allow_infinity=False,
)
unit_prices = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("100000"), places=4,
    allow_nan=False, allow_infinity=False,
)
tax_rates = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("100"), places=2,
    allow_nan=False, allow_infinity=False,
)
cents = st.decimals(
    min_value=Decimal("0.01"), max_value=Decimal("5000"), places=2,
    allow_nan=False, allow_infinity=False,
)


@composite
def line_items(draw):
    count = draw(st.integers(min_value=1, max_value=8))
    return [
        make_line_item(
            draw(st.text(min_size=1, max_size=20).filter(lambda s: s.strip())),
            draw(quantities),
            draw(unit_prices),
            sort_order=index,
        )
        for index in range(count)
    ]


def _service() -> InvoiceService:
    clock = DeterministicClock(datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc))
    return InvoiceService(clock=clock)


class TestRoundingFuzzing:

    @given(st.decimals(min_value=Decimal("-1e9"), max_value=Decimal("1e9"),
                       allow_nan=False, allow_infinity=False))
    def test_round2_properties(self, value):
        rounded = round2(value)
        assert rounded.as_tuple().exponent == -2
        assert round2(rounded) == rounded
        assert abs(rounded - value) <= Decimal("0.005")


class TestTotalsFuzzing:

    @given(items=line_items(), rate=tax_rates, discount_fraction=st.integers(0, 100))
    @settings(max_examples=200)
    def test_totals_follow_formulas(self, items, rate, discount_fraction):
        gross = compute_totals(items, rate, 0)
        discount = round2(gross.total_amount * discount_fraction / 100)
        totals = compute_totals(items, rate, discount)

        assert totals.sub_total == round2(sum(i.line_total for i in items))
        assert totals.tax_amount == round2(totals.sub_total * rate / 100)
        assert totals.total_amount == round2(totals.sub_total + totals.tax_amount - discount)
        assert totals.total_amount >= 0
        for item in totals.items:
            assert item.line_total == round2(item.quantity * item.unit_price)

    @given(items=line_items(), rate=tax_rates)
    def test_recompute_is_idempotent(self, items, rate):
        first = compute_totals(items, rate, 0)
        assert compute_totals(first.items, rate, 0) == first


class TestLedgerFuzzing:

    @given(amounts=st.lists(cents, min_size=1, max_size=12), price=cents)
    @settings(max_examples=150, suppress_health_check=[HealthCheck.too_slow])
    def test_payment_sequence_never_overpays(self, amounts, price):
        service = _service()
        invoice = service.set_status(
            service.create_invoice(
                customer_id=1,
                items=[{"description": "Service", "quantity": 1, "unit_price": price}],
            ),
            "Sent",
        )

        for amount in amounts:
            before = invoice.paid_amount
            try:
                invoice = service.add_payment(
                    invoice,
                    PaymentInput(amount=amount, payment_date=TODAY, payment_method="cash"),
                )
            except OverpaymentError:
                assert amount > invoice.outstanding
                continue

            assert invoice.paid_amount == before + amount
            assert Decimal("0") <= invoice.paid_amount <= invoice.total_amount
            if invoice.outstanding == 0:
                assert invoice.status == InvoiceStatus.PAID
            else:
                assert invoice.status == InvoiceStatus.PARTIAL
            assert find_violations(invoice, TODAY) == ()

    @given(price=cents, split=st.integers(min_value=1, max_value=99))
    def test_two_payments_settle_exactly(self, price, split):
        assume(price >= Decimal("0.02"))
        service = _service()
        invoice = service.create_invoice(
            customer_id=1,
            items=[{"description": "Service", "quantity": 1, "unit_price": price}],
        )
        first = max(Decimal("0.01"), round2(price * split / 100))
        assume(first < price)

        invoice = service.add_payment(
            invoice, PaymentInput(amount=first, payment_date=TODAY, payment_method="card")
        )
        assert invoice.status == InvoiceStatus.PARTIAL
        invoice = service.pay_in_full(invoice, "card")
        assert invoice.status == InvoiceStatus.PAID
        assert invoice.paid_amount == invoice.total_amount == price
