from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from django_fsm import TransitionNotAllowed

from documents.models import Bill, BillLine, Invoice, Quote
from documents.services.conversion import create_invoice_from_quote, duplicate_quote
from documents.services.overdue import mark_overdue_documents
from documents.services.payments import record_payment, reverse_payment

from .factories import add_lines

pytestmark = pytest.mark.django_db


class TestNumbering:
    def test_documents_are_numbered_per_series(self, make_quote, make_invoice):
        assert make_quote().number == "DEV-00001"
        assert make_quote().number == "DEV-00002"
        assert make_invoice().number == "FAC-00001"

    def test_quote_valid_thirty_days(self, make_quote):
        quote = make_quote(send=False)
        assert quote.valid_until == quote.date + timedelta(days=30)


class TestQuoteConversion:
    def test_invoice_copies_lines_and_accepts_quote(self, make_quote):
        quote = make_quote(lines=(("2", "50.00", "20"), ("1", "10.00", "5.5")))

        invoice = create_invoice_from_quote(quote)

        quote = Quote.objects.get(pk=quote.pk)
        assert invoice.state == Invoice.State.DRAFT
        assert invoice.quote_id == quote.pk
        assert invoice.lines.count() == 2
        assert (invoice.subtotal, invoice.tax_amount, invoice.total) == (quote.subtotal, quote.tax_amount, quote.total)
        assert quote.state == Quote.State.ACCEPTED
        assert quote.is_converted

    def test_converted_only_once(self, make_quote):
        quote = make_quote()
        create_invoice_from_quote(quote)
        with pytest.raises(ValueError, match="déjà été facturé"):
            create_invoice_from_quote(quote)

    def test_draft_quote_is_not_accepted(self, make_quote):
        quote = make_quote(send=False)

        invoice = create_invoice_from_quote(quote)

        quote = Quote.objects.get(pk=quote.pk)
        assert invoice.quote_id == quote.pk
        assert quote.state == Quote.State.DRAFT

    def test_rejected_quote_cannot_be_invoiced(self, make_quote):
        quote = make_quote()
        quote.reject()
        quote.save()
        with pytest.raises(ValueError):
            create_invoice_from_quote(quote)

    def test_duplicate_is_a_new_draft(self, make_quote):
        quote = make_quote()
        copy = duplicate_quote(quote)
        assert copy.pk != quote.pk
        assert copy.state == Quote.State.DRAFT
        assert copy.total == quote.total
        assert copy.number != quote.number


class TestStates:
    def test_send_needs_a_line(self, organization, contact):
        quote = Quote.objects.create(organization=organization, contact=contact, date=timezone.localdate())
        with pytest.raises(ValueError):
            quote.send()

    def test_paid_invoice_cannot_be_cancelled(self, make_invoice):
        invoice = make_invoice()
        record_payment(invoice, "120.00")
        invoice = Invoice.objects.get(pk=invoice.pk)
        with pytest.raises(TransitionNotAllowed):
            invoice.cancel()


class TestPayments:
    def test_partial_then_full(self, make_invoice):
        invoice = make_invoice()

        first = record_payment(invoice, "50")
        assert Invoice.objects.get(pk=invoice.pk).state == Invoice.State.PARTIALLY_PAID

        record_payment(invoice, "70.00")
        invoice = Invoice.objects.get(pk=invoice.pk)
        assert invoice.state == Invoice.State.PAID
        assert invoice.paid_at is not None

        reverse_payment(first)
        invoice = Invoice.objects.get(pk=invoice.pk)
        assert invoice.state == Invoice.State.PARTIALLY_PAID
        assert invoice.amount_paid == Decimal("70.00")
        assert invoice.paid_at is None

    def test_zero_total_invoice_is_paid_by_any_payment(self, make_invoice):
        invoice = make_invoice(lines=(("1", "0.00", "20"),))

        record_payment(invoice, Decimal("5"))

        invoice = Invoice.objects.get(pk=invoice.pk)
        assert invoice.total == Decimal("0.00")
        assert invoice.state == Invoice.State.PAID

    def test_amount_must_be_positive(self, make_invoice):
        with pytest.raises(ValueError):
            record_payment(make_invoice(), "0")

    def test_no_payment_on_cancelled_invoice(self, make_invoice):
        invoice = make_invoice()
        invoice.cancel()
        invoice.save()
        with pytest.raises(ValueError):
            record_payment(invoice, "10")

    def test_bill_payment(self, organization, supplier):
        bill = Bill.objects.create(organization=organization, contact=supplier, date=timezone.localdate())
        add_lines(bill, BillLine, "bill", [("1", "200.00", "20")])
        bill.receive()
        bill.save()

        record_payment(bill, "240.00")

        bill = Bill.objects.get(pk=bill.pk)
        assert bill.number == "ACH-00001"
        assert bill.state == Bill.State.PAID


class TestOverdue:
    def test_open_invoices_past_due_become_overdue(self, make_invoice):
        late = make_invoice(date=timezone.localdate() - timedelta(days=40), due_in_days=10)
        on_time = make_invoice()

        count = mark_overdue_documents(today=timezone.localdate())

        assert count >= 1
        assert Invoice.objects.get(pk=late.pk).state == Invoice.State.OVERDUE
        assert Invoice.objects.get(pk=on_time.pk).state == Invoice.State.SENT
