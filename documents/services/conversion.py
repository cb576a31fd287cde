import logging
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from documents.models import Invoice, InvoiceLine, Quote, QuoteLine

logger = logging.getLogger(__name__)


@transaction.atomic
def create_invoice_from_quote(quote, by=None) -> Invoice:
    """Create a draft invoice from a quote.

    - Lines are copied as they are (sections and text lines included)
    - Due date = today + payment terms (contact terms, else organization default)
    - A sent/viewed quote is marked accepted
    """
    quote = Quote.objects.select_for_update().get(pk=quote.pk)

    if quote.state in (Quote.State.REJECTED, Quote.State.EXPIRED):
        raise ValueError("Un devis refusé ou expiré ne peut pas être facturé.")
    if quote.is_converted:
        raise ValueError(f"Ce devis a déjà été facturé ({quote.invoice.number}).")
    if not quote.lines.exists():
        raise ValueError("Le devis ne contient aucune ligne.")

    today = timezone.localdate()
    invoice = Invoice.objects.create(
        organization=quote.organization,
        contact=quote.contact,
        quote=quote,
        date=today,
        due_date=today + timedelta(days=quote.contact.payment_terms_days()),
        title=quote.title,
        notes=quote.notes,
        terms=quote.terms,
        salesperson=quote.salesperson,
        created_by=by,
    )

    InvoiceLine.objects.bulk_create([
        InvoiceLine(invoice=invoice, line_total=line.line_total, **line.copy_values())
        for line in quote.lines.all()
    ])
    invoice.recalc_totals()

    if quote.state in (Quote.State.SENT, Quote.State.VIEWED):
        quote.accept(by=by)
        quote.save()

    logger.info("Quote %s converted to invoice %s", quote.number, invoice.number)
    return invoice


@transaction.atomic
def duplicate_quote(quote, by=None) -> Quote:
    """New draft quote with the same client and lines, dated today."""
    today = timezone.localdate()
    copy = Quote.objects.create(
        organization=quote.organization,
        contact=quote.contact,
        date=today,
        title=quote.title,
        notes=quote.notes,
        terms=quote.terms,
        salesperson=quote.salesperson,
        prospect=quote.prospect,
        created_by=by,
    )
    QuoteLine.objects.bulk_create([
        QuoteLine(quote=copy, line_total=line.line_total, **line.copy_values())
        for line in quote.lines.all()
    ])
    copy.recalc_totals()
    return copy
