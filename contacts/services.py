from dataclasses import dataclass
from decimal import Decimal

from django.db.models import Sum

from documents.models import Invoice, InvoiceLine, Quote
from documents.services.totals import compute_margin


@dataclass
class ContactSummary:
    invoiced: Decimal
    paid: Decimal
    outstanding: Decimal
    invoice_count: int
    quote_count: int
    margin: Decimal
    margin_percent: Decimal


def contact_summary(contact) -> ContactSummary:
    """Revenue and profitability for a client (cancelled and draft invoices excluded)."""
    invoices = Invoice.objects.filter(contact=contact).exclude(
        state__in=[Invoice.State.DRAFT, Invoice.State.CANCELLED]
    )
    agg = invoices.aggregate(total=Sum("total"), paid=Sum("amount_paid"))
    invoiced = agg["total"] or Decimal("0.00")
    paid = agg["paid"] or Decimal("0.00")

    lines = InvoiceLine.objects.filter(invoice__in=invoices)
    margin = compute_margin(lines)

    return ContactSummary(
        invoiced=invoiced,
        paid=paid,
        outstanding=invoiced - paid,
        invoice_count=invoices.count(),
        quote_count=Quote.objects.filter(contact=contact).count(),
        margin=margin.margin,
        margin_percent=margin.margin_percent,
    )
