"""Data behind each dashboard widget type."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from django.db.models import Count, F, Sum
from django.db.models.functions import TruncMonth
from django.utils import timezone

from commissions.services import commission_stats
from contacts.models import Contact
from core.permissions import user_has_role
from crm.models import Prospect
from crm.services.pipeline import prospect_kpis
from documents.models import Invoice, Quote
from reminders.services import due_reminders

ZERO = Decimal("0.00")

REVENUE_EXCLUDED_STATES = (Invoice.State.DRAFT, Invoice.State.CANCELLED)


def _month_start(day: date, months_back=0) -> date:
    month = day.month - months_back
    year = day.year
    while month <= 0:
        month += 12
        year -= 1
    return date(year, month, 1)


def _invoiced(organization):
    return Invoice.objects.filter(organization=organization).exclude(state__in=REVENUE_EXCLUDED_STATES)


@dataclass
class AmountCount:
    amount: Decimal
    count: int


def revenue(organization, today):
    """Invoiced HT this month and last month."""
    this_month = _month_start(today)
    last_month = _month_start(today, 1)
    qs = _invoiced(organization)
    current = qs.filter(date__gte=this_month, date__lte=today).aggregate(s=Sum("subtotal"))["s"] or ZERO
    previous = qs.filter(date__gte=last_month, date__lt=this_month).aggregate(s=Sum("subtotal"))["s"] or ZERO
    change = ((current - previous) * 100 / previous).quantize(Decimal("0.1")) if previous else None
    return {"current": current, "previous": previous, "change_percent": change}


def unpaid_invoices(organization, today):
    qs = Invoice.objects.filter(organization=organization, state__in=Invoice.OPEN_STATES)
    totals = qs.aggregate(total=Sum("total"), paid=Sum("amount_paid"), n=Count("id"))
    overdue = qs.filter(due_date__lt=today).aggregate(total=Sum("total"), paid=Sum("amount_paid"), n=Count("id"))
    return {
        "unpaid": AmountCount((totals["total"] or ZERO) - (totals["paid"] or ZERO), totals["n"]),
        "overdue": AmountCount((overdue["total"] or ZERO) - (overdue["paid"] or ZERO), overdue["n"]),
    }


def pending_quotes(organization, today):
    qs = Quote.objects.filter(organization=organization, state__in=[Quote.State.SENT, Quote.State.VIEWED])
    totals = qs.aggregate(total=Sum("total"), n=Count("id"))
    return AmountCount(totals["total"] or ZERO, totals["n"])


def new_clients(organization, today):
    start = _month_start(today)
    return Contact.objects.filter(organization=organization, created_at__date__gte=start).clients().count()


def revenue_chart(organization, today, months=12):
    """[(first day of month, HT amount)] for the last `months` months, oldest first."""
    start = _month_start(today, months - 1)
    rows = (
        _invoiced(organization)
        .filter(date__gte=start, date__lte=today)
        .annotate(month=TruncMonth("date"))
        .values("month")
        .annotate(amount=Sum("subtotal"))
    )
    by_month = {r["month"]: r["amount"] for r in rows}
    series = []
    for back in range(months - 1, -1, -1):
        month = _month_start(today, back)
        series.append((month, by_month.get(month, ZERO)))
    return series


def revenue_by_channel(organization, today):
    """Invoiced HT this year grouped by the source of the prospect the client came from."""
    rows = (
        _invoiced(organization)
        .filter(date__year=today.year)
        .annotate(channel=F("contact__prospects__source"))
        .values("channel")
        .annotate(amount=Sum("subtotal"))
        .order_by("-amount")
    )
    return [(r["channel"] or "Direct", r["amount"] or ZERO) for r in rows]


def activity_feed(organization, limit=10):
    """Latest changes to quotes, invoices and prospects, from their history tables."""
    events = []
    sources = (
        (Quote.history, "Devis", "number"),
        (Invoice.history, "Facture", "number"),
        (Prospect.history, "Prospect", "company_name"),
    )
    for manager, label, name_field in sources:
        for h in manager.filter(organization=organization).select_related("history_user")[:limit]:
            events.append({
                "at": h.history_date,
                "user": h.history_user,
                "kind": label,
                "name": getattr(h, name_field),
                "action": {"+": "créé", "~": "modifié", "-": "supprimé"}[h.history_type],
                "state": getattr(h, "state", ""),
            })
    events.sort(key=lambda e: e["at"], reverse=True)
    return events[:limit]


def widget_data(widget, user, organization, today=None):
    """Context for one widget dict of a layout."""
    today = today or timezone.localdate()
    config = widget.get("config") or {}
    kind = widget["type"]

    if kind == "revenue":
        return revenue(organization, today)
    if kind == "unpaid_invoices":
        return unpaid_invoices(organization, today)
    if kind == "pending_quotes":
        return pending_quotes(organization, today)
    if kind == "new_clients":
        return new_clients(organization, today)
    if kind == "revenue_chart":
        return revenue_chart(organization, today, months=int(config.get("months", 12)))
    if kind == "revenue_by_channel":
        return revenue_by_channel(organization, today)
    if kind == "activity_feed":
        return activity_feed(organization, limit=int(config.get("limit", 10)))
    if kind == "reminders":
        return due_reminders(user).select_related("prospect", "contact")[:10]
    if kind in ("prospect_kpis", "conversion_funnel"):
        return prospect_kpis(organization)
    if kind == "commissions":
        own = not user_has_role(user, "manager", "accountant")
        return commission_stats(organization, user=user if own else None, today=today)
    return config


def dashboard_widgets(config, user, organization, today=None):
    """[(widget, data)] sorted by grid position (top to bottom, left to right)."""
    widgets = sorted(config.widgets, key=lambda w: (w.get("y", 0), w.get("x", 0)))
    return [(w, widget_data(w, user, organization, today)) for w in widgets]
