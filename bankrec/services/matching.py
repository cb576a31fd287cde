"""Suggest invoices/bills for a bank transaction.

Score (0-80): amount closeness (up to 50) + date closeness to the due date (up to 30).
"""

from dataclasses import dataclass
from decimal import Decimal

from django.db.models import Q

from documents.models import Bill, Invoice

AMOUNT_SCORES = (
    (Decimal("0.01"), 40),
    (Decimal("0.05"), 20),
    (Decimal("0.10"), 10),
)

DATE_SCORES = (
    (1, 30),
    (7, 20),
    (30, 10),
)


def match_score(tx_amount, tx_date, doc_amount, doc_date) -> int:
    score = 0

    diff = abs(Decimal(tx_amount) - Decimal(doc_amount))
    if diff < Decimal("0.01"):
        score += 50
    elif tx_amount:
        ratio = diff / abs(Decimal(tx_amount))
        for limit, points in AMOUNT_SCORES:
            if ratio < limit:
                score += points
                break

    if doc_date is not None:
        days = abs((tx_date - doc_date).days)
        for limit, points in DATE_SCORES:
            if days <= limit:
                score += points
                break

    return score


@dataclass
class Suggestion:
    document: object
    remaining: Decimal
    score: int


def open_documents(model, organization, search=""):
    qs = (
        model.objects
        .filter(organization=organization)
        .exclude(state__in=[model.State.PAID, model.State.CANCELLED])
        .select_related("contact")
    )
    if search:
        qs = qs.filter(
            Q(number__icontains=search)
            | Q(contact__company_name__icontains=search)
            | Q(contact__first_name__icontains=search)
            | Q(contact__last_name__icontains=search)
        )
    return [doc for doc in qs if doc.remaining > 0]


def suggest_matches(bank_transaction, model=None, search="", limit=20) -> list:
    """Open invoices for a credit, open bills for a debit (or `model`), best score first."""
    if model is None:
        model = Invoice if bank_transaction.type == bank_transaction.Type.CREDIT else Bill

    suggestions = [
        Suggestion(
            document=doc,
            remaining=doc.remaining,
            score=match_score(bank_transaction.amount, bank_transaction.date, doc.remaining, doc.due_date),
        )
        for doc in open_documents(model, bank_transaction.organization, search)
    ]
    suggestions.sort(key=lambda s: (-s.score, s.document.due_date or s.document.date))
    return suggestions[:limit]
