import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from documents.models import Bill, Invoice, Payment
from documents.services.totals import q2

logger = logging.getLogger(__name__)


def _document_kwargs(document) -> dict:
    if isinstance(document, Invoice):
        return {"invoice": document}
    if isinstance(document, Bill):
        return {"bill": document}
    raise ValueError("Seules les factures et factures fournisseurs acceptent des paiements.")


@transaction.atomic
def record_payment(document, amount, *, date=None, method=Payment.Method.BANK_TRANSFER,
                   reference="", notes="", by=None) -> Payment:
    """Record a payment and derive the document status from the new amount_paid.

    amount_paid += amount; paid when amount_paid >= total, partially paid when > 0.
    The passed `document` instance is not refreshed: re-read it from the database.
    """
    amount = q2(amount)
    if amount <= 0:
        raise ValueError("Le montant du paiement doit être positif.")

    doc = type(document).objects.select_for_update().get(pk=document.pk)
    if doc.state == doc.State.CANCELLED:
        raise ValueError("Impossible d'enregistrer un paiement sur un document annulé.")

    payment = Payment.objects.create(
        organization=doc.organization,
        amount=amount,
        date=date or timezone.localdate(),
        method=method,
        reference=reference,
        notes=notes,
        created_by=by,
        **_document_kwargs(doc),
    )

    was_paid = doc.state == doc.State.PAID
    doc.amount_paid = q2(doc.amount_paid + amount)
    doc.sync_payment_state(by=by)
    doc.save()

    logger.info("Payment of %s recorded on %s %s (state=%s)", amount, doc._meta.model_name, doc.number, doc.state)

    if isinstance(doc, Invoice) and doc.state == Invoice.State.PAID and not was_paid and doc.salesperson_id:
        from commissions.services import create_commission_for_invoice

        create_commission_for_invoice(doc, doc.salesperson)

    return payment


@transaction.atomic
def reverse_payment(payment, by=None):
    """Remove a payment and put amount_paid and the status back."""
    document = payment.document
    doc = type(document).objects.select_for_update().get(pk=document.pk)
    was_paid = doc.state == doc.State.PAID

    doc.amount_paid = max(q2(doc.amount_paid - payment.amount), Decimal("0.00"))
    payment.delete()

    doc.sync_payment_state(by=by)
    doc.save()

    logger.info("Payment of %s reversed on %s %s (state=%s)", payment.amount, doc._meta.model_name, doc.number, doc.state)

    if isinstance(doc, Invoice) and was_paid and doc.state != Invoice.State.PAID:
        from commissions.services import cancel_pending_commissions

        cancel_pending_commissions(doc, by=by)

    return doc
