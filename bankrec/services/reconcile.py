import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from bankrec.models import BankTransaction
from documents.models import Payment
from documents.services.payments import record_payment, reverse_payment

logger = logging.getLogger(__name__)


def _lock(bank_transaction):
    tx = BankTransaction.objects.select_for_update().get(pk=bank_transaction.pk)
    if tx.is_reconciled:
        raise ValueError("Cette transaction est déjà rapprochée.")
    return tx


@transaction.atomic
def reconcile(bank_transaction, invoice=None, bill=None, by=None) -> BankTransaction:
    """Link a transaction to an invoice (credit) or a supplier bill (debit).

    The transaction amount is recorded as a payment on the document, which increments
    amount_paid and sets it paid or partially paid.
    """
    if invoice is None and bill is None:
        raise ValueError("Choisissez une facture ou une facture fournisseur.")
    if invoice is not None and bill is not None:
        raise ValueError("Une transaction se rapproche d'un seul document.")

    tx = _lock(bank_transaction)
    document = invoice or bill
    if document.organization_id != tx.organization_id:
        raise ValueError("Document d'une autre organisation.")

    if invoice is not None and tx.type != BankTransaction.Type.CREDIT:
        raise ValueError("Une facture client se rapproche d'un crédit.")
    if bill is not None and tx.type != BankTransaction.Type.DEBIT:
        raise ValueError("Une facture fournisseur se rapproche d'un débit.")

    payment = record_payment(
        document,
        tx.amount,
        date=tx.date,
        method=Payment.Method.BANK_TRANSFER,
        reference=tx.reference or tx.description[:255],
        notes="Rapprochement bancaire",
        by=by,
    )

    tx.is_reconciled = True
    tx.matched_invoice = invoice
    tx.matched_bill = bill
    tx.matched_payment = payment
    tx.reconciled_at = timezone.now()
    tx.reconciled_by = by
    tx.save()

    logger.info("Bank transaction %s reconciled with %s", tx.pk, document.number)
    return tx


@transaction.atomic
def mark_reconciled(bank_transaction, by=None) -> BankTransaction:
    """Reconcile without a document (bank fees, internal transfers...)."""
    tx = _lock(bank_transaction)
    tx.is_reconciled = True
    tx.reconciled_at = timezone.now()
    tx.reconciled_by = by
    tx.save()
    return tx


@transaction.atomic
def unreconcile(bank_transaction, by=None) -> BankTransaction:
    """Undo a reconciliation; the payment it created is reversed."""
    tx = BankTransaction.objects.select_for_update().get(pk=bank_transaction.pk)
    if not tx.is_reconciled:
        raise ValueError("Cette transaction n'est pas rapprochée.")

    payment = tx.matched_payment
    tx.is_reconciled = False
    tx.matched_invoice = None
    tx.matched_bill = None
    tx.matched_payment = None
    tx.reconciled_at = None
    tx.reconciled_by = None
    tx.save()

    if payment is not None:
        reverse_payment(payment, by=by)

    logger.info("Bank transaction %s unreconciled", tx.pk)
    return tx


@dataclass
class BankStats:
    unreconciled_count: int
    total_credits: Decimal
    total_debits: Decimal


def bank_stats(organization, bank_account=None) -> BankStats:
    qs = BankTransaction.objects.filter(organization=organization)
    if bank_account is not None:
        qs = qs.filter(bank_account=bank_account)

    agg = qs.aggregate(
        unreconciled=Count("id", filter=Q(is_reconciled=False)),
        credits=Sum("amount", filter=Q(type=BankTransaction.Type.CREDIT)),
        debits=Sum("amount", filter=Q(type=BankTransaction.Type.DEBIT)),
    )
    return BankStats(
        unreconciled_count=agg["unreconciled"] or 0,
        total_credits=agg["credits"] or Decimal("0.00"),
        total_debits=agg["debits"] or Decimal("0.00"),
    )
