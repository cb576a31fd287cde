import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.shortcuts import get_object_or_404, render, redirect
from django.views.decorators.http import require_POST

from bankrec.forms import BankAccountForm, BankTransactionForm, StatementImportForm, TransactionFilterForm
from bankrec.models import BankAccount, BankTransaction
from bankrec.services.importer import import_transactions
from bankrec.services.matching import suggest_matches
from bankrec.services.ofx import parse_bank_file
from bankrec.services.reconcile import bank_stats, mark_reconciled, reconcile, unreconcile
from core.permissions import get_organization, role_required
from documents.models import Bill, Invoice

logger = logging.getLogger(__name__)

BANK_ROLES = ("manager", "accountant")


@login_required
@role_required(*BANK_ROLES)
def transaction_list(request):
    organization = get_organization(request)
    filter_form = TransactionFilterForm(request.GET or None, organization=organization)

    qs = (
        BankTransaction.objects
        .filter(organization=organization)
        .select_related("bank_account", "matched_invoice", "matched_bill")
    )
    transactions = filter_form.apply(qs)

    return render(request, "bankrec/transaction_list.html", {
        "filter_form": filter_form,
        "transactions": transactions[:300],
        "stats": bank_stats(organization),
        "accounts": BankAccount.objects.filter(organization=organization, is_active=True),
        "import_form": StatementImportForm(organization=organization),
        "transaction_form": BankTransactionForm(organization=organization),
    })


@login_required
@role_required(*BANK_ROLES)
@require_POST
def statement_import(request):
    organization = get_organization(request)
    form = StatementImportForm(request.POST, request.FILES, organization=organization)

    if not form.is_valid():
        messages.error(request, f"Import impossible : {form.errors.as_text()}")
        return redirect("bankrec:transaction-list")

    upload = form.cleaned_data["file"]
    result = parse_bank_file(upload.name, upload.read())

    if not result.success:
        for error in result.errors:
            messages.error(request, error)
        return redirect("bankrec:transaction-list")

    imported = import_transactions(form.cleaned_data["bank_account"], result.transactions)
    messages.success(
        request,
        f"{imported.inserted} transaction(s) importée(s), {imported.skipped} doublon(s) ignoré(s).",
    )
    for error in result.errors:
        messages.warning(request, error)

    return redirect("bankrec:transaction-list")


@login_required
@role_required(*BANK_ROLES)
@require_POST
def transaction_create(request):
    organization = get_organization(request)
    form = BankTransactionForm(request.POST, organization=organization)

    if form.is_valid():
        form.save()
        messages.success(request, "Transaction ajoutée.")
    else:
        messages.error(request, f"Transaction invalide : {form.errors.as_text()}")

    return redirect("bankrec:transaction-list")


@login_required
@role_required(*BANK_ROLES)
@require_POST
def transaction_delete(request, pk):
    organization = get_organization(request)
    tx = get_object_or_404(BankTransaction, pk=pk, organization=organization)

    if tx.is_reconciled:
        messages.error(request, "Annulez le rapprochement avant de supprimer la transaction.")
    else:
        tx.delete()
        messages.success(request, "Transaction supprimée.")

    return redirect("bankrec:transaction-list")


@login_required
@role_required(*BANK_ROLES)
def reconcile_view(request, pk):
    organization = get_organization(request)
    tx = get_object_or_404(BankTransaction, pk=pk, organization=organization)

    if request.method == "POST":
        try:
            invoice = bill = None
            if request.POST.get("invoice_id"):
                invoice = get_object_or_404(Invoice, pk=request.POST["invoice_id"], organization=organization)
            elif request.POST.get("bill_id"):
                bill = get_object_or_404(Bill, pk=request.POST["bill_id"], organization=organization)

            if invoice is None and bill is None:
                mark_reconciled(tx, by=request.user)
                messages.success(request, "Transaction marquée comme rapprochée.")
            else:
                reconcile(tx, invoice=invoice, bill=bill, by=request.user)
                messages.success(request, f"Transaction rapprochée avec {(invoice or bill).number}.")
            return redirect("bankrec:transaction-list")
        except ValueError as e:
            messages.error(request, f"Rapprochement impossible : {e}")

    search = request.GET.get("q", "").strip()
    return render(request, "bankrec/reconcile.html", {
        "tx": tx,
        "search": search,
        "invoice_suggestions": suggest_matches(tx, model=Invoice, search=search),
        "bill_suggestions": suggest_matches(tx, model=Bill, search=search),
    })


@login_required
@role_required(*BANK_ROLES)
def suggestions_json(request, pk):
    organization = get_organization(request)
    tx = get_object_or_404(BankTransaction, pk=pk, organization=organization)
    search = request.GET.get("q", "").strip()

    def serialize(suggestion, kind):
        doc = suggestion.document
        return {
            "kind": kind,
            "id": doc.pk,
            "number": doc.number,
            "contact": doc.contact.display_name,
            "due_date": doc.due_date.isoformat() if doc.due_date else None,
            "remaining": str(suggestion.remaining),
            "score": suggestion.score,
        }

    return JsonResponse({
        "transaction": {"id": tx.pk, "amount": str(tx.amount), "type": tx.type, "date": tx.date.isoformat()},
        "invoices": [serialize(s, "invoice") for s in suggest_matches(tx, model=Invoice, search=search)],
        "bills": [serialize(s, "bill") for s in suggest_matches(tx, model=Bill, search=search)],
    })


@login_required
@role_required(*BANK_ROLES)
@require_POST
def transaction_unreconcile(request, pk):
    organization = get_organization(request)
    tx = get_object_or_404(BankTransaction, pk=pk, organization=organization)

    try:
        unreconcile(tx, by=request.user)
        messages.success(request, "Rapprochement annulé.")
    except ValueError as e:
        messages.error(request, f"Annulation impossible : {e}")

    return redirect("bankrec:transaction-list")


@login_required
@role_required("admin")
def bank_account_list(request):
    organization = get_organization(request)

    if request.method == "POST":
        form = BankAccountForm(request.POST)
        if form.is_valid():
            account = form.save(commit=False)
            account.organization = organization
            account.save()
            messages.success(request, f"Compte créé : {account.name}")
            return redirect("bankrec:account-list")
    else:
        form = BankAccountForm()

    accounts = BankAccount.objects.filter(organization=organization)
    return render(request, "bankrec/account_list.html", {
        "form": form,
        "accounts": [(a, bank_stats(organization, a)) for a in accounts],
    })
