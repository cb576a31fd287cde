from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.shortcuts import get_object_or_404, render, redirect
from django.views.decorators.http import require_POST

from core.permissions import get_organization
from documents.forms.document_forms import BillForm, BillLineFormSet, PaymentForm
from documents.forms.filters import DocumentFilterForm
from documents.models import Bill
from documents.services.payments import record_payment
from documents.views.common import get_filtered, run_transition, save_document

BILL_TRANSITIONS = ("receive", "mark_overdue", "cancel")


@login_required
def bill_list(request):
    organization = get_organization(request)
    filter_form, bills = get_filtered(request, organization, Bill, DocumentFilterForm)

    return render(request, "documents/bill_list.html", {
        "filter_form": filter_form,
        "bills": bills[:200],
    })


@login_required
def bill_edit(request, pk=None):
    organization = get_organization(request)
    bill = get_object_or_404(Bill, pk=pk, organization=organization) if pk else None

    if bill is not None and not bill.is_editable:
        messages.error(request, "Cette facture fournisseur ne peut plus être modifiée.")
        return redirect("documents:bill-detail", pk=bill.pk)

    if request.method == "POST":
        form = BillForm(request.POST, instance=bill, organization=organization)
        formset = BillLineFormSet(request.POST, instance=bill, form_kwargs={"organization": organization})

        if form.is_valid() and formset.is_valid():
            try:
                bill = save_document(request, form, formset)
                messages.success(request, f"Facture fournisseur {bill.number} enregistrée.")
                return redirect("documents:bill-detail", pk=bill.pk)
            except ValueError as e:
                messages.error(request, f"Enregistrement impossible : {e}")
    else:
        form = BillForm(instance=bill, organization=organization)
        formset = BillLineFormSet(instance=bill, form_kwargs={"organization": organization})

    return render(request, "documents/document_form.html", {
        "form": form,
        "formset": formset,
        "doc": bill,
        "kind": "bill",
    })


@login_required
def bill_detail(request, pk):
    organization = get_organization(request)
    bill = get_object_or_404(Bill.objects.select_related("contact"), pk=pk, organization=organization)

    return render(request, "documents/bill_detail.html", {
        "doc": bill,
        "lines": bill.lines.all(),
        "vat_rows": bill.vat_breakdown(),
        "payments": bill.payments.all(),
        "payment_form": PaymentForm(initial={"amount": bill.remaining}),
    })


@login_required
@require_POST
def bill_action(request, pk):
    organization = get_organization(request)
    bill = get_object_or_404(Bill, pk=pk, organization=organization)

    try:
        run_transition(bill, request.POST.get("action", ""), BILL_TRANSITIONS, by=request.user)
        messages.success(request, f"Facture fournisseur {bill.number} : {bill.get_state_display().lower()}.")
    except ValueError as e:
        messages.error(request, f"Action impossible : {e}")

    return redirect("documents:bill-detail", pk=bill.pk)


@login_required
@require_POST
def bill_payment_add(request, pk):
    organization = get_organization(request)
    bill = get_object_or_404(Bill, pk=pk, organization=organization)

    form = PaymentForm(request.POST)
    if not form.is_valid():
        messages.error(request, f"Paiement invalide : {form.errors.as_text()}")
        return redirect("documents:bill-detail", pk=bill.pk)

    try:
        record_payment(bill, by=request.user, **form.cleaned_data)
        messages.success(request, "Paiement enregistré.")
    except ValueError as e:
        messages.error(request, f"Paiement impossible : {e}")

    return redirect("documents:bill-detail", pk=bill.pk)


@login_required
@require_POST
def bill_delete(request, pk):
    organization = get_organization(request)
    bill = get_object_or_404(Bill, pk=pk, organization=organization)

    if bill.state != Bill.State.DRAFT:
        messages.error(request, "Seule une facture fournisseur brouillon peut être supprimée.")
        return redirect("documents:bill-detail", pk=bill.pk)

    bill.delete()
    messages.success(request, "Facture fournisseur supprimée.")
    return redirect("documents:bill-list")
