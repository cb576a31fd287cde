from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import HttpResponse
from django.shortcuts import get_object_or_404, render, redirect
from django.utils import timezone
from django.views.decorators.http import require_POST

from contacts.models import Contact
from core.permissions import get_organization
from documents.forms.document_forms import InvoiceForm, InvoiceLineFormSet, PaymentForm
from documents.forms.filters import DocumentFilterForm
from documents.models import Invoice, Payment
from documents.services.exports import invoices_to_csv
from documents.services.payments import record_payment, reverse_payment
from documents.views.common import get_filtered, run_transition, save_document

INVOICE_TRANSITIONS = ("send", "mark_viewed", "mark_overdue", "cancel")


@login_required
def invoice_list(request):
    organization = get_organization(request)
    filter_form, invoices = get_filtered(request, organization, Invoice, DocumentFilterForm)

    if request.GET.get("export") == "csv":
        response = HttpResponse(invoices_to_csv(invoices), content_type="text/csv; charset=utf-8")
        response["Content-Disposition"] = f'attachment; filename="factures_{timezone.localdate():%Y%m%d}.csv"'
        return response

    return render(request, "documents/invoice_list.html", {
        "filter_form": filter_form,
        "invoices": invoices[:200],
        "today": timezone.localdate(),
    })


@login_required
def invoice_create(request):
    organization = get_organization(request)

    if request.method == "POST":
        form = InvoiceForm(request.POST, organization=organization)
        formset = InvoiceLineFormSet(request.POST, form_kwargs={"organization": organization})

        if form.is_valid() and formset.is_valid():
            try:
                invoice = save_document(request, form, formset)
                messages.success(request, f"Facture {invoice.number} enregistrée.")
                return redirect("documents:invoice-detail", pk=invoice.pk)
            except ValueError as e:
                messages.error(request, f"Enregistrement impossible : {e}")
    else:
        initial = {"salesperson": request.user.pk}
        contact_id = request.GET.get("contact_id")
        if contact_id and Contact.objects.filter(pk=contact_id, organization=organization).exists():
            initial["contact"] = contact_id
        form = InvoiceForm(organization=organization, initial=initial)
        formset = InvoiceLineFormSet(form_kwargs={"organization": organization})

    return render(request, "documents/document_form.html", {
        "form": form,
        "formset": formset,
        "doc": None,
        "kind": "invoice",
    })


@login_required
def invoice_edit(request, pk):
    organization = get_organization(request)
    invoice = get_object_or_404(Invoice, pk=pk, organization=organization)

    if not invoice.is_editable:
        messages.error(request, "Une facture émise ne peut plus être modifiée.")
        return redirect("documents:invoice-detail", pk=invoice.pk)

    if request.method == "POST":
        form = InvoiceForm(request.POST, instance=invoice, organization=organization)
        formset = InvoiceLineFormSet(request.POST, instance=invoice, form_kwargs={"organization": organization})

        if form.is_valid() and formset.is_valid():
            try:
                save_document(request, form, formset)
                messages.success(request, "Facture mise à jour.")
                return redirect("documents:invoice-detail", pk=invoice.pk)
            except ValueError as e:
                messages.error(request, f"Mise à jour impossible : {e}")
    else:
        form = InvoiceForm(instance=invoice, organization=organization)
        formset = InvoiceLineFormSet(instance=invoice, form_kwargs={"organization": organization})

    return render(request, "documents/document_form.html", {
        "form": form,
        "formset": formset,
        "doc": invoice,
        "kind": "invoice",
    })


@login_required
def invoice_detail(request, pk):
    organization = get_organization(request)
    invoice = get_object_or_404(Invoice.objects.select_related("contact", "quote"), pk=pk, organization=organization)

    return render(request, "documents/invoice_detail.html", {
        "doc": invoice,
        "lines": invoice.lines.select_related("item"),
        "vat_rows": invoice.vat_breakdown(),
        "margin": invoice.margin(),
        "payments": invoice.payments.all(),
        "bank_transactions": invoice.bank_transactions.all(),
        "payment_form": PaymentForm(initial={"amount": invoice.remaining}),
    })


@login_required
@require_POST
def invoice_action(request, pk):
    organization = get_organization(request)
    invoice = get_object_or_404(Invoice, pk=pk, organization=organization)

    try:
        run_transition(invoice, request.POST.get("action", ""), INVOICE_TRANSITIONS, by=request.user)
        messages.success(request, f"Facture {invoice.number} : {invoice.get_state_display().lower()}.")
    except ValueError as e:
        messages.error(request, f"Action impossible : {e}")

    return redirect("documents:invoice-detail", pk=invoice.pk)


@login_required
@require_POST
def invoice_payment_add(request, pk):
    organization = get_organization(request)
    invoice = get_object_or_404(Invoice, pk=pk, organization=organization)

    form = PaymentForm(request.POST)
    if not form.is_valid():
        messages.error(request, f"Paiement invalide : {form.errors.as_text()}")
        return redirect("documents:invoice-detail", pk=invoice.pk)

    try:
        record_payment(invoice, by=request.user, **form.cleaned_data)
        messages.success(request, "Paiement enregistré.")
    except ValueError as e:
        messages.error(request, f"Paiement impossible : {e}")

    return redirect("documents:invoice-detail", pk=invoice.pk)


@login_required
@require_POST
def payment_delete(request, pk):
    organization = get_organization(request)
    payment = get_object_or_404(Payment, pk=pk, organization=organization)
    document = payment.document

    if payment.bank_transactions.exists():
        messages.error(request, "Ce paiement provient d'un rapprochement bancaire : annulez le rapprochement.")
    else:
        reverse_payment(payment, by=request.user)
        messages.success(request, "Paiement supprimé.")

    if payment.invoice_id:
        return redirect("documents:invoice-detail", pk=document.pk)
    return redirect("documents:bill-detail", pk=document.pk)


@login_required
@require_POST
def invoice_delete(request, pk):
    organization = get_organization(request)
    invoice = get_object_or_404(Invoice, pk=pk, organization=organization)

    if invoice.state != Invoice.State.DRAFT:
        messages.error(request, "Seule une facture brouillon peut être supprimée (annulez-la sinon).")
        return redirect("documents:invoice-detail", pk=invoice.pk)

    number = invoice.number
    invoice.delete()
    messages.success(request, f"Facture {number} supprimée.")
    return redirect("documents:invoice-list")
