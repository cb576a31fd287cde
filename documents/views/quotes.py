from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.shortcuts import get_object_or_404, render, redirect
from django.views.decorators.http import require_POST

from contacts.models import Contact
from core.permissions import get_organization
from documents.forms.document_forms import QuoteForm, QuoteLineFormSet
from documents.forms.filters import DocumentFilterForm
from documents.models import Quote
from documents.services.conversion import create_invoice_from_quote, duplicate_quote
from documents.views.common import get_filtered, run_transition, save_document

QUOTE_TRANSITIONS = ("send", "mark_viewed", "accept", "reject", "expire")


@login_required
def quote_list(request):
    organization = get_organization(request)
    filter_form, quotes = get_filtered(request, organization, Quote, DocumentFilterForm)

    return render(request, "documents/quote_list.html", {
        "filter_form": filter_form,
        "quotes": quotes[:200],
    })


@login_required
def quote_create(request):
    organization = get_organization(request)

    if request.method == "POST":
        form = QuoteForm(request.POST, organization=organization)
        formset = QuoteLineFormSet(request.POST, form_kwargs={"organization": organization})

        if form.is_valid() and formset.is_valid():
            try:
                quote = save_document(request, form, formset)
                messages.success(request, f"Devis {quote.number} enregistré.")
                return redirect("documents:quote-detail", pk=quote.pk)
            except ValueError as e:
                messages.error(request, f"Enregistrement impossible : {e}")
    else:
        initial = {"salesperson": request.user.pk}
        contact_id = request.GET.get("contact_id")
        if contact_id and Contact.objects.filter(pk=contact_id, organization=organization).exists():
            initial["contact"] = contact_id
        form = QuoteForm(organization=organization, initial=initial)
        formset = QuoteLineFormSet(form_kwargs={"organization": organization})

    return render(request, "documents/document_form.html", {
        "form": form,
        "formset": formset,
        "doc": None,
        "kind": "quote",
    })


@login_required
def quote_edit(request, pk):
    organization = get_organization(request)
    quote = get_object_or_404(Quote, pk=pk, organization=organization)

    if not quote.is_editable:
        messages.error(request, "Ce devis ne peut plus être modifié.")
        return redirect("documents:quote-detail", pk=quote.pk)

    if request.method == "POST":
        form = QuoteForm(request.POST, instance=quote, organization=organization)
        formset = QuoteLineFormSet(request.POST, instance=quote, form_kwargs={"organization": organization})

        if form.is_valid() and formset.is_valid():
            try:
                save_document(request, form, formset)
                messages.success(request, "Devis mis à jour.")
                return redirect("documents:quote-detail", pk=quote.pk)
            except ValueError as e:
                messages.error(request, f"Mise à jour impossible : {e}")
    else:
        form = QuoteForm(instance=quote, organization=organization)
        formset = QuoteLineFormSet(instance=quote, form_kwargs={"organization": organization})

    return render(request, "documents/document_form.html", {
        "form": form,
        "formset": formset,
        "doc": quote,
        "kind": "quote",
    })


@login_required
def quote_detail(request, pk):
    organization = get_organization(request)
    quote = get_object_or_404(Quote.objects.select_related("contact"), pk=pk, organization=organization)

    return render(request, "documents/quote_detail.html", {
        "doc": quote,
        "lines": quote.lines.select_related("item"),
        "vat_rows": quote.vat_breakdown(),
        "margin": quote.margin(),
    })


@login_required
@require_POST
def quote_action(request, pk):
    organization = get_organization(request)
    quote = get_object_or_404(Quote, pk=pk, organization=organization)
    action = request.POST.get("action", "")

    try:
        if action == "convert":
            invoice = create_invoice_from_quote(quote, by=request.user)
            messages.success(request, f"Facture {invoice.number} créée depuis le devis.")
            return redirect("documents:invoice-detail", pk=invoice.pk)

        if action == "duplicate":
            copy = duplicate_quote(quote, by=request.user)
            messages.success(request, f"Devis dupliqué : {copy.number}.")
            return redirect("documents:quote-detail", pk=copy.pk)

        run_transition(quote, action, QUOTE_TRANSITIONS, by=request.user)
        messages.success(request, f"Devis {quote.number} : {quote.get_state_display().lower()}.")
    except ValueError as e:
        messages.error(request, f"Action impossible : {e}")

    return redirect("documents:quote-detail", pk=quote.pk)


@login_required
@require_POST
def quote_delete(request, pk):
    organization = get_organization(request)
    quote = get_object_or_404(Quote, pk=pk, organization=organization)

    if quote.state != Quote.State.DRAFT:
        messages.error(request, "Seul un devis brouillon peut être supprimé.")
        return redirect("documents:quote-detail", pk=quote.pk)

    number = quote.number
    quote.delete()
    messages.success(request, f"Devis {number} supprimé.")
    return redirect("documents:quote-list")
