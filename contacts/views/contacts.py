from urllib.parse import urlparse, parse_qsl, urlencode, urlunparse

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.db.models.deletion import ProtectedError
from django.shortcuts import get_object_or_404, render, redirect
from django.views.decorators.http import require_POST

from contacts.filters import ContactFilter
from contacts.forms.contact_forms import ContactForm
from contacts.models import Contact
from contacts.services import contact_summary
from core.permissions import get_organization


def _add_query_param(url: str, key: str, value: str) -> str:
    """Return url with ?key=value added/replaced (works with existing querystring)."""
    parts = urlparse(url)
    qs = dict(parse_qsl(parts.query, keep_blank_values=True))
    qs[key] = str(value)
    new_query = urlencode(qs)
    return urlunparse((parts.scheme, parts.netloc, parts.path, parts.params, new_query, parts.fragment))


@login_required
def contact_list(request):
    organization = get_organization(request)
    next_url = request.POST.get("next") or request.GET.get("next")

    if request.method == "POST":
        form = ContactForm(request.POST, organization=organization)
        if form.is_valid():
            contact = form.save()
            messages.success(request, f"Contact créé : {contact.display_name}")

            if next_url:
                # lets the quote/invoice form preselect the new contact
                return redirect(_add_query_param(next_url, "contact_id", contact.pk))

            return redirect("contacts:contact-list")
    else:
        form = ContactForm(organization=organization)

    qs = Contact.objects.filter(organization=organization).prefetch_related("tags")
    contact_filter = ContactFilter(request.GET or None, queryset=qs)

    return render(request, "contacts/contact_list.html", {
        "form": form,
        "filter": contact_filter,
        "contacts": contact_filter.qs[:500],
        "next": next_url,
    })


@login_required
def contact_detail(request, pk):
    organization = get_organization(request)
    contact = get_object_or_404(Contact, pk=pk, organization=organization)

    return render(request, "contacts/contact_detail.html", {
        "contact": contact,
        "summary": contact_summary(contact),
        "quotes": contact.quotes.order_by("-date")[:20],
        "invoices": contact.invoices.order_by("-date")[:20],
    })


@login_required
def contact_edit(request, pk):
    organization = get_organization(request)
    contact = get_object_or_404(Contact, pk=pk, organization=organization)

    if request.method == "POST":
        form = ContactForm(request.POST, instance=contact, organization=organization)
        if form.is_valid():
            form.save()
            messages.success(request, "Contact mis à jour.")
            return redirect("contacts:contact-detail", pk=contact.pk)
    else:
        form = ContactForm(instance=contact, organization=organization)

    return render(request, "contacts/contact_form.html", {"form": form, "contact": contact})


@login_required
@require_POST
def contact_delete(request, pk):
    organization = get_organization(request)
    contact = get_object_or_404(Contact, pk=pk, organization=organization)
    name = contact.display_name

    try:
        contact.delete()
        messages.success(request, f"Contact supprimé : {name}")
    except ProtectedError:
        messages.error(request, "Suppression impossible : ce contact est utilisé par des documents.")
        return redirect("contacts:contact-detail", pk=pk)

    return redirect("contacts:contact-list")
