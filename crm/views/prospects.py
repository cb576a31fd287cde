import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.shortcuts import get_object_or_404, render, redirect
from django.views.decorators.http import require_POST

from core.permissions import get_organization
from crm.filters import ProspectFilter
from crm.forms import ProspectContactForm, ProspectForm, ProspectNoteForm, ProspectVisitForm
from crm.models import Prospect, ProspectContact, ProspectStatus
from crm.services.duplicates import find_duplicates
from crm.services.geocoding import geocode_prospect
from crm.services.pipeline import change_status, convert_to_client, prospect_kpis, record_visit
from crm.services.statuses import default_status

logger = logging.getLogger(__name__)


def _activity(prospect, limit=30):
    """History rows, visits and notes merged newest first."""
    events = []
    for h in prospect.history.select_related("history_user", "status")[:limit]:
        label = {"+": "Création", "~": "Modification", "-": "Suppression"}[h.history_type]
        if h.prev_record is not None and h.prev_record.status_id != h.status_id:
            label = f"Statut : {h.status.name if h.status_id else '-'}"
        events.append({"at": h.history_date, "user": h.history_user, "label": label, "kind": "history"})
    for v in prospect.visits.select_related("visited_by", "status_after")[:limit]:
        events.append({"at": v.visited_at, "user": v.visited_by, "label": f"Visite : {v.notes[:80]}", "kind": "visit"})
    for n in prospect.prospect_notes.select_related("author")[:limit]:
        events.append({"at": n.created_at, "user": n.author, "label": n.content[:120], "kind": "note"})
    events.sort(key=lambda e: e["at"], reverse=True)
    return events[:limit]


@login_required
def prospect_list(request):
    organization = get_organization(request)

    qs = (
        Prospect.objects
        .filter(organization=organization)
        .select_related("status", "assigned_to", "contact")
    )
    prospect_filter = ProspectFilter(request.GET or None, queryset=qs, organization=organization)

    return render(request, "crm/prospect_list.html", {
        "filter": prospect_filter,
        "prospects": prospect_filter.qs[:500],
        "statuses": ProspectStatus.objects.filter(organization=organization, is_active=True),
        "kpis": prospect_kpis(organization),
    })


@login_required
def prospect_create(request):
    organization = get_organization(request)
    duplicates = []

    if request.method == "POST":
        form = ProspectForm(request.POST, organization=organization)
        if form.is_valid():
            if not form.cleaned_data.get("confirm_duplicate"):
                duplicates = find_duplicates(
                    organization,
                    company_name=form.cleaned_data["company_name"],
                    siret=form.cleaned_data["siret"],
                )

            if not duplicates:
                prospect = form.save(commit=False)
                prospect.created_by = request.user
                if prospect.status_id is None:
                    prospect.status = default_status(organization)
                prospect.save()
                messages.success(request, f"Prospect créé : {prospect.company_name}")
                return redirect("crm:prospect-detail", pk=prospect.pk)

            # second submit goes through
            form.data = form.data.copy()
            form.data["confirm_duplicate"] = "on"
            messages.warning(request, "Des prospects similaires existent déjà. Confirmez pour créer quand même.")
    else:
        form = ProspectForm(organization=organization, initial={"status": default_status(organization)})

    return render(request, "crm/prospect_form.html", {
        "form": form,
        "duplicates": duplicates,
        "prospect": None,
    })


@login_required
def prospect_edit(request, pk):
    organization = get_organization(request)
    prospect = get_object_or_404(Prospect, pk=pk, organization=organization)
    address_before = (prospect.address_line1, prospect.postal_code, prospect.city)

    if request.method == "POST":
        form = ProspectForm(request.POST, instance=prospect, organization=organization)
        if form.is_valid():
            prospect = form.save()
            moved = (prospect.address_line1, prospect.postal_code, prospect.city) != address_before
            if moved and "latitude" not in form.changed_data:
                geocode_prospect(prospect)
            messages.success(request, "Prospect mis à jour.")
            return redirect("crm:prospect-detail", pk=prospect.pk)
    else:
        form = ProspectForm(instance=prospect, organization=organization)

    return render(request, "crm/prospect_form.html", {
        "form": form,
        "duplicates": [],
        "prospect": prospect,
    })


@login_required
def prospect_detail(request, pk):
    organization = get_organization(request)
    prospect = get_object_or_404(
        Prospect.objects.select_related("status", "assigned_to", "contact"),
        pk=pk,
        organization=organization,
    )

    return render(request, "crm/prospect_detail.html", {
        "prospect": prospect,
        "contacts": prospect.contacts.all(),
        "visits": prospect.visits.select_related("visited_by", "status_before", "status_after")[:50],
        "notes": prospect.prospect_notes.select_related("author")[:50],
        "quotes": prospect.quotes.order_by("-date")[:20],
        "activity": _activity(prospect),
        "statuses": ProspectStatus.objects.filter(organization=organization, is_active=True),
        "visit_form": ProspectVisitForm(organization=organization, initial={"status_after": prospect.status_id}),
        "contact_form": ProspectContactForm(),
        "note_form": ProspectNoteForm(),
    })


@login_required
@require_POST
def prospect_delete(request, pk):
    organization = get_organization(request)
    prospect = get_object_or_404(Prospect, pk=pk, organization=organization)
    name = prospect.company_name
    prospect.delete()
    messages.success(request, f"Prospect supprimé : {name}")
    return redirect("crm:prospect-list")


@login_required
@require_POST
def prospect_status(request, pk):
    organization = get_organization(request)
    prospect = get_object_or_404(Prospect, pk=pk, organization=organization)
    status = get_object_or_404(ProspectStatus, pk=request.POST.get("status"), organization=organization)

    change_status(prospect, status)
    messages.success(request, f"Statut : {status.name}")
    next_url = request.POST.get("next", "")
    if next_url.startswith("/"):
        return redirect(next_url)
    return redirect("crm:prospect-detail", pk=prospect.pk)


@login_required
@require_POST
def visit_add(request, pk):
    organization = get_organization(request)
    prospect = get_object_or_404(Prospect, pk=pk, organization=organization)
    form = ProspectVisitForm(request.POST, organization=organization)

    if form.is_valid():
        data = form.cleaned_data
        try:
            record_visit(
                prospect,
                by=request.user,
                status_after=data["status_after"],
                visited_at=data["visited_at"],
                notes=data["notes"],
                next_action=data["next_action"],
                next_action_date=data["next_action_date"],
                duration_minutes=data["duration_minutes"],
            )
            messages.success(request, "Visite enregistrée.")
        except ValueError as e:
            messages.error(request, f"Visite non enregistrée : {e}")
    else:
        messages.error(request, f"Visite invalide : {form.errors.as_text()}")

    return redirect("crm:prospect-detail", pk=prospect.pk)


@login_required
@require_POST
def contact_add(request, pk):
    organization = get_organization(request)
    prospect = get_object_or_404(Prospect, pk=pk, organization=organization)
    form = ProspectContactForm(request.POST)

    if form.is_valid():
        contact = form.save(commit=False)
        contact.prospect = prospect
        contact.save()
        if contact.is_primary:
            prospect.contacts.exclude(pk=contact.pk).update(is_primary=False)
        messages.success(request, f"Interlocuteur ajouté : {contact.name}")
    else:
        messages.error(request, f"Interlocuteur invalide : {form.errors.as_text()}")

    return redirect("crm:prospect-detail", pk=prospect.pk)


@login_required
@require_POST
def contact_delete(request, pk, contact_pk):
    organization = get_organization(request)
    contact = get_object_or_404(ProspectContact, pk=contact_pk, prospect_id=pk, prospect__organization=organization)
    contact.delete()
    messages.success(request, "Interlocuteur supprimé.")
    return redirect("crm:prospect-detail", pk=pk)


@login_required
@require_POST
def note_add(request, pk):
    organization = get_organization(request)
    prospect = get_object_or_404(Prospect, pk=pk, organization=organization)
    form = ProspectNoteForm(request.POST)

    if form.is_valid():
        note = form.save(commit=False)
        note.prospect = prospect
        note.author = request.user
        note.save()
        messages.success(request, "Note ajoutée.")
    else:
        messages.error(request, "La note est vide.")

    return redirect("crm:prospect-detail", pk=prospect.pk)


@login_required
@require_POST
def prospect_convert(request, pk):
    organization = get_organization(request)
    prospect = get_object_or_404(Prospect, pk=pk, organization=organization)

    try:
        contact = convert_to_client(prospect, by=request.user)
    except ValueError as e:
        messages.error(request, f"Conversion impossible : {e}")
        return redirect("crm:prospect-detail", pk=prospect.pk)

    messages.success(request, f"{contact.display_name} est maintenant client.")
    return redirect("contacts:contact-detail", pk=contact.pk)


@login_required
@require_POST
def prospect_geocode(request, pk):
    organization = get_organization(request)
    prospect = get_object_or_404(Prospect, pk=pk, organization=organization)

    if geocode_prospect(prospect):
        messages.success(request, f"Coordonnées trouvées : {prospect.latitude:.5f}, {prospect.longitude:.5f}")
    else:
        messages.error(request, "Adresse introuvable.")
    return redirect("crm:prospect-detail", pk=prospect.pk)


@login_required
def duplicates_json(request):
    organization = get_organization(request)
    matches = find_duplicates(
        organization,
        company_name=request.GET.get("company_name", ""),
        siret=request.GET.get("siret", ""),
        exclude_id=request.GET.get("exclude") or None,
    )
    return JsonResponse({
        "duplicates": [
            {
                "id": m.prospect.pk,
                "company_name": m.prospect.company_name,
                "siret": m.prospect.siret,
                "city": m.prospect.city,
                "status": m.prospect.status.name if m.prospect.status_id else "",
                "reason": m.reason,
                "distance": m.distance,
            }
            for m in matches[:10]
        ],
    })
