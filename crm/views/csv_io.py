from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import HttpResponse
from django.shortcuts import render, redirect
from django.utils import timezone

from core.permissions import get_organization
from crm.filters import ProspectFilter
from crm.forms import ProspectImportForm
from crm.models import Prospect
from crm.services.csv_io import csv_template, import_prospects_csv, prospects_to_csv


def _csv_response(content, filename):
    response = HttpResponse(content, content_type="text/csv; charset=utf-8")
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response


@login_required
def prospect_export(request):
    organization = get_organization(request)
    qs = Prospect.objects.filter(organization=organization).select_related("status")
    prospects = ProspectFilter(request.GET or None, queryset=qs, organization=organization).qs

    if not prospects.exists():
        messages.error(request, "Aucun prospect à exporter.")
        return redirect("crm:prospect-list")

    return _csv_response(prospects_to_csv(prospects), f"prospects_{timezone.localdate():%Y-%m-%d}.csv")


@login_required
def prospect_template(request):
    return _csv_response(csv_template(), "modele_prospects.csv")


@login_required
def prospect_import(request):
    organization = get_organization(request)
    result = None

    if request.method == "POST":
        form = ProspectImportForm(request.POST, request.FILES)
        if form.is_valid():
            raw = form.cleaned_data["file"].read()
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError:
                text = raw.decode("cp1252")

            try:
                result = import_prospects_csv(organization, text, by=request.user)
                messages.success(
                    request,
                    f"{result.success} prospect(s) importé(s), {result.duplicates} doublon(s), {result.errors} erreur(s).",
                )
            except ValueError as e:
                messages.error(request, f"Import impossible : {e}")
    else:
        form = ProspectImportForm()

    return render(request, "crm/prospect_import.html", {"form": form, "result": result})
