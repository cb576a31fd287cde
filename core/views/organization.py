from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.shortcuts import render, redirect

from core.forms.organization_forms import OrganizationForm
from core.models import TaxRate
from core.permissions import get_organization, role_required


@login_required
@role_required("admin")
def organization_settings(request):
    organization = get_organization(request)

    if request.method == "POST":
        form = OrganizationForm(request.POST, instance=organization)
        if form.is_valid():
            form.save()
            messages.success(request, "Paramètres de l'organisation enregistrés.")
            return redirect("core:organization-settings")
    else:
        form = OrganizationForm(instance=organization)

    return render(request, "core/organization_settings.html", {
        "form": form,
        "tax_rates": TaxRate.objects.filter(organization=organization),
        "series": organization.number_series.all(),
    })
