from django.conf import settings
from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.shortcuts import render

from core.permissions import get_organization
from crm.filters import ProspectFilter
from crm.models import Prospect, ProspectStatus
from crm.services.geocoding import search_addresses
from crm.services.map_markers import group_markers, markers_payload


def _filtered_prospects(request, organization):
    qs = (
        Prospect.objects
        .filter(organization=organization, latitude__isnull=False, longitude__isnull=False)
        .select_related("status")
        .order_by("pk")
    )
    return ProspectFilter(request.GET or None, queryset=qs, organization=organization)


@login_required
def prospect_map(request):
    organization = get_organization(request)
    prospect_filter = _filtered_prospects(request, organization)

    return render(request, "crm/prospect_map.html", {
        "filter": prospect_filter,
        "statuses": ProspectStatus.objects.filter(organization=organization, is_active=True),
        "map_center": settings.FACTURO_MAP_CENTER,
        "map_zoom": settings.FACTURO_MAP_ZOOM,
        "without_coordinates": Prospect.objects.filter(organization=organization, latitude__isnull=True).count(),
    })


@login_required
def markers_json(request):
    """Marker groups for the map; `selected` is the prospect id currently highlighted."""
    organization = get_organization(request)
    prospects = _filtered_prospects(request, organization).qs

    try:
        selected_id = int(request.GET["selected"])
    except (KeyError, ValueError):
        selected_id = None

    groups = group_markers(prospects)
    return JsonResponse({"markers": markers_payload(groups, selected_id)})


@login_required
def address_search_json(request):
    results = search_addresses(request.GET.get("q", ""), limit=5)
    return JsonResponse({
        "results": [
            {
                "label": r.label,
                "lat": r.latitude,
                "lng": r.longitude,
                "address": " ".join(p for p in (r.housenumber, r.street) if p),
                "postal_code": r.postal_code,
                "city": r.city,
            }
            for r in results
        ],
    })
