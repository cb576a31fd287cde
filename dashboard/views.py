import json
import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import HttpResponseBadRequest, JsonResponse
from django.shortcuts import render, redirect
from django.urls import reverse
from django.views.decorators.http import require_POST

from core.permissions import get_organization
from dashboard.models import DashboardConfig
from dashboard.services.layout import WIDGET_TYPES, get_config, reset_widgets, save_widgets
from dashboard.services.widgets import dashboard_widgets

logger = logging.getLogger(__name__)


def _dashboard_type(value):
    return value if value in DashboardConfig.DashboardType.values else DashboardConfig.DashboardType.DEFAULT


@login_required
def home(request):
    organization = get_organization(request)
    dashboard_type = _dashboard_type(request.GET.get("type"))
    config = get_config(request.user, organization, dashboard_type)

    return render(request, "dashboard/home.html", {
        "config": config,
        "dashboard_type": dashboard_type,
        "dashboard_types": DashboardConfig.DashboardType.choices,
        "widgets": dashboard_widgets(config, request.user, organization),
        "widget_types": WIDGET_TYPES,
        "layout_json": json.dumps(config.widgets),
    })


@login_required
@require_POST
def save_layout(request):
    """JSON body: {"type": "default", "widgets": [...]}."""
    organization = get_organization(request)

    try:
        payload = json.loads(request.body or b"{}")
    except ValueError:
        return HttpResponseBadRequest("JSON invalide")
    if not isinstance(payload, dict):
        return HttpResponseBadRequest("JSON invalide")

    config = get_config(request.user, organization, _dashboard_type(payload.get("type")))
    try:
        save_widgets(config, payload.get("widgets"))
    except ValueError as e:
        return JsonResponse({"ok": False, "error": str(e)}, status=400)

    logger.info("Dashboard %s saved for %s (%d widgets)", config.dashboard_type, request.user, len(config.widgets))
    return JsonResponse({"ok": True, "widgets": config.widgets})


@login_required
@require_POST
def reset_layout(request):
    organization = get_organization(request)
    dashboard_type = _dashboard_type(request.POST.get("type"))
    reset_widgets(get_config(request.user, organization, dashboard_type))
    messages.success(request, "Tableau de bord réinitialisé.")
    return redirect(f"{reverse('dashboard:home')}?type={dashboard_type}")
