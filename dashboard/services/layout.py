import copy

from dashboard.models import DashboardConfig

GRID_COLUMNS = 12

WIDGET_TYPES = {
    "revenue": "Chiffre d'affaires",
    "unpaid_invoices": "Factures impayées",
    "pending_quotes": "Devis en attente",
    "new_clients": "Nouveaux clients",
    "revenue_chart": "Évolution du CA",
    "prospect_kpis": "Prospection",
    "revenue_by_channel": "CA par canal",
    "activity_feed": "Activité récente",
    "reminders": "Rappels",
    "conversion_funnel": "Entonnoir de conversion",
    "commissions": "Commissions",
    "custom": "Personnalisé",
}


def _w(widget_id, widget_type, x, y, w, h, **config):
    return {"id": widget_id, "type": widget_type, "title": WIDGET_TYPES[widget_type], "x": x, "y": y, "w": w, "h": h, "config": config}


DEFAULT_LAYOUTS = {
    DashboardConfig.DashboardType.DEFAULT: [
        _w("w1", "revenue", 0, 0, 3, 2, period="month"),
        _w("w2", "unpaid_invoices", 3, 0, 3, 2),
        _w("w3", "pending_quotes", 6, 0, 3, 2),
        _w("w4", "new_clients", 9, 0, 3, 2, period="month"),
        _w("w5", "revenue_chart", 0, 2, 8, 4, months=12),
        _w("w6", "activity_feed", 8, 2, 4, 4, limit=10),
    ],
    DashboardConfig.DashboardType.COMMERCIAL: [
        _w("w1", "prospect_kpis", 0, 0, 6, 3),
        _w("w2", "conversion_funnel", 6, 0, 6, 3),
        _w("w3", "pending_quotes", 0, 3, 4, 2),
        _w("w4", "commissions", 4, 3, 4, 2),
        _w("w5", "reminders", 8, 3, 4, 3),
        _w("w6", "activity_feed", 0, 5, 8, 3, limit=10),
    ],
    DashboardConfig.DashboardType.FINANCE: [
        _w("w1", "revenue", 0, 0, 4, 2, period="month"),
        _w("w2", "unpaid_invoices", 4, 0, 4, 2),
        _w("w3", "revenue_by_channel", 8, 0, 4, 3),
        _w("w4", "revenue_chart", 0, 2, 8, 4, months=12),
        _w("w5", "activity_feed", 8, 3, 4, 3, limit=5),
    ],
}


def default_widgets(dashboard_type=DashboardConfig.DashboardType.DEFAULT) -> list:
    layout = DEFAULT_LAYOUTS.get(dashboard_type, DEFAULT_LAYOUTS[DashboardConfig.DashboardType.DEFAULT])
    return copy.deepcopy(layout)


def get_config(user, organization, dashboard_type=DashboardConfig.DashboardType.DEFAULT) -> DashboardConfig:
    """The user's saved layout, else the organization default for the type, else the built-in one.

    The returned object is unsaved unless the user already has a layout.
    """
    config = DashboardConfig.objects.filter(organization=organization, user=user, dashboard_type=dashboard_type).first()
    if config is not None:
        return config

    template = DashboardConfig.objects.filter(
        organization=organization, dashboard_type=dashboard_type, is_default=True,
    ).first()
    widgets = copy.deepcopy(template.widgets) if template else default_widgets(dashboard_type)
    return DashboardConfig(organization=organization, user=user, dashboard_type=dashboard_type, widgets=widgets)


def _non_negative_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_widgets(widgets) -> list:
    if not isinstance(widgets, list):
        raise ValueError("La disposition doit être une liste de widgets.")

    cleaned = []
    seen = set()
    for n, widget in enumerate(widgets, start=1):
        if not isinstance(widget, dict):
            raise ValueError(f"Widget {n} : format invalide.")

        widget_id = str(widget.get("id") or "").strip()
        if not widget_id:
            raise ValueError(f"Widget {n} : identifiant manquant.")
        if widget_id in seen:
            raise ValueError(f"Widget {n} : identifiant « {widget_id} » en double.")
        seen.add(widget_id)

        widget_type = widget.get("type")
        if widget_type not in WIDGET_TYPES:
            raise ValueError(f"Widget {n} : type « {widget_type} » inconnu.")

        x, y, w, h = (widget.get(k) for k in ("x", "y", "w", "h"))
        if not (_non_negative_int(x) and _non_negative_int(y)):
            raise ValueError(f"Widget {n} : position invalide.")
        if not (_non_negative_int(w) and _non_negative_int(h)) or w == 0 or h == 0:
            raise ValueError(f"Widget {n} : taille invalide.")
        if x + w > GRID_COLUMNS:
            raise ValueError(f"Widget {n} : dépasse la grille de {GRID_COLUMNS} colonnes.")

        config = widget.get("config") or {}
        if not isinstance(config, dict):
            raise ValueError(f"Widget {n} : configuration invalide.")

        cleaned.append({
            "id": widget_id,
            "type": widget_type,
            "title": str(widget.get("title") or WIDGET_TYPES[widget_type])[:100],
            "x": x,
            "y": y,
            "w": w,
            "h": h,
            "config": config,
        })
    return cleaned


def save_widgets(config, widgets) -> DashboardConfig:
    config.widgets = validate_widgets(widgets)
    config.save()
    return config


def reset_widgets(config) -> DashboardConfig:
    config.widgets = default_widgets(config.dashboard_type)
    if config.pk:
        config.save(update_fields=["widgets", "updated_at"])
    return config
