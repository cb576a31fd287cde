from django.urls import reverse_lazy
from django.utils.translation import gettext_lazy as _


def admin_changelist(app_label: str, model: str):
    """
    model must be the lowercase model name used by Django admin url patterns.
    Examples:
      admin:documents_invoice_changelist
      admin:crm_prospect_changelist
    """
    return reverse_lazy(f"admin:{app_label}_{model}_changelist")


UNFOLD = {
    "SITE_HEADER": "Facturo",
    "SITE_TITLE": "Facturo",
    "SITE_URL": "/",

    "SIDEBAR": {
        "show_search": True,
        "show_all_applications": False,
        "navigation": [
            {
                "title": _("Organisation"),
                "separator": True,
                "collapsible": True,
                "items": [
                    {"title": _("Organisations"), "icon": "apartment", "link": admin_changelist("core", "organization")},
                    {"title": _("Profils"), "icon": "badge", "link": admin_changelist("core", "userprofile")},
                    {"title": _("Taux de TVA"), "icon": "percent", "link": admin_changelist("core", "taxrate")},
                    {"title": _("Numérotation"), "icon": "format_list_numbered", "link": admin_changelist("core", "numberseries")},
                ],
            },
            {
                "title": _("Ventes"),
                "collapsible": True,
                "items": [
                    {"title": _("Contacts"), "icon": "person", "link": admin_changelist("contacts", "contact")},
                    {"title": _("Articles"), "icon": "inventory_2", "link": admin_changelist("contacts", "item")},
                    {"title": _("Devis"), "icon": "request_quote", "link": admin_changelist("documents", "quote")},
                    {"title": _("Factures"), "icon": "receipt", "link": admin_changelist("documents", "invoice")},
                    {"title": _("Paiements"), "icon": "payments", "link": admin_changelist("documents", "payment")},
                ],
            },
            {
                "title": _("Achats & banque"),
                "collapsible": True,
                "items": [
                    {"title": _("Factures fournisseurs"), "icon": "description", "link": admin_changelist("documents", "bill")},
                    {"title": _("Comptes bancaires"), "icon": "account_balance", "link": admin_changelist("bankrec", "bankaccount")},
                    {"title": _("Transactions"), "icon": "swap_horiz", "link": admin_changelist("bankrec", "banktransaction")},
                ],
            },
            {
                "title": _("Prospection"),
                "collapsible": True,
                "items": [
                    {"title": _("Prospects"), "icon": "travel_explore", "link": admin_changelist("crm", "prospect")},
                    {"title": _("Statuts"), "icon": "tune", "link": admin_changelist("crm", "prospectstatus")},
                    {"title": _("Visites"), "icon": "directions_walk", "link": admin_changelist("crm", "prospectvisit")},
                    {"title": _("Rappels"), "icon": "alarm", "link": admin_changelist("reminders", "reminder")},
                    {"title": _("Règles de relance"), "icon": "rule", "link": admin_changelist("reminders", "autoreminderrule")},
                ],
            },
            {
                "title": _("Commissions"),
                "collapsible": True,
                "items": [
                    {"title": _("Règles"), "icon": "calculate", "link": admin_changelist("commissions", "commissionrule")},
                    {"title": _("Commissions"), "icon": "paid", "link": admin_changelist("commissions", "commission")},
                    {"title": _("Objectifs"), "icon": "flag", "link": admin_changelist("commissions", "commissiontarget")},
                ],
            },
            {
                "title": _("Utilisateurs"),
                "collapsible": True,
                "items": [
                    {"title": _("Utilisateurs"), "icon": "manage_accounts", "link": admin_changelist("auth", "user")},
                    {"title": _("Groupes"), "icon": "admin_panel_settings", "link": admin_changelist("auth", "group")},
                ],
            },
        ],
    },
}
