from django.urls import reverse

NAVIGATION = (
    ("Tableau de bord", "dashboard:home"),
    ("Contacts", "contacts:contact-list"),
    ("Articles", "contacts:item-list"),
    ("Devis", "documents:quote-list"),
    ("Factures", "documents:invoice-list"),
    ("Achats", "documents:bill-list"),
    ("Banque", "bankrec:transaction-list"),
    ("Prospects", "crm:prospect-list"),
    ("Carte", "crm:prospect-map"),
    ("Rappels", "reminders:reminder-list"),
    ("Commissions", "commissions:commission-list"),
)


def base_context(request):
    if not request.user.is_authenticated:
        return {}

    profile = getattr(request.user, "profile", None)
    if profile is None:
        return {"menus": []}

    from reminders.models import Notification
    from reminders.services import due_reminders

    return {
        "menus": [{"title": title, "url": reverse(name)} for title, name in NAVIGATION],
        "organization": profile.organization,
        "unread_notifications": Notification.objects.filter(user=request.user, is_read=False).count(),
        "due_reminder_count": due_reminders(request.user).count(),
    }
