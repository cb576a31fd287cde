from crm.models import ProspectStatus

# name, color, is_default, is_final_positive, is_final_negative
DEFAULT_STATUSES = (
    ("À démarcher", "#6B7280", True, False, False),
    ("Démarché", "#3B82F6", False, False, False),
    ("Intéressé", "#F59E0B", False, False, False),
    ("En négociation", "#8B5CF6", False, False, False),
    ("Client signé", "#10B981", False, True, False),
    ("Pas intéressé", "#EF4444", False, False, True),
)


def ensure_default_statuses(organization) -> int:
    """Create the default pipeline if the organization has no status yet."""
    if ProspectStatus.objects.filter(organization=organization).exists():
        return 0

    ProspectStatus.objects.bulk_create([
        ProspectStatus(
            organization=organization,
            name=name,
            color=color,
            position=position,
            is_default=is_default,
            is_final_positive=positive,
            is_final_negative=negative,
        )
        for position, (name, color, is_default, positive, negative) in enumerate(DEFAULT_STATUSES)
    ])
    return len(DEFAULT_STATUSES)


def default_status(organization):
    qs = ProspectStatus.objects.filter(organization=organization, is_active=True)
    return qs.filter(is_default=True).first() or qs.first()


def final_positive_status(organization):
    return ProspectStatus.objects.filter(organization=organization, is_final_positive=True, is_active=True).first()
