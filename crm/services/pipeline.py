import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

from django.db import transaction
from django.db.models import Count
from django.utils import timezone

from contacts.models import Contact
from crm.models import Prospect, ProspectStatus, ProspectVisit
from crm.services.statuses import final_positive_status

logger = logging.getLogger(__name__)


def _check_status(prospect, status):
    if status is not None and status.organization_id != prospect.organization_id:
        raise ValueError("Ce statut n'appartient pas à l'organisation.")


def change_status(prospect, status) -> Prospect:
    _check_status(prospect, status)
    if prospect.status_id == (status.pk if status else None):
        return prospect
    prospect.status = status
    prospect.save(update_fields=["status", "updated_at"])
    logger.info("Prospect %s moved to status %s", prospect.pk, status)
    return prospect


@transaction.atomic
def record_visit(prospect, by=None, status_after=None, visited_at=None, notes="",
                 next_action="", next_action_date=None, duration_minutes=None) -> ProspectVisit:
    """Log a visit. When `status_after` is given the prospect moves to it."""
    _check_status(prospect, status_after)

    visit = ProspectVisit.objects.create(
        prospect=prospect,
        visited_by=by,
        visited_at=visited_at or timezone.now(),
        status_before=prospect.status,
        status_after=status_after or prospect.status,
        notes=notes,
        next_action=next_action,
        next_action_date=next_action_date,
        duration_minutes=duration_minutes,
    )

    if status_after is not None:
        change_status(prospect, status_after)
    return visit


@transaction.atomic
def convert_to_client(prospect, by=None) -> Contact:
    """Create a client contact from the prospect and move it to the signed status."""
    prospect = Prospect.objects.select_for_update().get(pk=prospect.pk)
    if prospect.is_converted:
        raise ValueError(f"Ce prospect est déjà client ({prospect.contact}).")

    primary = prospect.contacts.order_by("-is_primary", "pk").first()
    first_name, _, last_name = (primary.name if primary else "").partition(" ")

    contact = Contact.objects.create(
        organization=prospect.organization,
        type=Contact.Type.CLIENT,
        company_name=prospect.company_name,
        first_name=first_name,
        last_name=last_name,
        email=prospect.email or (primary.email if primary else ""),
        phone=prospect.phone or (primary.phone if primary else ""),
        siret=prospect.siret,
        vat_number=prospect.vat_number,
        billing_address_line1=prospect.address_line1,
        billing_address_line2=prospect.address_line2,
        billing_postal_code=prospect.postal_code,
        billing_city=prospect.city,
        billing_country=prospect.country or "France",
        notes=prospect.notes,
    )

    prospect.contact = contact
    prospect.converted_at = timezone.now()
    signed = final_positive_status(prospect.organization)
    if signed is not None:
        prospect.status = signed
    prospect.save()

    logger.info("Prospect %s converted to contact %s by %s", prospect.pk, contact.pk, by)
    return contact


@dataclass
class FunnelStep:
    status: ProspectStatus
    count: int


@dataclass
class ProspectKpis:
    total: int
    funnel: list
    converted: int
    lost: int
    conversion_rate: Decimal
    visits_last_30_days: int
    new_this_month: int


def prospect_kpis(organization, now=None) -> ProspectKpis:
    now = now or timezone.now()
    prospects = Prospect.objects.filter(organization=organization)

    counts = dict(prospects.values_list("status").annotate(n=Count("id")).order_by())
    statuses = ProspectStatus.objects.filter(organization=organization, is_active=True)
    funnel = [FunnelStep(status=s, count=counts.get(s.pk, 0)) for s in statuses]

    total = prospects.count()
    converted = prospects.filter(status__is_final_positive=True).count()
    lost = prospects.filter(status__is_final_negative=True).count()
    rate = (Decimal(converted) * 100 / Decimal(total)).quantize(Decimal("0.1")) if total else Decimal("0.0")

    month_start = timezone.localtime(now).replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    return ProspectKpis(
        total=total,
        funnel=funnel,
        converted=converted,
        lost=lost,
        conversion_rate=rate,
        visits_last_30_days=ProspectVisit.objects.filter(
            prospect__organization=organization,
            visited_at__gte=now - timedelta(days=30),
        ).count(),
        new_this_month=prospects.filter(created_at__gte=month_start).count(),
    )
