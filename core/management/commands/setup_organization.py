from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from core.models import Organization, TaxRate, UserProfile
from crm.services.statuses import ensure_default_statuses

# name, rate, is_default
FRENCH_TAX_RATES = (
    ("TVA 20%", Decimal("20.00"), True),
    ("TVA 10%", Decimal("10.00"), False),
    ("TVA 5,5%", Decimal("5.50"), False),
    ("TVA 2,1%", Decimal("2.10"), False),
    ("Exonéré", Decimal("0.00"), False),
)


def seed_tax_rates(organization):
    created = 0
    for name, rate, is_default in FRENCH_TAX_RATES:
        _, was_created = TaxRate.objects.get_or_create(
            organization=organization,
            name=name,
            defaults={"rate": rate, "is_default": is_default},
        )
        created += int(was_created)
    return created


class Command(BaseCommand):
    help = "Create (or complete) an organization with number series, French VAT rates and prospect statuses"

    def add_arguments(self, parser):
        parser.add_argument("--name", required=True, help="Organization name")
        parser.add_argument("--siret", default="", help="SIRET of the organization")
        parser.add_argument(
            "--admin",
            default="",
            help="Username of an existing user to attach as organization admin",
        )

    @transaction.atomic
    def handle(self, *args, **opts):
        organization, created = Organization.objects.get_or_create(
            name=opts["name"],
            defaults={"siret": opts["siret"]},
        )
        organization.ensure_number_series()

        n_rates = seed_tax_rates(organization)
        n_statuses = ensure_default_statuses(organization)

        username = opts["admin"]
        if username:
            User = get_user_model()
            try:
                user = User.objects.get(username=username)
            except User.DoesNotExist:
                raise CommandError(f"User '{username}' does not exist")

            UserProfile.objects.update_or_create(
                user=user,
                defaults={
                    "organization": organization,
                    "role": UserProfile.Role.ADMIN,
                    "is_organization_admin": True,
                },
            )

        self.stdout.write(self.style.SUCCESS(
            f"Organization {'created' if created else 'updated'}: {organization.name} (id={organization.pk}). "
            f"Tax rates created: {n_rates}. Prospect statuses created: {n_statuses}."
        ))
