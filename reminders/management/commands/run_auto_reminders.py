from django.core.management.base import BaseCommand

from core.models import Organization
from reminders.services import run_auto_rules


class Command(BaseCommand):
    help = "Apply automatic follow-up rules to prospects (run daily, e.g. from cron)"

    def add_arguments(self, parser):
        parser.add_argument("--organization", type=int, help="Only this organization id")

    def handle(self, *args, **opts):
        organizations = Organization.objects.filter(is_active=True)
        if opts["organization"]:
            organizations = organizations.filter(pk=opts["organization"])

        total = 0
        for organization in organizations:
            fired = run_auto_rules(organization)
            total += fired
            self.stdout.write(f"{organization.name}: {fired} action(s)")

        self.stdout.write(self.style.SUCCESS(f"Done: {total} action(s)."))
