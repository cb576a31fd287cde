from django.core.management.base import BaseCommand

from core.models import Organization
from documents.services.overdue import mark_overdue_documents


class Command(BaseCommand):
    help = "Mark sent/partially paid invoices and bills past their due date as overdue (run daily)"

    def add_arguments(self, parser):
        parser.add_argument(
            "--organization-id",
            type=int,
            default=None,
            help="Only process this organization (default: all)",
        )

    def handle(self, *args, **opts):
        organization = None
        if opts["organization_id"]:
            organization = Organization.objects.get(pk=opts["organization_id"])

        count = mark_overdue_documents(organization=organization)
        self.stdout.write(self.style.SUCCESS(f"{count} document(s) marked overdue."))
