import time

from django.core.management.base import BaseCommand

from crm.models import Prospect
from crm.services.geocoding import geocode_prospect


class Command(BaseCommand):
    help = "Geocode prospects that have an address but no coordinates"

    def add_arguments(self, parser):
        parser.add_argument("--organization", type=int, help="Only this organization id")
        parser.add_argument("--limit", type=int, default=200)
        parser.add_argument("--delay", type=float, default=0.1, help="Seconds between API calls")

    def handle(self, *args, **opts):
        qs = (
            Prospect.objects
            .filter(latitude__isnull=True)
            .exclude(city="", postal_code="")
            .order_by("pk")
        )
        if opts["organization"]:
            qs = qs.filter(organization_id=opts["organization"])

        done = missed = 0
        for prospect in qs[: opts["limit"]]:
            if geocode_prospect(prospect):
                done += 1
            else:
                missed += 1
            if opts["delay"]:
                time.sleep(opts["delay"])

        self.stdout.write(self.style.SUCCESS(f"Geocoded: {done}. Not found: {missed}."))
