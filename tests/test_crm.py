from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from contacts.models import Contact
from crm.models import Prospect, ProspectContact, ProspectStatus
from crm.services.csv_io import PROSPECT_CSV_COLUMNS, csv_template, import_prospects_csv, parse_csv, prospects_to_csv
from crm.services.pipeline import change_status, convert_to_client, prospect_kpis, record_visit
from crm.services.statuses import default_status, ensure_default_statuses, final_positive_status

pytestmark = pytest.mark.django_db


class TestStatuses:
    def test_defaults_created_once(self, organization):
        assert ProspectStatus.objects.filter(organization=organization).count() == 6
        assert ensure_default_statuses(organization) == 0
        assert default_status(organization).name == "À démarcher"
        assert final_positive_status(organization).name == "Client signé"


class TestProspect:
    def test_siret_fills_siren_and_vat(self, organization):
        prospect = Prospect.objects.create(organization=organization, company_name="L'Atelier", siret="732 829 320 00074")
        assert prospect.siret == "73282932000074"
        assert prospect.siren == "732829320"
        assert prospect.vat_number == "FR44732829320"

    def test_status_change_timestamp(self, organization):
        prospect = Prospect.objects.create(organization=organization, company_name="Alpha", status=default_status(organization))
        Prospect.objects.filter(pk=prospect.pk).update(status_changed_at=timezone.now() - timedelta(days=3))
        prospect = Prospect.objects.get(pk=prospect.pk)
        before = prospect.status_changed_at

        change_status(prospect, ProspectStatus.objects.get(organization=organization, name="Intéressé"))

        assert Prospect.objects.get(pk=prospect.pk).status_changed_at > before

    def test_visit_moves_status(self, organization, user):
        prospect = Prospect.objects.create(organization=organization, company_name="Alpha", status=default_status(organization))
        interested = ProspectStatus.objects.get(organization=organization, name="Intéressé")

        visit = record_visit(prospect, by=user, status_after=interested, notes="Très bon accueil")

        assert visit.status_before.name == "À démarcher"
        assert Prospect.objects.get(pk=prospect.pk).status == interested

    def test_convert_to_client(self, organization):
        prospect = Prospect.objects.create(
            organization=organization, company_name="Boulangerie Martin", city="Lyon", postal_code="69001",
        )
        ProspectContact.objects.create(prospect=prospect, name="Jeanne Martin", email="jeanne@martin.fr", is_primary=True)

        contact = convert_to_client(prospect)

        prospect = Prospect.objects.get(pk=prospect.pk)
        assert contact.type == Contact.Type.CLIENT
        assert (contact.first_name, contact.last_name) == ("Jeanne", "Martin")
        assert contact.billing_city == "Lyon"
        assert prospect.contact == contact
        assert prospect.status.is_final_positive

        with pytest.raises(ValueError):
            convert_to_client(prospect)

    def test_kpis(self, organization):
        signed = final_positive_status(organization)
        Prospect.objects.create(organization=organization, company_name="A", status=signed)
        Prospect.objects.create(organization=organization, company_name="B", status=default_status(organization))
        Prospect.objects.create(organization=organization, company_name="C", status=default_status(organization))
        Prospect.objects.create(organization=organization, company_name="D", status=default_status(organization))

        kpis = prospect_kpis(organization)

        assert kpis.total == 4
        assert kpis.converted == 1
        assert kpis.conversion_rate == Decimal("25.0")
        assert {step.status.name: step.count for step in kpis.funnel}["À démarcher"] == 3


class TestCsv:
    def test_export_has_bom_and_french_headers(self, organization):
        Prospect.objects.create(organization=organization, company_name="Alpha", city="Nantes", status=default_status(organization))

        content = prospects_to_csv(Prospect.objects.filter(organization=organization))

        assert content.startswith("\ufeffNom entreprise;SIRET;")
        line = content.splitlines()[1].split(";")
        assert line[0] == "Alpha"
        assert line[9] == "Nantes"
        assert line[16] == "À démarcher"

    def test_template_is_parseable(self):
        rows = parse_csv(csv_template())
        assert len(rows) == 1
        assert rows[0]["company_name"] == "Boulangerie Martin"
        assert rows[0]["siret"] == "73282932000074"

    def test_import_counts(self, organization, user):
        Prospect.objects.create(organization=organization, company_name="Existing Co")
        text = (
            "Nom entreprise;SIRET;Ville;Statut\n"
            "Boulangerie Martin;73282932000074;Lyon;Intéressé\n"
            "EXISTING CO;;Paris;\n"
            ";;Nice;\n"
            "boulangerie martin;;Lyon;\n"
            "Pharmacie du Port;;Brest;\n"
        )

        result = import_prospects_csv(organization, text, by=user)

        assert (result.success, result.duplicates, result.errors) == (2, 2, 1)
        assert result.details[0] == "Ligne 3 : « EXISTING CO » déjà existant"
        martin = Prospect.objects.get(organization=organization, siret="73282932000074")
        assert martin.status.name == "Intéressé"
        assert martin.source == "import"
        assert martin.created_by == user
        assert Prospect.objects.get(company_name="Pharmacie du Port").status == default_status(organization)

    def test_import_rejects_empty_file(self, organization):
        with pytest.raises(ValueError):
            import_prospects_csv(organization, "Nom entreprise;Ville\n")

    def test_import_reports_invalid_rows(self, organization):
        result = import_prospects_csv(organization, "Nom entreprise;Email\nAlpha;pas-un-email\n")
        assert result.errors == 1
        assert result.details[0].startswith("Ligne 2 : ")

    def test_column_count(self):
        assert len(PROSPECT_CSV_COLUMNS) == 18
