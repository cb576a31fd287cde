from datetime import date
from decimal import Decimal

import pytest
from django.urls import reverse

from bankrec.models import BankAccount, BankTransaction
from contacts.models import Contact
from crm.models import Prospect
from documents.models import Invoice

pytestmark = pytest.mark.django_db


@pytest.mark.parametrize("name", [
    "dashboard:home",
    "core:profile",
    "core:organization-settings",
    "contacts:contact-list",
    "contacts:item-list",
    "documents:quote-list",
    "documents:invoice-list",
    "documents:bill-list",
    "bankrec:transaction-list",
    "bankrec:account-list",
    "crm:prospect-list",
    "crm:prospect-create",
    "crm:prospect-map",
    "crm:prospect-import",
    "reminders:reminder-list",
    "reminders:notification-list",
    "reminders:rule-list",
    "commissions:commission-list",
    "commissions:rule-list",
    "commissions:target-list",
])
def test_pages_render(logged_client, name):
    assert logged_client.get(reverse(name)).status_code == 200


def test_login_required(client):
    response = client.get(reverse("crm:prospect-list"))
    assert response.status_code == 302


def test_sales_role_cannot_open_bank(client, salesperson):
    client.force_login(salesperson)
    response = client.get(reverse("bankrec:transaction-list"))
    assert response.status_code == 302
    assert response.url == reverse("dashboard:home")


class TestDocumentPages:
    def test_invoice_detail_and_print(self, logged_client, make_invoice):
        invoice = make_invoice(lines=(("2", "50.00", "20"), ("1", "10.00", "5.5")))

        assert logged_client.get(reverse("documents:invoice-detail", args=[invoice.pk])).status_code == 200
        response = logged_client.get(reverse("documents:document-print", args=["invoice", invoice.pk]))
        assert response.status_code == 200
        assert invoice.number in response.content.decode()

    def test_quote_detail(self, logged_client, make_quote):
        quote = make_quote()
        assert logged_client.get(reverse("documents:quote-detail", args=[quote.pk])).status_code == 200

    def test_unknown_print_kind(self, logged_client, make_invoice):
        invoice = make_invoice()
        assert logged_client.get(reverse("documents:document-print", args=["bill", invoice.pk])).status_code == 404

    def test_other_organization_is_hidden(self, logged_client):
        from core.models import Organization

        other = Organization.objects.create(name="Concurrent")
        contact = Contact.objects.create(organization=other, company_name="Client du concurrent")
        foreign = Invoice.objects.create(organization=other, contact=contact, date=date.today())

        assert logged_client.get(reverse("documents:invoice-detail", args=[foreign.pk])).status_code == 404


class TestProspectPages:
    def test_create_warns_about_duplicates(self, logged_client, organization):
        Prospect.objects.create(organization=organization, company_name="Boulangerie Martin")
        data = {"company_name": "Boulangerie Martine", "country": "France"}

        response = logged_client.post(reverse("crm:prospect-create"), data)

        assert response.status_code == 200
        assert response.context["duplicates"]
        assert Prospect.objects.filter(organization=organization).count() == 1

        data["confirm_duplicate"] = "on"
        response = logged_client.post(reverse("crm:prospect-create"), data)

        assert response.status_code == 302
        assert Prospect.objects.filter(organization=organization).count() == 2

    def test_detail_and_convert(self, logged_client, organization):
        prospect = Prospect.objects.create(organization=organization, company_name="Garage Central")

        assert logged_client.get(reverse("crm:prospect-detail", args=[prospect.pk])).status_code == 200

        response = logged_client.post(reverse("crm:prospect-convert", args=[prospect.pk]))
        contact = Contact.objects.get(organization=organization, company_name="Garage Central")
        assert response.url == reverse("contacts:contact-detail", args=[contact.pk])

    def test_markers_json(self, logged_client, organization):
        a = Prospect.objects.create(organization=organization, company_name="A", latitude=45.764043, longitude=4.835659)
        Prospect.objects.create(organization=organization, company_name="B", latitude=45.764043, longitude=4.835659)
        Prospect.objects.create(organization=organization, company_name="C")

        response = logged_client.get(reverse("crm:map-markers"), {"selected": a.pk})

        markers = response.json()["markers"]
        assert len(markers) == 1
        assert markers[0]["label"] == "+2"
        assert markers[0]["icon"] == "selected"

    def test_duplicates_json(self, logged_client, organization):
        Prospect.objects.create(organization=organization, company_name="Pharmacie du Port")
        response = logged_client.get(reverse("crm:duplicates"), {"company_name": "pharmacie du port"})
        assert response.json()["duplicates"][0]["company_name"] == "Pharmacie du Port"

    def test_export(self, logged_client, organization):
        Prospect.objects.create(organization=organization, company_name="Alpha")
        response = logged_client.get(reverse("crm:prospect-export"))
        assert response["Content-Type"].startswith("text/csv")
        assert "Alpha" in response.content.decode("utf-8")


class TestReconcilePage:
    def test_suggestions_then_reconcile(self, logged_client, organization, make_invoice):
        invoice = make_invoice()
        account = BankAccount.objects.create(organization=organization, name="Compte")
        tx = BankTransaction.objects.create(
            organization=organization, bank_account=account, date=date.today(),
            description="VIR ACME", amount=Decimal("120.00"), type=BankTransaction.Type.CREDIT,
        )
        url = reverse("bankrec:reconcile", args=[tx.pk])

        response = logged_client.get(url)
        assert response.status_code == 200
        assert response.context["invoice_suggestions"][0].document == invoice

        response = logged_client.post(url, {"invoice_id": invoice.pk})
        assert response.status_code == 302
        assert Invoice.objects.get(pk=invoice.pk).state == Invoice.State.PAID
        assert BankTransaction.objects.get(pk=tx.pk).is_reconciled


def test_invoice_csv_export(logged_client, make_invoice):
    invoice = make_invoice()
    response = logged_client.get(reverse("documents:invoice-list"), {"export": "csv"})
    assert response["Content-Type"].startswith("text/csv")
    assert invoice.number in response.content.decode("utf-8")
