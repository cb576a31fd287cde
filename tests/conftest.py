from datetime import timedelta

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone

from contacts.models import Contact
from core.models import Organization, UserProfile
from crm.services.statuses import ensure_default_statuses
from documents.models import Invoice, InvoiceLine, Quote, QuoteLine

from .factories import add_lines


@pytest.fixture
def organization(db):
    org = Organization.objects.create(name="Atelier Dupont", siret="73282932000074")
    org.ensure_number_series()
    ensure_default_statuses(org)
    return org


@pytest.fixture
def make_user(organization):
    def _make(username, role=UserProfile.Role.SALES, org=None):
        user = get_user_model().objects.create_user(username=username, password="secret-pass-123")
        UserProfile.objects.create(user=user, organization=org or organization, role=role)
        return user

    return _make


@pytest.fixture
def user(make_user):
    return make_user("alice", role=UserProfile.Role.ADMIN)


@pytest.fixture
def salesperson(make_user):
    return make_user("bob", role=UserProfile.Role.SALES)


@pytest.fixture
def logged_client(client, user):
    client.force_login(user)
    return client


@pytest.fixture
def contact(organization):
    return Contact.objects.create(organization=organization, company_name="ACME SARL", type=Contact.Type.CLIENT)


@pytest.fixture
def supplier(organization):
    return Contact.objects.create(organization=organization, company_name="Fournitures Bureau", type=Contact.Type.SUPPLIER)


@pytest.fixture
def make_invoice(organization, contact):
    """Sent invoice; default single line 100 HT at 20 % (120 TTC)."""

    def _make(lines=(("1", "100.00", "20"),), salesperson=None, send=True, date=None, due_in_days=30):
        day = date or timezone.localdate()
        invoice = Invoice.objects.create(
            organization=organization,
            contact=contact,
            date=day,
            due_date=day + timedelta(days=due_in_days),
            salesperson=salesperson,
        )
        add_lines(invoice, InvoiceLine, "invoice", lines)
        if send:
            invoice.send()
            invoice.save()
        return invoice

    return _make


@pytest.fixture
def make_quote(organization, contact):
    def _make(lines=(("2", "50.00", "20"),), send=True):
        quote = Quote.objects.create(organization=organization, contact=contact, date=timezone.localdate())
        add_lines(quote, QuoteLine, "quote", lines)
        if send:
            quote.send()
            quote.save()
        return quote

    return _make
