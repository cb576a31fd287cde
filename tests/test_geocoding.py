import json
from urllib.error import URLError

import pytest

from crm.models import Prospect
from crm.services import geocoding

FEATURES = {
    "features": [
        {
            "geometry": {"coordinates": [2.352222, 48.856614]},
            "properties": {
                "label": "8 Boulevard du Palais 75001 Paris",
                "score": 0.97,
                "housenumber": "8",
                "street": "Boulevard du Palais",
                "postcode": "75001",
                "city": "Paris",
                "context": "75, Paris, Île-de-France",
            },
        },
    ],
}


class FakeResponse:
    def __init__(self, payload):
        self.payload = payload

    def read(self):
        return json.dumps(self.payload).encode("utf-8")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def api(monkeypatch):
    calls = []

    def fake_urlopen(request, timeout=None, context=None):
        calls.append(request.full_url)
        return FakeResponse(FEATURES)

    monkeypatch.setattr(geocoding, "urlopen", fake_urlopen)
    return calls


def test_search_reads_lat_lng_in_geojson_order(api):
    results = geocoding.search_addresses("8 bd du palais")

    assert len(results) == 1
    assert results[0].latitude == 48.856614
    assert results[0].longitude == 2.352222
    assert results[0].postal_code == "75001"
    assert "/search/?q=8+bd+du+palais&limit=5" in api[0]


def test_short_queries_do_not_call_the_api(api):
    assert geocoding.search_addresses("ab") == []
    assert api == []


def test_geocode_address_filters_on_postcode(api):
    result = geocoding.geocode_address("8 boulevard du Palais", "75001", "Paris")
    assert result.city == "Paris"
    assert "postcode=75001" in api[0]


def test_network_failure_means_no_result(monkeypatch):
    def broken(*args, **kwargs):
        raise URLError("timeout")

    monkeypatch.setattr(geocoding, "urlopen", broken)

    assert geocoding.geocode_address("nulle part") is None


@pytest.mark.django_db
def test_geocode_prospect(api, organization):
    prospect = Prospect.objects.create(
        organization=organization, company_name="Palais", address_line1="8 boulevard du Palais", postal_code="75001", city="Paris",
    )

    assert geocoding.geocode_prospect(prospect)

    prospect = Prospect.objects.get(pk=prospect.pk)
    assert prospect.has_coordinates
    assert prospect.geocoded_at is not None
