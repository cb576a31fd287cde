"""French address lookups against the Base Adresse Nationale API (api-adresse.data.gouv.fr).

Network or decoding failures are logged and turned into "no result": a missing
coordinate must never break a prospect page or an import.
"""

import json
import logging
import ssl
from dataclasses import dataclass
from urllib.error import URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

import certifi
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)

USER_AGENT = "Facturo/1.0"


@dataclass
class AddressResult:
    label: str
    latitude: float
    longitude: float
    score: float = 0.0
    housenumber: str = ""
    street: str = ""
    postal_code: str = ""
    city: str = ""
    context: str = ""


def _fetch_json(path, params):
    url = f"{settings.FACTURO_GEOCODING_URL.rstrip('/')}/{path}/?{urlencode(params)}"
    ctx = ssl.create_default_context(cafile=certifi.where())
    req = Request(url, headers={"User-Agent": USER_AGENT, "Accept": "application/json"})

    try:
        with urlopen(req, timeout=settings.FACTURO_GEOCODING_TIMEOUT, context=ctx) as resp:
            return json.loads(resp.read().decode("utf-8"))
    except (URLError, OSError, ValueError):
        logger.exception("Geocoding request failed: %s", url)
        return None


def _parse_features(payload) -> list:
    results = []
    for feature in (payload or {}).get("features", []):
        try:
            lng, lat = feature["geometry"]["coordinates"][:2]
        except (KeyError, TypeError, ValueError):
            continue
        props = feature.get("properties") or {}
        results.append(AddressResult(
            label=props.get("label", ""),
            latitude=float(lat),
            longitude=float(lng),
            score=float(props.get("score") or 0),
            housenumber=props.get("housenumber", ""),
            street=props.get("street") or props.get("name", ""),
            postal_code=props.get("postcode", ""),
            city=props.get("city", ""),
            context=props.get("context", ""),
        ))
    return results


def search_addresses(query, limit=5) -> list:
    """Autocomplete: addresses matching free text (at least 3 characters)."""
    query = (query or "").strip()
    if len(query) < 3:
        return []
    return _parse_features(_fetch_json("search", {"q": query, "limit": limit}))


def geocode_address(address="", postal_code="", city=""):
    """Best match for a postal address, or None."""
    query = " ".join(p.strip() for p in (address, postal_code, city) if p and p.strip())
    if not query:
        return None
    params = {"q": query, "limit": 1}
    if postal_code:
        params["postcode"] = postal_code.strip()
    results = _parse_features(_fetch_json("search", params))
    return results[0] if results else None


def reverse_geocode(latitude, longitude):
    results = _parse_features(_fetch_json("reverse", {"lat": latitude, "lon": longitude}))
    return results[0] if results else None


def geocode_prospect(prospect, save=True) -> bool:
    result = geocode_address(
        " ".join(p for p in (prospect.address_line1, prospect.address_line2) if p),
        prospect.postal_code,
        prospect.city,
    )
    if result is None:
        logger.info("No geocoding result for prospect %s", prospect.pk)
        return False

    prospect.latitude = result.latitude
    prospect.longitude = result.longitude
    prospect.geocoded_at = timezone.now()
    if save:
        prospect.save(update_fields=["latitude", "longitude", "geocoded_at", "updated_at"])
    return True
