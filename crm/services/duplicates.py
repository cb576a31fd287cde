"""Duplicate prospect detection.

1. SIRET: any prospect whose SIRET contains the typed SIRET is a duplicate. When
   there is at least one, the name check is skipped.
2. Company name (case-insensitive, trimmed): one name contains the other, or the
   Levenshtein distance is at most 3. The distance is only computed for names of
   50 characters or less.
"""

from dataclasses import dataclass

from rapidfuzz.distance import Levenshtein

from core.services.siren import clean_digits
from crm.models import Prospect

MAX_DISTANCE = 3
MAX_FUZZY_LENGTH = 50
MIN_SUBSTRING_LENGTH = 3


class Reason:
    SIRET = "siret"
    NAME_CONTAINS = "name_contains"
    NAME_SIMILAR = "name_similar"


@dataclass
class DuplicateMatch:
    prospect: Prospect
    reason: str
    distance: int = 0


def levenshtein(a: str, b: str) -> int:
    return Levenshtein.distance(a, b)


def normalize_name(name) -> str:
    return " ".join((name or "").lower().split())


def names_match(a: str, b: str):
    """Return (reason, distance) when two normalized names look like the same company."""
    if not a or not b:
        return None

    shorter = min(len(a), len(b))
    if shorter >= MIN_SUBSTRING_LENGTH and (a in b or b in a):
        return Reason.NAME_CONTAINS, abs(len(a) - len(b))

    if len(a) > MAX_FUZZY_LENGTH or len(b) > MAX_FUZZY_LENGTH:
        return None

    # score_cutoff: rapidfuzz stops early and returns cutoff + 1 when exceeded
    distance = Levenshtein.distance(a, b, score_cutoff=MAX_DISTANCE)
    if distance <= MAX_DISTANCE:
        return Reason.NAME_SIMILAR, distance
    return None


def find_duplicates(organization, company_name="", siret="", exclude_id=None) -> list:
    qs = Prospect.objects.filter(organization=organization).select_related("status")
    if exclude_id:
        qs = qs.exclude(pk=exclude_id)

    siret = clean_digits(siret)
    if siret:
        siret_matches = [
            DuplicateMatch(prospect=p, reason=Reason.SIRET)
            for p in qs.filter(siret__contains=siret)
        ]
        if siret_matches:
            return siret_matches

    name = normalize_name(company_name)
    if not name:
        return []

    matches = []
    for prospect in qs.only("id", "company_name", "siret", "city", "status"):
        result = names_match(name, normalize_name(prospect.company_name))
        if result:
            reason, distance = result
            matches.append(DuplicateMatch(prospect=prospect, reason=reason, distance=distance))

    matches.sort(key=lambda m: (m.distance, m.prospect.company_name))
    return matches
