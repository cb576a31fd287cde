import pytest

from crm.models import Prospect
from crm.services.duplicates import Reason, find_duplicates, levenshtein, names_match, normalize_name


class TestLevenshtein:
    def test_classic_distance(self):
        assert levenshtein("kitten", "sitting") == 3

    @pytest.mark.parametrize("a, b", [("boulangerie", "boulangeries"), ("", "abc"), ("garage", "garagiste")])
    def test_symmetric_and_bounded(self, a, b):
        d = levenshtein(a, b)
        assert d == levenshtein(b, a)
        assert abs(len(a) - len(b)) <= d <= max(len(a), len(b))

    def test_identity(self):
        assert levenshtein("acme", "acme") == 0


class TestNamesMatch:
    def test_normalize(self):
        assert normalize_name("  Boulangerie   MARTIN ") == "boulangerie martin"

    def test_contains(self):
        assert names_match("boulangerie martin", "boulangerie martin sarl") == (Reason.NAME_CONTAINS, 5)

    def test_short_names_are_not_substring_matches(self):
        # "ab" is in "abcdef" but too short to mean anything
        assert names_match("ab", "abcdef") is None

    def test_similar(self):
        assert names_match("garage dupont", "garage dupond") == (Reason.NAME_SIMILAR, 1)

    def test_too_far(self):
        assert names_match("garage dupont", "pharmacie centrale") is None

    def test_long_names_skip_fuzzy(self):
        a = "x" * 51
        b = "y" + "x" * 50
        assert names_match(a, b) is None


@pytest.mark.django_db
class TestFindDuplicates:
    def test_siret_match_skips_name_check(self, organization):
        same_siret = Prospect.objects.create(organization=organization, company_name="Alpha", siret="73282932000074")
        Prospect.objects.create(organization=organization, company_name="Alpha Bis")

        matches = find_duplicates(organization, company_name="Alpha", siret="732 829 320 00074")

        assert [m.prospect for m in matches] == [same_siret]
        assert matches[0].reason == Reason.SIRET

    def test_name_matches_sorted_by_distance(self, organization):
        exact = Prospect.objects.create(organization=organization, company_name="Boulangerie Martin")
        close = Prospect.objects.create(organization=organization, company_name="Boulangerie Marten")
        Prospect.objects.create(organization=organization, company_name="Garage Central")

        matches = find_duplicates(organization, company_name="boulangerie martin")

        assert [m.prospect for m in matches] == [exact, close]
        assert matches[0].distance == 0
        assert matches[1].reason in (Reason.NAME_SIMILAR, Reason.NAME_CONTAINS)

    def test_exclude_and_other_organizations(self, organization):
        from core.models import Organization

        other = Organization.objects.create(name="Autre")
        mine = Prospect.objects.create(organization=organization, company_name="Fleurs & Co")
        Prospect.objects.create(organization=other, company_name="Fleurs & Co")

        assert find_duplicates(organization, company_name="Fleurs & Co", exclude_id=mine.pk) == []

    def test_empty_input(self, organization):
        Prospect.objects.create(organization=organization, company_name="Alpha")
        assert find_duplicates(organization) == []
