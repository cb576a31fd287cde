import pytest

from core.services.siren import (
    clean_digits,
    is_valid_siren,
    is_valid_siret,
    siren_from_siret,
    vat_number_from_siren,
    vat_number_from_siret,
)


def test_clean_digits_strips_spaces():
    assert clean_digits(" 732 829 320 00074 ") == "73282932000074"
    assert clean_digits(None) == ""


@pytest.mark.parametrize("value, expected", [
    ("732 829 320 00074", True),
    ("73282932000075", False),
    ("7328293200007", False),
    ("7328293200007A", False),
    ("35600000000001", True),
])
def test_siret_validation(value, expected):
    assert is_valid_siret(value) is expected


def test_siren_validation():
    assert is_valid_siren("732829320")
    assert not is_valid_siren("732829321")


def test_vat_number_key():
    assert vat_number_from_siren("732829320") == "FR44732829320"
    assert vat_number_from_siret("73282932000074") == "FR44732829320"
    assert vat_number_from_siren("12345") == ""


def test_siren_from_siret_needs_fourteen_digits():
    assert siren_from_siret("73282932000074") == "732829320"
    assert siren_from_siret("123") == ""


def test_non_ascii_digits_are_rejected():
    # "²".isdigit() is True but int("²") fails
    assert not is_valid_siren("73282932²")
    assert not is_valid_siret("7328293200007²")
    assert vat_number_from_siren("73282932²") == ""
    assert siren_from_siret("7328293200007²") == ""
