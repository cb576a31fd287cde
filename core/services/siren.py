"""French company identifiers (SIREN, SIRET, intra-community VAT number).

SIREN: 9 digits, identifies the company.
SIRET: 14 digits, SIREN + 5-digit establishment number (NIC).
VAT:   "FR" + 2-digit key + SIREN, key = (12 + 3 * (SIREN % 97)) % 97.
"""

import re

# La Poste establishments do not follow the Luhn rule
LA_POSTE_SIREN = "356000000"


SIREN_RE = re.compile(r"[0-9]{9}")
SIRET_RE = re.compile(r"[0-9]{14}")


def clean_digits(value) -> str:
    """Remove whitespace (SIRET numbers are often typed as '123 456 789 00012')."""
    return re.sub(r"\s+", "", value or "")


def luhn_ok(digits: str) -> bool:
    total = 0
    for i, ch in enumerate(reversed(digits)):
        n = int(ch)
        if i % 2 == 1:
            n *= 2
            if n > 9:
                n -= 9
        total += n
    return total % 10 == 0


def is_valid_siren(value) -> bool:
    siren = clean_digits(value)
    return bool(SIREN_RE.fullmatch(siren)) and luhn_ok(siren)


def is_valid_siret(value) -> bool:
    siret = clean_digits(value)
    if not SIRET_RE.fullmatch(siret):
        return False
    if siret.startswith(LA_POSTE_SIREN):
        return sum(int(c) for c in siret) % 5 == 0
    return luhn_ok(siret)


def siren_from_siret(value) -> str:
    """First 9 digits of a 14-digit SIRET, or '' if the value is not a SIRET."""
    siret = clean_digits(value)
    if not SIRET_RE.fullmatch(siret):
        return ""
    return siret[:9]


def vat_number_from_siren(value) -> str:
    """Compute the French intra-community VAT number for a SIREN.

    Returns '' when the value is not 9 digits.
    """
    siren = clean_digits(value)
    if not SIREN_RE.fullmatch(siren):
        return ""
    key = (12 + 3 * (int(siren) % 97)) % 97
    return f"FR{key:02d}{siren}"


def vat_number_from_siret(value) -> str:
    return vat_number_from_siren(siren_from_siret(value))
