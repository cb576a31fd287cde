import csv
import io
import logging
from dataclasses import dataclass, field

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import formats

from core.services.siren import clean_digits
from crm.models import Prospect, ProspectStatus
from crm.services.statuses import default_status

logger = logging.getLogger(__name__)

# field, header
PROSPECT_CSV_COLUMNS = [
    ("company_name", "Nom entreprise"),
    ("siret", "SIRET"),
    ("siren", "SIREN"),
    ("vat_number", "N° TVA"),
    ("legal_form", "Forme juridique"),
    ("naf_code", "Code NAF"),
    ("address_line1", "Adresse"),
    ("address_line2", "Complément adresse"),
    ("postal_code", "Code postal"),
    ("city", "Ville"),
    ("country", "Pays"),
    ("phone", "Téléphone"),
    ("email", "Email"),
    ("website", "Site web"),
    ("source", "Source"),
    ("notes", "Notes"),
    ("status", "Statut"),
    ("created_at", "Date création"),
]

IMPORTABLE_FIELDS = [f for f, _ in PROSPECT_CSV_COLUMNS if f not in ("status", "created_at")]

_HEADER_TO_FIELD = {label.lower(): f for f, label in PROSPECT_CSV_COLUMNS}


def _with_bom(text) -> str:
    return "\ufeff" + text


def prospects_to_csv(prospects) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=";")
    writer.writerow([label for _, label in PROSPECT_CSV_COLUMNS])
    for p in prospects:
        row = []
        for f, _ in PROSPECT_CSV_COLUMNS:
            if f == "status":
                row.append(p.status.name if p.status_id else "")
            elif f == "created_at":
                row.append(formats.date_format(p.created_at, "d/m/Y") if p.created_at else "")
            else:
                row.append(getattr(p, f) or "")
        writer.writerow(row)
    return _with_bom(buf.getvalue())


def csv_template() -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=";")
    writer.writerow([label for _, label in PROSPECT_CSV_COLUMNS[:-1]])
    writer.writerow([
        "Boulangerie Martin", "73282932000074", "", "", "SARL", "1071C",
        "12 rue de la Paix", "", "75002", "Paris", "France",
        "01 23 45 67 89", "contact@exemple.fr", "https://exemple.fr", "Salon", "", "",
    ])
    return _with_bom(buf.getvalue())


def _header_key(header) -> str:
    header = (header or "").strip().strip('"').lower()
    return _HEADER_TO_FIELD.get(header, header.replace(" ", "_"))


def parse_csv(text) -> list:
    """Rows as dicts keyed by model field. Headers may be the French labels or field names."""
    text = text.lstrip("\ufeff")
    reader = csv.reader(io.StringIO(text), delimiter=";")
    try:
        headers = [_header_key(h) for h in next(reader)]
    except StopIteration:
        return []

    rows = []
    for values in reader:
        if not any(v.strip() for v in values):
            continue
        rows.append({h: (values[i].strip() if i < len(values) else "") for i, h in enumerate(headers)})
    return rows


@dataclass
class CsvImportResult:
    success: int = 0
    errors: int = 0
    duplicates: int = 0
    details: list = field(default_factory=list)


def import_prospects_csv(organization, text, by=None) -> CsvImportResult:
    """Create prospects from a CSV export/template.

    Rows whose SIRET or (case-insensitive) company name already exists are counted as
    duplicates and skipped; each row is saved in its own savepoint so one bad row does
    not cancel the others.
    """
    rows = parse_csv(text)
    if not rows:
        raise ValueError("Aucune donnée valide trouvée dans le fichier.")

    existing = Prospect.objects.filter(organization=organization).values_list("siret", "company_name")
    known_sirets = {s for s, _ in existing if s}
    known_names = {n.lower() for _, n in existing}

    statuses = {s.name.lower(): s for s in ProspectStatus.objects.filter(organization=organization, is_active=True)}
    fallback_status = default_status(organization)

    result = CsvImportResult()
    for index, row in enumerate(rows, start=2):
        company_name = row.get("company_name", "")
        if not company_name:
            result.errors += 1
            result.details.append(f"Ligne {index} : nom d'entreprise manquant")
            continue

        siret = clean_digits(row.get("siret"))
        if siret and siret in known_sirets:
            result.duplicates += 1
            result.details.append(f"Ligne {index} : SIRET {siret} déjà existant")
            continue
        if company_name.lower() in known_names:
            result.duplicates += 1
            result.details.append(f"Ligne {index} : « {company_name} » déjà existant")
            continue

        values = {f: row.get(f, "") for f in IMPORTABLE_FIELDS}
        values["siret"] = siret
        values["country"] = values["country"] or "France"
        values["source"] = values["source"] or "import"

        prospect = Prospect(
            organization=organization,
            status=statuses.get(row.get("status", "").lower(), fallback_status),
            created_by=by,
            **values,
        )
        try:
            prospect.full_clean(exclude=["organization", "status", "created_by", "contact", "assigned_to"])
            with transaction.atomic():
                prospect.save()
        except ValidationError as e:
            result.errors += 1
            result.details.append(f"Ligne {index} : {' '.join(e.messages)}")
            continue
        except DatabaseError as e:
            logger.exception("Prospect CSV import failed on row %d", index)
            result.errors += 1
            result.details.append(f"Ligne {index} : {e}")
            continue

        result.success += 1
        if siret:
            known_sirets.add(siret)
        known_names.add(company_name.lower())

    logger.info(
        "Prospect CSV import for %s: %d created, %d duplicates, %d errors",
        organization, result.success, result.duplicates, result.errors,
    )
    return result
