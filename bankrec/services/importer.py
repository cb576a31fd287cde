import logging
from dataclasses import dataclass

from django.db import transaction

from bankrec.models import BankTransaction

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    inserted: int
    skipped: int


@transaction.atomic
def import_transactions(bank_account, parsed_transactions) -> ImportResult:
    """Insert parsed statement lines, skipping those already imported.

    A line is a duplicate when its import hash already exists for the organization,
    or appeared earlier in the same file.
    """
    organization = bank_account.organization
    hashes = {t.import_hash for t in parsed_transactions}

    existing = set(
        BankTransaction.objects
        .filter(organization=organization, import_hash__in=hashes)
        .values_list("import_hash", flat=True)
    )

    to_create = []
    for t in parsed_transactions:
        if t.import_hash in existing:
            continue
        existing.add(t.import_hash)
        to_create.append(BankTransaction(
            organization=organization,
            bank_account=bank_account,
            date=t.date,
            description=t.description[:500],
            amount=t.amount,
            type=t.type,
            reference=t.reference,
            import_hash=t.import_hash,
        ))

    BankTransaction.objects.bulk_create(to_create)

    result = ImportResult(inserted=len(to_create), skipped=len(parsed_transactions) - len(to_create))
    logger.info(
        "Bank import into %s: %d inserted, %d skipped",
        bank_account, result.inserted, result.skipped,
    )
    return result
