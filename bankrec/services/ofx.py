"""OFX / QFX statement parsing.

Banks export transactions as <STMTTRN> blocks (SGML, closing tags optional):

    <STMTTRN>
      <TRNTYPE>CREDIT
      <DTPOSTED>20240115120000
      <TRNAMT>1250.00
      <FITID>202401150001
      <NAME>VIR ACME SARL
    </STMTTRN>

The FITID (financial institution transaction id) is the bank's own identifier and
becomes the import hash, so re-importing an overlapping statement inserts nothing twice.
"""

import hashlib
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import PurePath

SUPPORTED_EXTENSIONS = ("ofx", "qfx")

TRANSACTION_RE = re.compile(r"<STMTTRN>(.*?)</STMTTRN>", re.IGNORECASE | re.DOTALL)
DATE_RE = re.compile(r"<DTPOSTED>\s*(\d{8})", re.IGNORECASE)
AMOUNT_RE = re.compile(r"<TRNAMT>\s*([+-]?[\d.,]+)", re.IGNORECASE)
NAME_RE = re.compile(r"<NAME>([^<\r\n]+)", re.IGNORECASE)
MEMO_RE = re.compile(r"<MEMO>([^<\r\n]+)", re.IGNORECASE)
FITID_RE = re.compile(r"<FITID>([^<\r\n]+)", re.IGNORECASE)


@dataclass
class ParsedTransaction:
    date: date
    description: str
    amount: Decimal  # always positive
    type: str  # "credit" | "debit"
    reference: str
    import_hash: str


@dataclass
class ParseResult:
    success: bool
    transactions: list = field(default_factory=list)
    errors: list = field(default_factory=list)


def import_hash(reference, day, description, amount, type_) -> str:
    """fitid_<FITID>, or a digest of the transaction data for the rare files without FITID."""
    if reference:
        return f"fitid_{reference}"
    data = f"{day.isoformat()}|{description}|{amount.normalize():f}|{type_}"
    return "fallback_" + hashlib.sha1(data.encode("utf-8")).hexdigest()[:16]


def _parse_amount(raw: str) -> Decimal:
    return Decimal(raw.replace(",", "."))


def _parse_date(raw: str) -> date:
    return date(int(raw[0:4]), int(raw[4:6]), int(raw[6:8]))


def parse_ofx(content: str) -> ParseResult:
    transactions = []
    errors = []

    for index, match in enumerate(TRANSACTION_RE.finditer(content), start=1):
        block = match.group(1)

        date_match = DATE_RE.search(block)
        amount_match = AMOUNT_RE.search(block)
        if not (date_match and amount_match):
            errors.append(f"Transaction {index} ignorée : date ou montant manquant")
            continue

        try:
            day = _parse_date(date_match.group(1))
            signed = _parse_amount(amount_match.group(1))
        except (ValueError, InvalidOperation):
            errors.append(f"Transaction {index} ignorée : date ou montant invalide")
            continue

        name_match = NAME_RE.search(block)
        memo_match = MEMO_RE.search(block)
        fitid_match = FITID_RE.search(block)

        text_match = name_match or memo_match
        description = (text_match.group(1).strip() if text_match else "") or "Transaction"
        reference = fitid_match.group(1).strip() if fitid_match else ""

        amount = abs(signed)
        type_ = "credit" if signed >= 0 else "debit"

        transactions.append(ParsedTransaction(
            date=day,
            description=description,
            amount=amount,
            type=type_,
            reference=reference,
            import_hash=import_hash(reference, day, description, amount, type_),
        ))

    if not transactions:
        errors.append("Aucune transaction trouvée dans le fichier OFX")

    return ParseResult(success=bool(transactions), transactions=transactions, errors=errors)


def decode_statement(data: bytes) -> str:
    # OFX 1.x files from French banks are frequently CP1252
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode("cp1252", errors="replace")


def parse_bank_file(filename: str, data: bytes) -> ParseResult:
    """Parse an uploaded statement; only OFX and QFX are supported."""
    extension = PurePath(filename.lower()).suffix.lstrip(".")
    if extension not in SUPPORTED_EXTENSIONS:
        return ParseResult(
            success=False,
            errors=[
                f"Format de fichier non supporté: .{extension}. Utilisez uniquement des fichiers OFX "
                "ou QFX (téléchargeables depuis votre banque)."
            ],
        )
    return parse_ofx(decode_statement(data))
