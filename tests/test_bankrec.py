from datetime import date, timedelta
from decimal import Decimal

import pytest

from bankrec.models import BankAccount, BankTransaction
from bankrec.services.importer import import_transactions
from bankrec.services.matching import match_score, suggest_matches
from bankrec.services.ofx import import_hash, parse_bank_file, parse_ofx
from bankrec.services.reconcile import bank_stats, mark_reconciled, reconcile, unreconcile
from documents.models import Invoice, Payment

STATEMENT = """OFXHEADER:100
DATA:OFXSGML
<OFX><BANKMSGSRSV1><STMTTRNRS><STMTRS><BANKTRANLIST>
<STMTTRN>
<TRNTYPE>CREDIT
<DTPOSTED>20240115120000
<TRNAMT>1250,00
<FITID>202401150001
<NAME>VIR ACME SARL
</STMTTRN>
<STMTTRN>
<TRNTYPE>DEBIT
<DTPOSTED>20240116
<TRNAMT>-42.50
<MEMO>PRLV EDF
</STMTTRN>
<STMTTRN>
<TRNTYPE>DEBIT
<TRNAMT>-10.00
<NAME>SANS DATE
</STMTTRN>
</BANKTRANLIST></STMTRS></STMTTRNRS></BANKMSGSRSV1></OFX>
"""


class TestOfxParsing:
    def test_parse(self):
        result = parse_ofx(STATEMENT)

        assert result.success
        assert len(result.transactions) == 2
        credit, debit = result.transactions

        assert credit.date == date(2024, 1, 15)
        assert credit.amount == Decimal("1250.00")
        assert credit.type == "credit"
        assert credit.description == "VIR ACME SARL"
        assert credit.import_hash == "fitid_202401150001"

        assert debit.amount == Decimal("42.50")
        assert debit.type == "debit"
        assert debit.description == "PRLV EDF"
        assert debit.import_hash.startswith("fallback_")

        assert result.errors == ["Transaction 3 ignorée : date ou montant manquant"]

    def test_fallback_hash_is_stable(self):
        a = import_hash("", date(2024, 1, 16), "PRLV EDF", Decimal("42.50"), "debit")
        b = import_hash("", date(2024, 1, 16), "PRLV EDF", Decimal("42.5"), "debit")
        assert a == b
        assert a != import_hash("", date(2024, 1, 17), "PRLV EDF", Decimal("42.50"), "debit")

    def test_empty_file(self):
        result = parse_ofx("<OFX></OFX>")
        assert not result.success
        assert result.errors == ["Aucune transaction trouvée dans le fichier OFX"]

    def test_only_ofx_files(self):
        result = parse_bank_file("releve.csv", b"date;montant")
        assert not result.success
        assert "Format de fichier non supporté: .csv" in result.errors[0]

    def test_cp1252_statement(self):
        data = STATEMENT.replace("VIR ACME SARL", "VIR CAFÉ").encode("cp1252")
        result = parse_bank_file("RELEVE.OFX", data)
        assert result.transactions[0].description == "VIR CAFÉ"


class TestMatchScore:
    def test_exact_amount_same_day(self):
        assert match_score(Decimal("120.00"), date(2024, 3, 1), Decimal("120.00"), date(2024, 3, 1)) == 80

    def test_close_amount_within_a_week(self):
        assert match_score(Decimal("100.00"), date(2024, 3, 6), Decimal("99.50"), date(2024, 3, 1)) == 60

    def test_far_amount_without_due_date(self):
        assert match_score(Decimal("100.00"), date(2024, 3, 1), Decimal("50.00"), None) == 0

    def test_within_a_month(self):
        assert match_score(Decimal("100.00"), date(2024, 3, 31), Decimal("92.00"), date(2024, 3, 5)) == 20


@pytest.fixture
def account(organization):
    return BankAccount.objects.create(organization=organization, name="Compte courant", is_default=True)


def credit(account, amount, day=None, **kwargs):
    return BankTransaction.objects.create(
        organization=account.organization,
        bank_account=account,
        date=day or date.today(),
        description="VIR ACME",
        amount=Decimal(amount),
        type=BankTransaction.Type.CREDIT,
        **kwargs,
    )


@pytest.mark.django_db
class TestImport:
    def test_reimport_inserts_nothing(self, account):
        parsed = parse_ofx(STATEMENT).transactions

        first = import_transactions(account, parsed)
        second = import_transactions(account, parsed)

        assert (first.inserted, first.skipped) == (2, 0)
        assert (second.inserted, second.skipped) == (0, 2)
        assert BankTransaction.objects.filter(bank_account=account).count() == 2

    def test_duplicates_inside_one_file(self, account):
        parsed = parse_ofx(STATEMENT).transactions
        result = import_transactions(account, parsed + parsed[:1])
        assert (result.inserted, result.skipped) == (2, 1)

    def test_balance(self, account):
        import_transactions(account, parse_ofx(STATEMENT).transactions)
        assert account.balance == Decimal("1207.50")


@pytest.mark.django_db
class TestReconcile:
    def test_full_payment(self, account, make_invoice):
        invoice = make_invoice()
        tx = credit(account, "120.00")

        tx = reconcile(tx, invoice=invoice)

        invoice = Invoice.objects.get(pk=invoice.pk)
        assert tx.is_reconciled
        assert tx.matched_invoice == invoice
        assert invoice.state == Invoice.State.PAID
        assert invoice.amount_paid == Decimal("120.00")
        assert tx.matched_payment.amount == Decimal("120.00")

    def test_partial_payment(self, account, make_invoice):
        invoice = make_invoice()
        reconcile(credit(account, "50.00"), invoice=invoice)
        invoice = Invoice.objects.get(pk=invoice.pk)
        assert invoice.state == Invoice.State.PARTIALLY_PAID
        assert invoice.remaining == Decimal("70.00")

    def test_direction_must_match(self, account, make_invoice):
        invoice = make_invoice()
        tx = BankTransaction.objects.create(
            organization=account.organization, bank_account=account, date=date.today(),
            description="PRLV", amount=Decimal("120.00"), type=BankTransaction.Type.DEBIT,
        )
        with pytest.raises(ValueError):
            reconcile(tx, invoice=invoice)

    def test_cannot_reconcile_twice(self, account, make_invoice):
        tx = credit(account, "120.00")
        reconcile(tx, invoice=make_invoice())
        with pytest.raises(ValueError, match="déjà rapprochée"):
            reconcile(tx, invoice=make_invoice())

    def test_unreconcile_reverses_payment(self, account, make_invoice):
        invoice = make_invoice()
        tx = reconcile(credit(account, "120.00"), invoice=invoice)

        tx = unreconcile(tx)

        invoice = Invoice.objects.get(pk=invoice.pk)
        assert not tx.is_reconciled
        assert tx.matched_invoice is None
        assert invoice.state == Invoice.State.SENT
        assert invoice.amount_paid == Decimal("0.00")
        assert not Payment.objects.filter(invoice=invoice).exists()

    def test_mark_reconciled_without_document(self, account):
        tx = mark_reconciled(credit(account, "3.50"))
        assert tx.is_reconciled
        assert tx.matched_document is None
        assert bank_stats(account.organization).unreconciled_count == 0

    def test_suggestions_best_first(self, account, make_invoice):
        due = date.today() + timedelta(days=30)
        exact = make_invoice()
        make_invoice(lines=(("1", "500.00", "20"),))
        tx = credit(account, "120.00", day=due)

        suggestions = suggest_matches(tx)

        assert suggestions[0].document == exact
        assert suggestions[0].score == 80
        assert len(suggestions) == 2
