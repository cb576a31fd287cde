from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q, Sum, UniqueConstraint
from simple_history.models import HistoricalRecords


class BankAccount(models.Model):
    organization = models.ForeignKey("core.Organization", on_delete=models.CASCADE, related_name="bank_accounts")
    name = models.CharField(max_length=120, default="Compte principal")

    bank_name = models.CharField(max_length=120, blank=True, default="")
    iban = models.CharField(max_length=34, blank=True, default="")
    bic = models.CharField(max_length=11, blank=True, default="")
    account_holder = models.CharField(max_length=255, blank=True, default="")

    initial_balance = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="EUR")

    is_default = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    class Meta:
        unique_together = [("organization", "name")]
        ordering = ["-is_default", "name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.bank_name})" if self.bank_name else self.name

    @property
    def balance(self) -> Decimal:
        """Initial balance + credits - debits."""
        agg = self.transactions.aggregate(
            credits=Sum("amount", filter=Q(type=BankTransaction.Type.CREDIT)),
            debits=Sum("amount", filter=Q(type=BankTransaction.Type.DEBIT)),
        )
        return self.initial_balance + (agg["credits"] or Decimal("0.00")) - (agg["debits"] or Decimal("0.00"))


class BankTransaction(models.Model):
    """One line of a bank statement.

    The amount is always positive; the direction is in `type`. `import_hash` identifies
    the bank's transaction (FITID) so that importing the same statement twice is a no-op.
    """

    class Type(models.TextChoices):
        CREDIT = "credit", "Crédit"
        DEBIT = "debit", "Débit"

    organization = models.ForeignKey("core.Organization", on_delete=models.CASCADE, related_name="bank_transactions")
    bank_account = models.ForeignKey(BankAccount, null=True, blank=True, on_delete=models.CASCADE, related_name="transactions")

    date = models.DateField()
    description = models.CharField(max_length=500)
    amount = models.DecimalField(max_digits=15, decimal_places=2)
    type = models.CharField(max_length=10, choices=Type.choices)
    reference = models.CharField(max_length=255, blank=True, default="")
    import_hash = models.CharField(max_length=255, blank=True, default="")

    category = models.CharField(max_length=100, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    is_reconciled = models.BooleanField(default=False)
    matched_invoice = models.ForeignKey("documents.Invoice", null=True, blank=True, on_delete=models.SET_NULL, related_name="bank_transactions")
    matched_bill = models.ForeignKey("documents.Bill", null=True, blank=True, on_delete=models.SET_NULL, related_name="bank_transactions")
    matched_payment = models.ForeignKey("documents.Payment", null=True, blank=True, on_delete=models.SET_NULL, related_name="bank_transactions")
    reconciled_at = models.DateTimeField(null=True, blank=True)
    reconciled_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")

    created_at = models.DateTimeField(auto_now_add=True)

    history = HistoricalRecords()

    class Meta:
        ordering = ("-date", "-id")
        constraints = [
            UniqueConstraint(
                fields=["organization", "import_hash"],
                condition=~Q(import_hash=""),
                name="uniq_bank_transaction_import_hash",
            ),
        ]
        indexes = [
            models.Index(fields=["organization", "is_reconciled", "date"]),
        ]

    def __str__(self) -> str:
        sign = "+" if self.type == self.Type.CREDIT else "-"
        return f"{self.date} {sign}{self.amount} {self.description}"

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.type == self.Type.CREDIT else -self.amount

    @property
    def matched_document(self):
        return self.matched_invoice or self.matched_bill
