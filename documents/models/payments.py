from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


class Payment(models.Model):
    """Money received for an invoice or paid for a supplier bill.

    amount_paid on the document is the sum of its payments; payments are only created
    and removed through documents.services.payments so both stay in step.
    """

    class Method(models.TextChoices):
        BANK_TRANSFER = "bank_transfer", "Virement"
        CARD = "card", "Carte bancaire"
        CASH = "cash", "Espèces"
        CHECK = "check", "Chèque"
        OTHER = "other", "Autre"

    organization = models.ForeignKey("core.Organization", on_delete=models.CASCADE, related_name="payments")
    invoice = models.ForeignKey("documents.Invoice", null=True, blank=True, on_delete=models.CASCADE, related_name="payments")
    bill = models.ForeignKey("documents.Bill", null=True, blank=True, on_delete=models.CASCADE, related_name="payments")

    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    date = models.DateField(default=timezone.localdate)
    method = models.CharField(max_length=20, choices=Method.choices, default=Method.BANK_TRANSFER)
    reference = models.CharField(max_length=255, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-date", "-id")

    def __str__(self):
        return f"{self.amount} {self.get_method_display()} ({self.document})"

    @property
    def document(self):
        return self.invoice or self.bill

    def clean(self):
        if bool(self.invoice_id) == bool(self.bill_id):
            raise ValidationError("Un paiement concerne soit une facture, soit une facture fournisseur.")
