from decimal import Decimal

from django.db import models


class TaxRateQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def default_for(self, organization):
        return self.active().filter(organization=organization, is_default=True).first()


class TaxRate(models.Model):
    """VAT rate per organization.

    The rate is stored as a percentage (20.00 means 20 %), the way it is printed on
    French invoices. Document lines copy the percentage, so changing a rate later never
    changes the totals of existing documents.
    """

    organization = models.ForeignKey(
        "core.Organization",
        on_delete=models.CASCADE,
        related_name="tax_rates",
    )

    name = models.CharField(max_length=100, help_text="e.g. 'TVA 20%'")
    rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("20.00"))
    description = models.TextField(blank=True)

    is_default = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    objects = TaxRateQuerySet.as_manager()

    class Meta:
        unique_together = ("organization", "name")
        ordering = ["-rate", "name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.rate} %)"

    def save(self, *args, **kwargs):
        super().save(*args, **kwargs)
        if self.is_default:
            # only one default per organization
            (
                TaxRate.objects
                .filter(organization=self.organization, is_default=True)
                .exclude(pk=self.pk)
                .update(is_default=False)
            )
