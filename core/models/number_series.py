from django.db import models, transaction


class NumberSeries(models.Model):
    """Simple, readable number series.

    The important part is *concurrency safety*:
    - We lock the NumberSeries row in the database (select_for_update)
    - We read next_number
    - We increment next_number and save
    - We return a formatted string (prefix + separator + zero-padded number)

    This guarantees that two users creating invoices at the same time do not get the
    same number. French invoices must be numbered without gaps, so numbers are only
    allocated when a document is actually saved.
    """

    class Code(models.TextChoices):
        INVOICE = "invoice", "Factures"
        QUOTE = "quote", "Devis"
        BILL = "bill", "Factures fournisseurs"

    organization = models.ForeignKey("core.Organization", on_delete=models.CASCADE, related_name="number_series")

    code = models.CharField(max_length=50, choices=Code.choices)
    prefix = models.CharField(max_length=50, blank=True, default="")
    separator = models.CharField(max_length=5, blank=True, default="-")
    next_number = models.IntegerField(default=1)
    min_width = models.IntegerField(default=5)

    class Meta:
        unique_together = ("organization", "code")
        ordering = ["code"]
        verbose_name_plural = "number series"

    def __str__(self):
        return f"{self.organization} {self.code}"

    def format(self, number: int) -> str:
        body = str(number).zfill(self.min_width)
        if not self.prefix:
            return body
        return f"{self.prefix}{self.separator}{body}"

    @property
    def preview(self) -> str:
        return self.format(self.next_number)

    @transaction.atomic
    def allocate(self) -> str:
        """Allocate the next number without duplicates.

        The lock is held until the transaction commits, so no other allocation can read
        the old next_number in parallel.
        """
        series = type(self).objects.select_for_update().get(pk=self.pk)

        current = series.next_number
        series.next_number = current + 1
        series.save(update_fields=["next_number"])

        return series.format(current)
