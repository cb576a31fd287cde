from decimal import Decimal

from django.conf import settings
from django.db import models

from documents.services.totals import compute_margin, compute_totals, line_total, vat_breakdown


class CommercialDocument(models.Model):
    """Fields and behaviour shared by quotes, invoices and supplier bills.

    Subclasses set `number_series_field` to the Organization FK that numbers them and
    define their own FSM `state` field and transitions.
    """

    number_series_field = None

    organization = models.ForeignKey("core.Organization", on_delete=models.CASCADE, related_name="%(class)ss")
    contact = models.ForeignKey("contacts.Contact", on_delete=models.PROTECT, related_name="%(class)ss")

    number = models.CharField(max_length=40, blank=True, default="")
    date = models.DateField()
    notes = models.TextField(blank=True, default="")

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ("-date", "-id")

    def __str__(self):
        return self.number or f"#{self.pk}"

    def _allocate_number_if_missing(self):
        """Documents are numbered on first save (FAC-00001, DEV-00001, ...)."""
        if self.number or not self.number_series_field:
            return
        series = getattr(self.organization, self.number_series_field)
        if series is None:
            self.organization.ensure_number_series()
            series = getattr(self.organization, self.number_series_field)
        self.number = series.allocate()

    def save(self, *args, **kwargs):
        self._allocate_number_if_missing()
        super().save(*args, **kwargs)

    def _ensure_lines(self):
        """Transition precondition: document must have at least one priced line."""
        if not self.lines.filter(line_type=DocumentLine.LineType.ITEM).exists():
            raise ValueError("Le document ne contient aucune ligne.")

    def recalc_totals(self):
        totals = compute_totals(self.lines.all())
        self.subtotal = totals.subtotal
        self.tax_amount = totals.tax_amount
        self.total = totals.total
        self.save(update_fields=["subtotal", "tax_amount", "total", "updated_at"])
        return totals

    def vat_breakdown(self):
        return vat_breakdown(self.lines.all())

    def margin(self):
        return compute_margin(self.lines.all())


class PayableDocument(CommercialDocument):
    """Document that can be (partially) paid: invoices and supplier bills."""

    due_date = models.DateField(null=True, blank=True)
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta(CommercialDocument.Meta):
        abstract = True

    @property
    def remaining(self) -> Decimal:
        return (self.total or Decimal("0.00")) - (self.amount_paid or Decimal("0.00"))

    def payment_state(self, unpaid_state):
        """State implied by amount_paid: paid, partially paid, or `unpaid_state`.

        A zero-total document counts as paid once anything has been paid on it.
        """
        if self.amount_paid > 0 and self.amount_paid >= self.total:
            return self.State.PAID
        if self.amount_paid > 0:
            return self.State.PARTIALLY_PAID
        return unpaid_state


class DocumentLine(models.Model):
    """Line on a quote, invoice or bill.

    Defaulting from the item (description, price, VAT, cost) is done in save() in a
    simple, explicit way. Subclasses set `parent_field` to the name of their FK.
    """

    parent_field = None

    class LineType(models.TextChoices):
        ITEM = "item", "Article"
        TEXT = "text", "Texte"
        SECTION = "section", "Section"

    position = models.IntegerField(default=0)
    line_type = models.CharField(max_length=10, choices=LineType.choices, default=LineType.ITEM)

    item = models.ForeignKey("contacts.Item", null=True, blank=True, on_delete=models.PROTECT, related_name="+")
    description = models.CharField(max_length=500, blank=True, default="")

    quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal("1.000"))
    unit = models.CharField(max_length=20, blank=True, default="")
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("20.00"))
    cost_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    line_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        abstract = True
        ordering = ["position", "id"]

    def __str__(self):
        return self.description or f"Ligne {self.position}"

    def _siblings(self):
        parent_id = getattr(self, f"{self.parent_field}_id")
        return type(self).objects.filter(**{f"{self.parent_field}_id": parent_id})

    def save(self, *args, **kwargs):
        if self._state.adding and not self.position:
            last = self._siblings().order_by("-position").values_list("position", flat=True).first()
            self.position = (last or 0) + 1

        if self.item_id:
            item = self.item
            if not self.description:
                self.description = item.name
            if not self.unit_price:
                self.unit_price = item.unit_price
            if not self.unit:
                self.unit = item.unit
            if self.cost_price is None:
                self.cost_price = item.cost_price

        if self.line_type == self.LineType.ITEM:
            self.line_total = line_total(self.quantity, self.unit_price, self.discount_percent)
        else:
            self.line_total = Decimal("0.00")

        super().save(*args, **kwargs)

    def copy_values(self) -> dict:
        """Field values needed to copy this line onto another document."""
        return {
            "position": self.position,
            "line_type": self.line_type,
            "item_id": self.item_id,
            "description": self.description,
            "quantity": self.quantity,
            "unit": self.unit,
            "unit_price": self.unit_price,
            "discount_percent": self.discount_percent,
            "tax_rate": self.tax_rate,
            "cost_price": self.cost_price,
        }
