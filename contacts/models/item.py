from decimal import Decimal

from django.db import models


class Item(models.Model):
    """Article: product or service that can be put on quote/invoice lines.

    Lines copy name, price and tax rate from the item when they are left empty.
    """

    class Type(models.TextChoices):
        PRODUCT = "product", "Produit"
        SERVICE = "service", "Service"

    organization = models.ForeignKey("core.Organization", on_delete=models.CASCADE, related_name="items")
    type = models.CharField(max_length=10, choices=Type.choices, default=Type.SERVICE)

    sku = models.CharField(max_length=50, blank=True, default="")
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")

    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    cost_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    tax_rate = models.ForeignKey("core.TaxRate", null=True, blank=True, on_delete=models.SET_NULL, related_name="+")

    unit = models.CharField(max_length=20, default="unité")
    category = models.CharField(max_length=100, blank=True, default="")

    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.sku} {self.name}".strip()

    @property
    def margin(self):
        if self.cost_price is None:
            return None
        return self.unit_price - self.cost_price
