from django.conf import settings
from django.db import models


class Organization(models.Model):
    """Company using the application (the tenant).

    Key principle:
    - Almost every business object belongs to an Organization.
    - Organization holds the defaults printed on documents: legal identity, number series,
      payment terms, legal mentions and bank details.
    """

    name = models.CharField(max_length=255)
    legal_name = models.CharField(max_length=255, blank=True, default="")

    siret = models.CharField(max_length=20, blank=True, default="")
    vat_number = models.CharField(max_length=20, blank=True, default="")

    address_line1 = models.CharField(max_length=255, blank=True, default="")
    address_line2 = models.CharField(max_length=255, blank=True, default="")
    postal_code = models.CharField(max_length=10, blank=True, default="")
    city = models.CharField(max_length=100, blank=True, default="")
    country = models.CharField(max_length=100, default="France")

    phone = models.CharField(max_length=30, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    website = models.URLField(blank=True, default="")

    currency = models.CharField(max_length=3, default="EUR")

    # Number series used when documents are created
    invoice_series = models.ForeignKey("core.NumberSeries", null=True, blank=True, on_delete=models.PROTECT, related_name="+")
    quote_series = models.ForeignKey("core.NumberSeries", null=True, blank=True, on_delete=models.PROTECT, related_name="+")
    bill_series = models.ForeignKey("core.NumberSeries", null=True, blank=True, on_delete=models.PROTECT, related_name="+")

    default_payment_terms = models.PositiveIntegerField(default=30, help_text="Délai de paiement en jours")

    legal_mentions = models.TextField(blank=True, default="")
    bank_details = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    @property
    def full_address(self) -> str:
        parts = [self.address_line1, self.address_line2, f"{self.postal_code} {self.city}".strip()]
        return "\n".join(p for p in parts if p)

    def ensure_number_series(self):
        """Create and link the invoice/quote/bill series if they are missing."""
        from core.models.number_series import NumberSeries

        defaults = (
            ("invoice_series", NumberSeries.Code.INVOICE, "FAC"),
            ("quote_series", NumberSeries.Code.QUOTE, "DEV"),
            ("bill_series", NumberSeries.Code.BILL, "ACH"),
        )
        changed = []
        for field, code, prefix in defaults:
            if getattr(self, f"{field}_id"):
                continue
            series, _ = NumberSeries.objects.get_or_create(
                organization=self,
                code=code,
                defaults={"prefix": prefix},
            )
            setattr(self, field, series)
            changed.append(field)

        if changed:
            self.save(update_fields=changed)


class UserProfile(models.Model):
    """Connect a user to an Organization."""

    class Role(models.TextChoices):
        ADMIN = "admin", "Administrateur"
        MANAGER = "manager", "Responsable"
        SALES = "sales", "Commercial"
        ACCOUNTANT = "accountant", "Comptable"
        READONLY = "readonly", "Lecture seule"

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="profile")
    organization = models.ForeignKey("core.Organization", on_delete=models.CASCADE, related_name="users")

    role = models.CharField(max_length=20, choices=Role.choices, default=Role.SALES)
    phone = models.CharField(max_length=30, blank=True, default="")
    image_url = models.URLField(max_length=512, blank=True)

    is_organization_admin = models.BooleanField(default=False)

    def __str__(self):
        return f"{self.user} @ {self.organization}"

    def has_role(self, *roles) -> bool:
        if self.is_organization_admin or self.role == self.Role.ADMIN:
            return True
        return self.role in roles
