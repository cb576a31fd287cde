from django.db import models
from taggit.managers import TaggableManager

from core.services.siren import clean_digits, vat_number_from_siret


class ContactQuerySet(models.QuerySet):
    def clients(self):
        return self.filter(type__in=[Contact.Type.CLIENT, Contact.Type.BOTH])

    def suppliers(self):
        return self.filter(type__in=[Contact.Type.SUPPLIER, Contact.Type.BOTH])


class Contact(models.Model):
    """Client and/or supplier.

    A company is identified by company_name; private persons only have first/last name.
    """

    class Type(models.TextChoices):
        CLIENT = "client", "Client"
        SUPPLIER = "supplier", "Fournisseur"
        BOTH = "both", "Client et fournisseur"

    organization = models.ForeignKey("core.Organization", on_delete=models.CASCADE, related_name="contacts")
    type = models.CharField(max_length=10, choices=Type.choices, default=Type.CLIENT)

    company_name = models.CharField(max_length=255, blank=True, default="")
    first_name = models.CharField(max_length=100, blank=True, default="")
    last_name = models.CharField(max_length=100, blank=True, default="")

    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=30, blank=True, default="")
    mobile = models.CharField(max_length=30, blank=True, default="")

    siret = models.CharField(max_length=20, blank=True, default="")
    vat_number = models.CharField(max_length=20, blank=True, default="")

    billing_address_line1 = models.CharField(max_length=255, blank=True, default="")
    billing_address_line2 = models.CharField(max_length=255, blank=True, default="")
    billing_postal_code = models.CharField(max_length=10, blank=True, default="")
    billing_city = models.CharField(max_length=100, blank=True, default="")
    billing_country = models.CharField(max_length=100, default="France")

    shipping_address_line1 = models.CharField(max_length=255, blank=True, default="")
    shipping_postal_code = models.CharField(max_length=10, blank=True, default="")
    shipping_city = models.CharField(max_length=100, blank=True, default="")

    payment_terms = models.PositiveIntegerField(null=True, blank=True, help_text="Jours (vide = délai de l'organisation)")
    notes = models.TextField(blank=True, default="")

    tags = TaggableManager(blank=True)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = ContactQuerySet.as_manager()

    class Meta:
        ordering = ["company_name", "last_name", "first_name"]
        indexes = [
            models.Index(fields=["organization", "type"]),
        ]

    def __str__(self):
        return self.display_name

    @property
    def display_name(self) -> str:
        if self.company_name:
            return self.company_name
        full = f"{self.first_name} {self.last_name}".strip()
        return full or f"Contact #{self.pk}"

    @property
    def billing_address(self) -> str:
        city = f"{self.billing_postal_code} {self.billing_city}".strip()
        parts = [self.billing_address_line1, self.billing_address_line2, city]
        return "\n".join(p for p in parts if p)

    @property
    def is_client(self) -> bool:
        return self.type in (self.Type.CLIENT, self.Type.BOTH)

    def payment_terms_days(self) -> int:
        if self.payment_terms is not None:
            return self.payment_terms
        return self.organization.default_payment_terms

    def save(self, *args, **kwargs):
        self.siret = clean_digits(self.siret)
        if self.siret and not self.vat_number:
            self.vat_number = vat_number_from_siret(self.siret)
        super().save(*args, **kwargs)
