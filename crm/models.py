from django.conf import settings
from django.db import models
from django.utils import timezone
from simple_history.models import HistoricalRecords

from core.services.siren import clean_digits, siren_from_siret, vat_number_from_siren


class ProspectStatus(models.Model):
    """Step of the prospection pipeline, configurable per organization.

    Exactly one status is the default for new prospects. A final positive status means
    "signed" (conversion), a final negative one means "lost".
    """

    organization = models.ForeignKey("core.Organization", on_delete=models.CASCADE, related_name="prospect_statuses")
    name = models.CharField(max_length=100)
    color = models.CharField(max_length=7, default="#6B7280")
    position = models.IntegerField(default=0)

    is_default = models.BooleanField(default=False)
    is_final_positive = models.BooleanField(default=False)
    is_final_negative = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    class Meta:
        unique_together = ("organization", "name")
        ordering = ["position", "name"]
        verbose_name_plural = "prospect statuses"

    def __str__(self):
        return self.name

    @property
    def is_final(self) -> bool:
        return self.is_final_positive or self.is_final_negative


class Prospect(models.Model):
    organization = models.ForeignKey("core.Organization", on_delete=models.CASCADE, related_name="prospects")

    company_name = models.CharField(max_length=255)
    siren = models.CharField(max_length=9, blank=True, default="")
    siret = models.CharField(max_length=14, blank=True, default="")
    vat_number = models.CharField(max_length=20, blank=True, default="")
    legal_form = models.CharField(max_length=100, blank=True, default="")
    naf_code = models.CharField(max_length=10, blank=True, default="")

    address_line1 = models.CharField(max_length=255, blank=True, default="")
    address_line2 = models.CharField(max_length=255, blank=True, default="")
    postal_code = models.CharField(max_length=10, blank=True, default="")
    city = models.CharField(max_length=100, blank=True, default="")
    country = models.CharField(max_length=100, default="France")

    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    geocoded_at = models.DateTimeField(null=True, blank=True)

    status = models.ForeignKey(ProspectStatus, null=True, blank=True, on_delete=models.SET_NULL, related_name="prospects")
    status_changed_at = models.DateTimeField(default=timezone.now)
    assigned_to = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="assigned_prospects")

    source = models.CharField(max_length=100, blank=True, default="")
    website = models.URLField(blank=True, default="")
    phone = models.CharField(max_length=30, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    notes = models.TextField(blank=True, default="")

    contact = models.ForeignKey("contacts.Contact", null=True, blank=True, on_delete=models.SET_NULL, related_name="prospects")
    converted_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    history = HistoricalRecords()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["organization", "status"]),
            models.Index(fields=["organization", "siret"]),
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._loaded_status_id = self.status_id

    def __str__(self):
        return self.company_name

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def full_address(self) -> str:
        parts = [self.address_line1, self.address_line2, f"{self.postal_code} {self.city}".strip()]
        return ", ".join(p for p in parts if p)

    @property
    def is_converted(self) -> bool:
        return self.contact_id is not None

    def save(self, *args, **kwargs):
        # SIRET -> SIREN -> VAT number
        self.siret = clean_digits(self.siret)
        if self.siret and not self.siren:
            self.siren = siren_from_siret(self.siret)
        if self.siren and not self.vat_number:
            self.vat_number = vat_number_from_siren(self.siren)

        if self.status_id != self._loaded_status_id:
            self.status_changed_at = timezone.now()
            update_fields = kwargs.get("update_fields")
            if update_fields is not None and "status_changed_at" not in update_fields:
                kwargs["update_fields"] = list(update_fields) + ["status_changed_at"]

        super().save(*args, **kwargs)
        self._loaded_status_id = self.status_id


class ProspectContact(models.Model):
    """Person met at the prospect (before it becomes a client contact)."""

    prospect = models.ForeignKey(Prospect, on_delete=models.CASCADE, related_name="contacts")
    name = models.CharField(max_length=255)
    role = models.CharField(max_length=100, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=30, blank=True, default="")
    is_primary = models.BooleanField(default=False)

    class Meta:
        ordering = ["-is_primary", "name"]

    def __str__(self):
        return self.name


class ProspectVisit(models.Model):
    prospect = models.ForeignKey(Prospect, on_delete=models.CASCADE, related_name="visits")
    visited_at = models.DateTimeField(default=timezone.now)
    visited_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")

    status_before = models.ForeignKey(ProspectStatus, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    status_after = models.ForeignKey(ProspectStatus, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")

    duration_minutes = models.PositiveIntegerField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")
    next_action = models.CharField(max_length=255, blank=True, default="")
    next_action_date = models.DateField(null=True, blank=True)

    class Meta:
        ordering = ["-visited_at"]

    def __str__(self):
        return f"{self.prospect} {self.visited_at:%d/%m/%Y}"


class ProspectNote(models.Model):
    prospect = models.ForeignKey(Prospect, on_delete=models.CASCADE, related_name="prospect_notes")
    author = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.content[:50]
