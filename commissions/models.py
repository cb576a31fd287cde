from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition
from django_fsm_log.decorators import fsm_log_by
from simple_history.models import HistoricalRecords


class CommissionRule(models.Model):
    """How a salesperson earns a commission on a paid invoice (amounts HT).

    `tiers` is a list of {"min": 0, "max": 10000, "rate": 5}; `max` may be null for the
    last tier. Percentages are stored as percent values (5 = 5 %).
    """

    class RuleType(models.TextChoices):
        PERCENTAGE = "percentage", "Pourcentage"
        FIXED = "fixed", "Montant fixe"
        TIERED = "tiered", "Par paliers"
        BONUS = "bonus", "Prime seule"

    organization = models.ForeignKey("core.Organization", on_delete=models.CASCADE, related_name="commission_rules")
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    rule_type = models.CharField(max_length=20, choices=RuleType.choices, default=RuleType.PERCENTAGE)

    percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    fixed_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tiers = models.JSONField(default=list, blank=True)

    bonus_threshold_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    bonus_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))

    applies_to_user = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.CASCADE, related_name="commission_rules", help_text="Vide = tous les commerciaux")
    min_invoice_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    priority = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-priority", "name"]

    def __str__(self):
        return self.name


class Commission(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "En attente"
        APPROVED = "approved", "Approuvée"
        PAID = "paid", "Payée"
        CANCELLED = "cancelled", "Annulée"

    organization = models.ForeignKey("core.Organization", on_delete=models.CASCADE, related_name="commissions")
    invoice = models.ForeignKey("documents.Invoice", on_delete=models.CASCADE, related_name="commissions")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="commissions")
    rule = models.ForeignKey(CommissionRule, null=True, blank=True, on_delete=models.SET_NULL, related_name="commissions")

    invoice_amount = models.DecimalField(max_digits=12, decimal_places=2)
    commission_rate = models.DecimalField(max_digits=7, decimal_places=2, default=Decimal("0.00"))
    commission_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    bonus_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    status = FSMField(default=Status.PENDING, choices=Status.choices, protected=True)

    period_month = models.PositiveSmallIntegerField()
    period_year = models.PositiveSmallIntegerField()

    approved_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    approved_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    payment_reference = models.CharField(max_length=100, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    history = HistoricalRecords()

    class Meta:
        ordering = ["-period_year", "-period_month", "-id"]
        constraints = [
            models.UniqueConstraint(fields=["invoice", "user"], name="uniq_commission_per_invoice_user"),
        ]
        indexes = [
            models.Index(fields=["organization", "status"]),
            models.Index(fields=["organization", "user", "period_year", "period_month"]),
        ]

    def __str__(self):
        return f"{self.invoice} / {self.user} : {self.total_amount}"

    @fsm_log_by
    @transition(field=status, source=Status.PENDING, target=Status.APPROVED)
    def approve(self, by=None):
        self.approved_by = by
        self.approved_at = timezone.now()

    @fsm_log_by
    @transition(field=status, source=Status.APPROVED, target=Status.PAID)
    def mark_paid(self, reference="", by=None):
        self.paid_at = timezone.now()
        self.payment_reference = reference

    @fsm_log_by
    @transition(field=status, source=[Status.PENDING, Status.APPROVED], target=Status.CANCELLED)
    def cancel(self, by=None):
        pass


class CommissionTarget(models.Model):
    class PeriodType(models.TextChoices):
        MONTHLY = "monthly", "Mensuel"
        QUARTERLY = "quarterly", "Trimestriel"
        YEARLY = "yearly", "Annuel"

    organization = models.ForeignKey("core.Organization", on_delete=models.CASCADE, related_name="commission_targets")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="commission_targets")
    period_type = models.CharField(max_length=10, choices=PeriodType.choices, default=PeriodType.MONTHLY)
    period_start = models.DateField()
    period_end = models.DateField()

    target_amount = models.DecimalField(max_digits=12, decimal_places=2)
    achieved_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    bonus_threshold_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("100.00"))
    bonus_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-period_start", "user"]
        unique_together = ("user", "period_type", "period_start")

    def __str__(self):
        return f"{self.user} {self.period_start:%m/%Y}"

    @property
    def progress_percent(self) -> Decimal:
        if not self.target_amount:
            return Decimal("0.00")
        return (self.achieved_amount * 100 / self.target_amount).quantize(Decimal("0.01"))

    @property
    def bonus_reached(self) -> bool:
        return self.progress_percent >= self.bonus_threshold_percent
