from django.conf import settings
from django.db import models
from django.utils import timezone


class Reminder(models.Model):
    """Personal reminder, optionally linked to a prospect, contact, quote or invoice."""

    class Recurrence(models.TextChoices):
        NONE = "none", "Aucune"
        DAILY = "daily", "Quotidienne"
        WEEKLY = "weekly", "Hebdomadaire"
        MONTHLY = "monthly", "Mensuelle"

    organization = models.ForeignKey("core.Organization", on_delete=models.CASCADE, related_name="reminders")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="reminders")

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    remind_at = models.DateTimeField()

    is_completed = models.BooleanField(default=False)
    completed_at = models.DateTimeField(null=True, blank=True)

    prospect = models.ForeignKey("crm.Prospect", null=True, blank=True, on_delete=models.CASCADE, related_name="reminders")
    contact = models.ForeignKey("contacts.Contact", null=True, blank=True, on_delete=models.CASCADE, related_name="reminders")
    quote = models.ForeignKey("documents.Quote", null=True, blank=True, on_delete=models.CASCADE, related_name="reminders")
    invoice = models.ForeignKey("documents.Invoice", null=True, blank=True, on_delete=models.CASCADE, related_name="reminders")

    recurrence = models.CharField(max_length=10, choices=Recurrence.choices, default=Recurrence.NONE)
    recurrence_end_date = models.DateField(null=True, blank=True)
    # day of month the monthly series was started on
    recurrence_day = models.PositiveSmallIntegerField(null=True, blank=True)

    source_rule = models.ForeignKey("reminders.AutoReminderRule", null=True, blank=True, on_delete=models.SET_NULL, related_name="reminders")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["is_completed", "remind_at"]
        indexes = [
            models.Index(fields=["user", "is_completed", "remind_at"]),
        ]

    def __str__(self):
        return self.title

    @property
    def related_object(self):
        return self.prospect or self.contact or self.quote or self.invoice

    @property
    def is_recurring(self) -> bool:
        return self.recurrence != self.Recurrence.NONE

    def is_overdue(self, now=None) -> bool:
        return not self.is_completed and self.remind_at < (now or timezone.now())


class AutoReminderRule(models.Model):
    """Follow-up rule: prospects stuck in a status for N days trigger an action."""

    class ActionType(models.TextChoices):
        REMINDER = "reminder", "Créer un rappel"
        NOTIFICATION = "notification", "Envoyer une notification"
        STATUS_CHANGE = "status_change", "Changer le statut"

    class Priority(models.TextChoices):
        LOW = "low", "Basse"
        NORMAL = "normal", "Normale"
        HIGH = "high", "Haute"
        URGENT = "urgent", "Urgente"

    organization = models.ForeignKey("core.Organization", on_delete=models.CASCADE, related_name="auto_reminder_rules")
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")

    trigger_status = models.ForeignKey("crm.ProspectStatus", null=True, blank=True, on_delete=models.CASCADE, related_name="+", help_text="Vide = tous les statuts")
    days_in_status = models.PositiveIntegerField(default=7)

    action_type = models.CharField(max_length=20, choices=ActionType.choices, default=ActionType.REMINDER)
    reminder_title = models.CharField(max_length=255, blank=True, default="")
    reminder_message = models.TextField(blank=True, default="")
    new_status = models.ForeignKey("crm.ProspectStatus", null=True, blank=True, on_delete=models.SET_NULL, related_name="+")

    notify_assigned_to = models.BooleanField(default=True)
    notify_created_by = models.BooleanField(default=True)
    priority = models.CharField(max_length=10, choices=Priority.choices, default=Priority.NORMAL)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class AutoReminderLog(models.Model):
    """One row per rule, prospect and stay in a status: a rule fires once per status period."""

    rule = models.ForeignKey(AutoReminderRule, on_delete=models.CASCADE, related_name="logs")
    prospect = models.ForeignKey("crm.Prospect", on_delete=models.CASCADE, related_name="+")
    status_changed_at = models.DateTimeField()
    triggered_at = models.DateTimeField(auto_now_add=True)
    reminder = models.ForeignKey(Reminder, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["rule", "prospect", "status_changed_at"], name="uniq_auto_reminder_per_period"),
        ]


class Notification(models.Model):
    organization = models.ForeignKey("core.Organization", on_delete=models.CASCADE, related_name="notifications")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications")
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True, default="")
    link = models.CharField(max_length=500, blank=True, default="")
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "is_read"]),
        ]

    def __str__(self):
        return self.title
