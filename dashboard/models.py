from django.conf import settings
from django.db import models


class DashboardConfig(models.Model):
    """Widget layout of one user's dashboard.

    `widgets` is a list of {"id", "type", "title", "x", "y", "w", "h", "config"} on a
    12-column grid.
    """

    class DashboardType(models.TextChoices):
        DEFAULT = "default", "Général"
        COMMERCIAL = "commercial", "Commercial"
        FINANCE = "finance", "Finance"

    organization = models.ForeignKey("core.Organization", on_delete=models.CASCADE, related_name="dashboard_configs")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.CASCADE, related_name="dashboard_configs")
    dashboard_type = models.CharField(max_length=20, choices=DashboardType.choices, default=DashboardType.DEFAULT)
    widgets = models.JSONField(default=list, blank=True)
    is_default = models.BooleanField(default=False, help_text="Disposition proposée aux utilisateurs sans configuration")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["organization", "user", "dashboard_type"], name="uniq_dashboard_per_user_type"),
        ]

    def __str__(self):
        return f"{self.get_dashboard_type_display()} - {self.user or 'organisation'}"
