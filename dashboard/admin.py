from django.contrib import admin
from unfold.admin import ModelAdmin

from core.admin_utils import OrganizationScopedAdminMixin
from dashboard.models import DashboardConfig


@admin.register(DashboardConfig)
class DashboardConfigAdmin(OrganizationScopedAdminMixin, ModelAdmin):
    list_display = ("organization", "user", "dashboard_type", "is_default", "updated_at")
    list_filter = ("organization", "dashboard_type", "is_default")
