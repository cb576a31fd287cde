from django.contrib import admin
from unfold.admin import ModelAdmin

from core.admin_utils import OrganizationScopedAdminMixin
from reminders.models import AutoReminderRule, Notification, Reminder


@admin.register(Reminder)
class ReminderAdmin(OrganizationScopedAdminMixin, ModelAdmin):
    list_display = ("title", "user", "remind_at", "recurrence", "is_completed", "source_rule")
    list_filter = ("organization", "is_completed", "recurrence")
    search_fields = ("title", "description")
    date_hierarchy = "remind_at"


@admin.register(AutoReminderRule)
class AutoReminderRuleAdmin(OrganizationScopedAdminMixin, ModelAdmin):
    list_display = ("name", "trigger_status", "days_in_status", "action_type", "priority", "is_active")
    list_filter = ("organization", "action_type", "is_active")


@admin.register(Notification)
class NotificationAdmin(OrganizationScopedAdminMixin, ModelAdmin):
    list_display = ("title", "user", "created_at", "is_read")
    list_filter = ("organization", "is_read")
