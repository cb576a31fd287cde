from django.contrib import admin
from guardian.admin import GuardedModelAdminMixin
from simple_history.admin import SimpleHistoryAdmin
from unfold.admin import ModelAdmin, TabularInline

from core.admin_utils import OrganizationScopedAdminMixin
from crm.models import Prospect, ProspectContact, ProspectNote, ProspectStatus, ProspectVisit


@admin.register(ProspectStatus)
class ProspectStatusAdmin(OrganizationScopedAdminMixin, ModelAdmin):
    list_display = ("organization", "position", "name", "color", "is_default", "is_final_positive", "is_final_negative", "is_active")
    list_display_links = ("name",)
    list_filter = ("organization", "is_active")
    ordering = ("organization", "position")


class ProspectContactInline(TabularInline):
    model = ProspectContact
    extra = 0


class ProspectVisitInline(TabularInline):
    model = ProspectVisit
    fk_name = "prospect"
    extra = 0
    fields = ("visited_at", "visited_by", "status_before", "status_after", "notes")
    readonly_fields = ("status_before",)


class ProspectNoteInline(TabularInline):
    model = ProspectNote
    extra = 0


@admin.register(Prospect)
class ProspectAdmin(OrganizationScopedAdminMixin, GuardedModelAdminMixin, SimpleHistoryAdmin, ModelAdmin):
    list_display = ("company_name", "city", "status", "assigned_to", "source", "siret", "is_converted")
    list_filter = ("organization", "status", "source")
    search_fields = ("company_name", "siret", "city", "email")
    readonly_fields = ("siren", "vat_number", "geocoded_at", "status_changed_at", "contact", "converted_at")
    inlines = [ProspectContactInline, ProspectVisitInline, ProspectNoteInline]

    @admin.display(boolean=True, description="Client")
    def is_converted(self, obj):
        return obj.is_converted


@admin.register(ProspectVisit)
class ProspectVisitAdmin(ModelAdmin):
    list_display = ("prospect", "visited_at", "visited_by", "status_before", "status_after", "next_action_date")
    list_filter = ("prospect__organization", "visited_by")
    date_hierarchy = "visited_at"
    search_fields = ("prospect__company_name", "notes")
