from django.contrib import admin
from django.utils.translation import gettext_lazy as _
from guardian.admin import GuardedModelAdminMixin
from unfold.admin import ModelAdmin

from core.admin_utils import OrganizationScopedAdminMixin
from core.models import NumberSeries, Organization, TaxRate, UserProfile


@admin.register(Organization)
class OrganizationAdmin(GuardedModelAdminMixin, ModelAdmin):
    list_display = ("id", "name", "siret", "city", "currency", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "legal_name", "siret", "vat_number")

    fieldsets = (
        (_("Identité"), {"fields": ("name", "legal_name", "siret", "vat_number", "is_active")}),
        (_("Coordonnées"), {"fields": ("address_line1", "address_line2", "postal_code", "city", "country", "phone", "email", "website")}),
        (_("Facturation"), {"fields": ("currency", "default_payment_terms", "invoice_series", "quote_series", "bill_series")}),
        (_("Mentions"), {"fields": ("legal_mentions", "bank_details")}),
    )


@admin.register(UserProfile)
class UserProfileAdmin(OrganizationScopedAdminMixin, ModelAdmin):
    list_display = ("user", "organization", "role", "is_organization_admin")
    list_filter = ("organization", "role", "is_organization_admin")
    search_fields = ("user__username", "user__email")


@admin.register(NumberSeries)
class NumberSeriesAdmin(OrganizationScopedAdminMixin, ModelAdmin):
    list_display = ("organization", "code", "prefix", "next_number", "min_width")
    list_filter = ("organization", "code")
    search_fields = ("code", "prefix")


@admin.register(TaxRate)
class TaxRateAdmin(OrganizationScopedAdminMixin, GuardedModelAdminMixin, ModelAdmin):
    list_display = ("organization", "name", "rate", "is_default", "is_active")
    list_filter = ("organization", "is_default", "is_active")
    search_fields = ("name",)
