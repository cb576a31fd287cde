from django.contrib import admin
from guardian.admin import GuardedModelAdminMixin
from unfold.admin import ModelAdmin

from contacts.models import Contact, Item
from core.admin_utils import OrganizationScopedAdminMixin


@admin.register(Contact)
class ContactAdmin(OrganizationScopedAdminMixin, GuardedModelAdminMixin, ModelAdmin):
    list_display = ("display_name", "type", "email", "phone", "billing_city", "is_active")
    list_filter = ("organization", "type", "is_active")
    search_fields = ("company_name", "first_name", "last_name", "email", "siret")


@admin.register(Item)
class ItemAdmin(OrganizationScopedAdminMixin, GuardedModelAdminMixin, ModelAdmin):
    list_display = ("sku", "name", "type", "unit_price", "cost_price", "tax_rate", "is_active")
    list_filter = ("organization", "type", "category", "is_active")
    search_fields = ("sku", "name")
