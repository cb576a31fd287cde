from django.contrib import admin
from guardian.admin import GuardedModelAdminMixin
from simple_history.admin import SimpleHistoryAdmin
from unfold.admin import ModelAdmin

from bankrec.models import BankAccount, BankTransaction
from core.admin_utils import OrganizationScopedAdminMixin


@admin.register(BankAccount)
class BankAccountAdmin(OrganizationScopedAdminMixin, GuardedModelAdminMixin, ModelAdmin):
    list_display = ("organization", "name", "bank_name", "iban", "initial_balance", "is_default", "is_active")
    list_filter = ("organization", "is_active")
    search_fields = ("name", "bank_name", "iban")


@admin.register(BankTransaction)
class BankTransactionAdmin(OrganizationScopedAdminMixin, SimpleHistoryAdmin, ModelAdmin):
    list_display = ("date", "description", "type", "amount", "bank_account", "is_reconciled", "matched_invoice", "matched_bill")
    list_filter = ("organization", "bank_account", "type", "is_reconciled")
    search_fields = ("description", "reference", "import_hash")
    date_hierarchy = "date"
    readonly_fields = ("import_hash", "matched_invoice", "matched_bill", "matched_payment", "reconciled_at", "reconciled_by")
