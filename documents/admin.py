from django.contrib import admin, messages
from django.db import transaction
from django_fsm import can_proceed
from django_object_actions import DjangoObjectActions, action
from guardian.admin import GuardedModelAdminMixin
from simple_history.admin import SimpleHistoryAdmin
from unfold.admin import ModelAdmin, TabularInline

from core.admin_utils import OrganizationScopedAdminMixin
from documents.models import Bill, BillLine, Invoice, InvoiceLine, Payment, Quote, QuoteLine
from documents.services.conversion import create_invoice_from_quote

LINE_FIELDS = ("position", "line_type", "item", "description", "quantity", "unit", "unit_price", "discount_percent", "tax_rate", "line_total")


class QuoteLineInline(TabularInline):
    model = QuoteLine
    extra = 0
    fields = LINE_FIELDS
    readonly_fields = ("line_total",)


class InvoiceLineInline(TabularInline):
    model = InvoiceLine
    extra = 0
    fields = LINE_FIELDS
    readonly_fields = ("line_total",)


class BillLineInline(TabularInline):
    model = BillLine
    extra = 0
    fields = LINE_FIELDS
    readonly_fields = ("line_total",)


class PaymentInline(TabularInline):
    model = Payment
    extra = 0
    fields = ("date", "amount", "method", "reference")
    readonly_fields = fields
    can_delete = False


class DocumentAdmin(DjangoObjectActions, OrganizationScopedAdminMixin, GuardedModelAdminMixin, SimpleHistoryAdmin, ModelAdmin):
    """Shared admin: state is read-only, lines are edited inline and totals recomputed on save."""

    readonly_fields = ("state", "number", "subtotal", "tax_amount", "total")
    search_fields = ("number", "contact__company_name", "contact__last_name")
    date_hierarchy = "date"

    def save_related(self, request, form, formsets, change):
        super().save_related(request, form, formsets, change)
        form.instance.recalc_totals()

    def _transition(self, request, obj, name, done_message):
        method = getattr(obj, name)
        if not can_proceed(method):
            self.message_user(request, "Action impossible depuis le statut actuel.", level=messages.ERROR)
            return
        try:
            with transaction.atomic():
                method(by=request.user)
                obj.save()
            self.message_user(request, done_message, level=messages.SUCCESS)
        except ValueError as e:
            self.message_user(request, f"Action impossible : {e}", level=messages.ERROR)


@admin.register(Quote)
class QuoteAdmin(DocumentAdmin):
    inlines = [QuoteLineInline]
    list_display = ("number", "date", "contact", "state", "total", "salesperson")
    list_filter = ("organization", "state", "salesperson")

    change_actions = ("send_action", "accept_action", "convert_action")

    @action(label="Envoyer", description="Marquer le devis comme envoyé")
    def send_action(self, request, obj):
        self._transition(request, obj, "send", "Devis envoyé.")

    @action(label="Accepter", description="Marquer le devis comme accepté")
    def accept_action(self, request, obj):
        self._transition(request, obj, "accept", "Devis accepté.")

    @action(label="Facturer", description="Créer la facture à partir du devis")
    def convert_action(self, request, obj):
        try:
            invoice = create_invoice_from_quote(obj, by=request.user)
            self.message_user(request, f"Facture {invoice.number} créée.", level=messages.SUCCESS)
        except ValueError as e:
            self.message_user(request, f"Conversion impossible : {e}", level=messages.ERROR)


@admin.register(Invoice)
class InvoiceAdmin(DocumentAdmin):
    inlines = [InvoiceLineInline, PaymentInline]
    list_display = ("number", "date", "due_date", "contact", "state", "total", "amount_paid")
    list_filter = ("organization", "state", "salesperson")
    readonly_fields = DocumentAdmin.readonly_fields + ("amount_paid", "paid_at", "quote")

    change_actions = ("send_action", "cancel_action")

    @action(label="Envoyer", description="Marquer la facture comme envoyée")
    def send_action(self, request, obj):
        self._transition(request, obj, "send", "Facture envoyée.")

    @action(label="Annuler", description="Annuler la facture")
    def cancel_action(self, request, obj):
        self._transition(request, obj, "cancel", "Facture annulée.")


@admin.register(Bill)
class BillAdmin(DocumentAdmin):
    inlines = [BillLineInline, PaymentInline]
    list_display = ("number", "supplier_reference", "date", "due_date", "contact", "state", "total", "amount_paid")
    list_filter = ("organization", "state")
    readonly_fields = DocumentAdmin.readonly_fields + ("amount_paid", "paid_at")

    change_actions = ("receive_action",)

    @action(label="Réceptionner", description="Marquer la facture fournisseur comme reçue")
    def receive_action(self, request, obj):
        self._transition(request, obj, "receive", "Facture fournisseur reçue.")


@admin.register(Payment)
class PaymentAdmin(OrganizationScopedAdminMixin, ModelAdmin):
    list_display = ("date", "amount", "method", "invoice", "bill", "reference")
    list_filter = ("organization", "method")
    search_fields = ("reference", "invoice__number", "bill__number")
    readonly_fields = ("organization", "invoice", "bill", "amount", "created_by")

    def has_add_permission(self, request):
        # payments are created from the invoice/bill pages and bank reconciliation
        return False
