from django.contrib import admin, messages
from django.db import transaction
from django_fsm import can_proceed
from django_object_actions import DjangoObjectActions, action
from simple_history.admin import SimpleHistoryAdmin
from unfold.admin import ModelAdmin

from commissions.models import Commission, CommissionRule, CommissionTarget
from commissions.services import refresh_target
from core.admin_utils import OrganizationScopedAdminMixin


@admin.register(CommissionRule)
class CommissionRuleAdmin(OrganizationScopedAdminMixin, ModelAdmin):
    list_display = ("name", "rule_type", "percentage", "fixed_amount", "applies_to_user", "priority", "is_active")
    list_filter = ("organization", "rule_type", "is_active")


@admin.register(Commission)
class CommissionAdmin(DjangoObjectActions, OrganizationScopedAdminMixin, SimpleHistoryAdmin, ModelAdmin):
    list_display = ("invoice", "user", "invoice_amount", "commission_rate", "total_amount", "status", "period_month", "period_year")
    list_filter = ("organization", "status", "user", "period_year")
    readonly_fields = ("status", "invoice_amount", "commission_rate", "commission_amount", "bonus_amount", "total_amount", "approved_by", "approved_at", "paid_at")

    change_actions = ("approve_action", "cancel_action")

    def _transition(self, request, obj, name, done_message):
        method = getattr(obj, name)
        if not can_proceed(method):
            self.message_user(request, "Action impossible depuis le statut actuel.", level=messages.ERROR)
            return
        with transaction.atomic():
            method(by=request.user)
            obj.save()
        self.message_user(request, done_message, level=messages.SUCCESS)

    @action(label="Approuver", description="Approuver la commission")
    def approve_action(self, request, obj):
        self._transition(request, obj, "approve", "Commission approuvée.")

    @action(label="Annuler", description="Annuler la commission")
    def cancel_action(self, request, obj):
        self._transition(request, obj, "cancel", "Commission annulée.")


@admin.register(CommissionTarget)
class CommissionTargetAdmin(DjangoObjectActions, OrganizationScopedAdminMixin, ModelAdmin):
    list_display = ("user", "period_type", "period_start", "period_end", "target_amount", "achieved_amount")
    list_filter = ("organization", "period_type")
    readonly_fields = ("achieved_amount",)

    change_actions = ("refresh_action",)

    @action(label="Recalculer", description="Recalculer le chiffre d'affaires réalisé")
    def refresh_action(self, request, obj):
        refresh_target(obj)
        self.message_user(request, f"Réalisé : {obj.achieved_amount}", level=messages.SUCCESS)
