from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.shortcuts import get_object_or_404, render, redirect
from django.views.decorators.http import require_POST

from commissions.forms import CommissionFilterForm, CommissionRuleForm, CommissionTargetForm
from commissions.models import Commission, CommissionRule, CommissionTarget
from commissions.services import change_commission_status, commission_stats, refresh_target
from core.permissions import get_organization, role_required, user_has_role

APPROVER_ROLES = ("manager", "accountant")


@login_required
def commission_list(request):
    """Managers see everybody's commissions, salespeople only their own."""
    organization = get_organization(request)
    can_manage = user_has_role(request.user, *APPROVER_ROLES)

    qs = Commission.objects.filter(organization=organization).select_related("invoice", "invoice__contact", "user", "rule")
    if not can_manage:
        qs = qs.filter(user=request.user)

    filter_form = CommissionFilterForm(request.GET or None, organization=organization)

    return render(request, "commissions/commission_list.html", {
        "filter_form": filter_form,
        "commissions": filter_form.apply(qs)[:300],
        "stats": commission_stats(organization, user=None if can_manage else request.user),
        "can_manage": can_manage,
    })


@login_required
@role_required(*APPROVER_ROLES)
@require_POST
def commission_action(request, pk, action):
    organization = get_organization(request)
    commission = get_object_or_404(Commission, pk=pk, organization=organization)

    try:
        change_commission_status(commission, action, by=request.user, reference=request.POST.get("reference", ""))
        messages.success(request, "Commission mise à jour.")
    except ValueError as e:
        messages.error(request, f"Action impossible : {e}")

    return redirect("commissions:commission-list")


@login_required
@role_required("admin")
def rule_list(request):
    organization = get_organization(request)

    if request.method == "POST":
        form = CommissionRuleForm(request.POST, organization=organization)
        if form.is_valid():
            rule = form.save()
            messages.success(request, f"Règle créée : {rule.name}")
            return redirect("commissions:rule-list")
    else:
        form = CommissionRuleForm(organization=organization)

    return render(request, "commissions/rule_list.html", {
        "form": form,
        "rules": CommissionRule.objects.filter(organization=organization).select_related("applies_to_user"),
    })


@login_required
@role_required("admin")
def rule_edit(request, pk):
    organization = get_organization(request)
    rule = get_object_or_404(CommissionRule, pk=pk, organization=organization)

    if request.method == "POST":
        form = CommissionRuleForm(request.POST, instance=rule, organization=organization)
        if form.is_valid():
            form.save()
            messages.success(request, "Règle mise à jour.")
            return redirect("commissions:rule-list")
    else:
        form = CommissionRuleForm(instance=rule, organization=organization)

    return render(request, "commissions/rule_form.html", {"form": form, "rule": rule})


@login_required
@role_required("admin")
@require_POST
def rule_delete(request, pk):
    organization = get_organization(request)
    rule = get_object_or_404(CommissionRule, pk=pk, organization=organization)
    rule.delete()
    messages.success(request, "Règle supprimée.")
    return redirect("commissions:rule-list")


@login_required
def target_list(request):
    organization = get_organization(request)
    can_manage = user_has_role(request.user, "manager")

    if request.method == "POST":
        if not can_manage:
            messages.error(request, "Vous n'avez pas les droits nécessaires pour cette action.")
            return redirect("commissions:target-list")
        form = CommissionTargetForm(request.POST, organization=organization)
        if form.is_valid():
            target = refresh_target(form.save())
            messages.success(request, f"Objectif enregistré pour {target.user}.")
            return redirect("commissions:target-list")
    else:
        form = CommissionTargetForm(organization=organization)

    targets = CommissionTarget.objects.filter(organization=organization).select_related("user")
    if not can_manage:
        targets = targets.filter(user=request.user)

    return render(request, "commissions/target_list.html", {
        "form": form,
        "targets": targets,
        "can_manage": can_manage,
    })


@login_required
@require_POST
def target_refresh(request, pk):
    organization = get_organization(request)
    target = get_object_or_404(CommissionTarget, pk=pk, organization=organization)
    refresh_target(target)
    messages.success(request, f"Objectif recalculé : {target.progress_percent} %")
    return redirect("commissions:target-list")
