from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.shortcuts import get_object_or_404, render, redirect
from django.utils import timezone
from django.views.decorators.http import require_POST

from core.permissions import get_organization, role_required
from reminders.forms import AutoReminderRuleForm, ReminderForm
from reminders.models import AutoReminderRule, Reminder
from reminders.services import complete_reminder, due_reminders, mark_notifications_read, notifications_for, run_auto_rules


@login_required
def reminder_list(request):
    organization = get_organization(request)

    if request.method == "POST":
        form = ReminderForm(request.POST, organization=organization, user=request.user)
        if form.is_valid():
            reminder = form.save()
            messages.success(request, f"Rappel créé : {reminder.title}")
            return redirect("reminders:reminder-list")
    else:
        initial = {"remind_at": timezone.localtime().replace(second=0, microsecond=0)}
        if request.GET.get("prospect"):
            initial["prospect"] = request.GET["prospect"]
        form = ReminderForm(organization=organization, user=request.user, initial=initial)

    mine = Reminder.objects.filter(user=request.user).select_related("prospect", "contact", "quote", "invoice")
    due = due_reminders(request.user)

    return render(request, "reminders/reminder_list.html", {
        "form": form,
        "due": due.select_related("prospect", "contact", "quote", "invoice"),
        "upcoming": mine.filter(is_completed=False).exclude(pk__in=due.values("pk")),
        "completed": mine.filter(is_completed=True).order_by("-completed_at")[:50],
    })


@login_required
@require_POST
def reminder_complete(request, pk):
    reminder = get_object_or_404(Reminder, pk=pk, user=request.user)

    try:
        next_reminder = complete_reminder(reminder)
        messages.success(request, "Rappel terminé.")
        if next_reminder is not None:
            messages.info(request, f"Prochain rappel : {timezone.localtime(next_reminder.remind_at):%d/%m/%Y %H:%M}")
    except ValueError as e:
        messages.error(request, f"Impossible de terminer le rappel : {e}")

    next_url = request.POST.get("next", "")
    if next_url.startswith("/"):
        return redirect(next_url)
    return redirect("reminders:reminder-list")


@login_required
@require_POST
def reminder_delete(request, pk):
    reminder = get_object_or_404(Reminder, pk=pk, user=request.user)
    reminder.delete()
    messages.success(request, "Rappel supprimé.")
    return redirect("reminders:reminder-list")


@login_required
def notification_list(request):
    return render(request, "reminders/notification_list.html", {
        "notifications": notifications_for(request.user)[:100],
    })


@login_required
@require_POST
def notification_read(request, pk=None):
    ids = [pk] if pk else None
    count = mark_notifications_read(request.user, ids)
    if not pk:
        messages.success(request, f"{count} notification(s) marquée(s) comme lue(s).")
    return redirect("reminders:notification-list")


@login_required
@role_required("manager")
def rule_list(request):
    organization = get_organization(request)

    if request.method == "POST":
        form = AutoReminderRuleForm(request.POST, organization=organization)
        if form.is_valid():
            rule = form.save()
            messages.success(request, f"Règle créée : {rule.name}")
            return redirect("reminders:rule-list")
    else:
        form = AutoReminderRuleForm(organization=organization)

    return render(request, "reminders/rule_list.html", {
        "form": form,
        "rules": AutoReminderRule.objects.filter(organization=organization).select_related("trigger_status", "new_status"),
    })


@login_required
@role_required("manager")
def rule_edit(request, pk):
    organization = get_organization(request)
    rule = get_object_or_404(AutoReminderRule, pk=pk, organization=organization)

    if request.method == "POST":
        form = AutoReminderRuleForm(request.POST, instance=rule, organization=organization)
        if form.is_valid():
            form.save()
            messages.success(request, "Règle mise à jour.")
            return redirect("reminders:rule-list")
    else:
        form = AutoReminderRuleForm(instance=rule, organization=organization)

    return render(request, "reminders/rule_form.html", {"form": form, "rule": rule})


@login_required
@role_required("manager")
@require_POST
def rule_delete(request, pk):
    organization = get_organization(request)
    rule = get_object_or_404(AutoReminderRule, pk=pk, organization=organization)
    rule.delete()
    messages.success(request, "Règle supprimée.")
    return redirect("reminders:rule-list")


@login_required
@role_required("manager")
@require_POST
def rules_run(request):
    organization = get_organization(request)
    fired = run_auto_rules(organization)
    messages.success(request, f"{fired} action(s) déclenchée(s).")
    return redirect("reminders:rule-list")
