import calendar
import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.urls import reverse
from django.utils import timezone

from crm.models import Prospect
from crm.services.pipeline import change_status
from reminders.models import AutoReminderLog, AutoReminderRule, Notification, Reminder

logger = logging.getLogger(__name__)


def due_reminders(user, now=None):
    """Open reminders of `user` due now or within the due window (one hour)."""
    now = now or timezone.now()
    window = timedelta(minutes=settings.FACTURO_REMINDER_DUE_WINDOW_MINUTES)
    return Reminder.objects.filter(user=user, is_completed=False, remind_at__lte=now + window).order_by("remind_at")


def add_month(value, day=None):
    """Next month on `day` (default: the same day), clamped to the last day (31 Jan -> 28/29 Feb)."""
    year, month = (value.year + 1, 1) if value.month == 12 else (value.year, value.month + 1)
    day = min(day or value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def series_day(reminder):
    return reminder.recurrence_day or reminder.remind_at.day


def next_occurrence(reminder):
    if reminder.recurrence == Reminder.Recurrence.DAILY:
        return reminder.remind_at + timedelta(days=1)
    if reminder.recurrence == Reminder.Recurrence.WEEKLY:
        return reminder.remind_at + timedelta(weeks=1)
    if reminder.recurrence == Reminder.Recurrence.MONTHLY:
        return add_month(reminder.remind_at, day=series_day(reminder))
    return None


@transaction.atomic
def complete_reminder(reminder, now=None):
    """Mark done. A recurring reminder returns its next occurrence (or None after the end date)."""
    reminder = Reminder.objects.select_for_update().get(pk=reminder.pk)
    if reminder.is_completed:
        raise ValueError("Ce rappel est déjà terminé.")

    reminder.is_completed = True
    reminder.completed_at = now or timezone.now()
    reminder.save(update_fields=["is_completed", "completed_at"])

    remind_at = next_occurrence(reminder)
    if remind_at is None:
        return None
    end = reminder.recurrence_end_date
    if end and timezone.localtime(remind_at).date() > end:
        return None

    return Reminder.objects.create(
        organization=reminder.organization,
        user=reminder.user,
        title=reminder.title,
        description=reminder.description,
        remind_at=remind_at,
        prospect=reminder.prospect,
        contact=reminder.contact,
        quote=reminder.quote,
        invoice=reminder.invoice,
        recurrence=reminder.recurrence,
        recurrence_end_date=reminder.recurrence_end_date,
        recurrence_day=series_day(reminder) if reminder.recurrence == Reminder.Recurrence.MONTHLY else None,
        source_rule=reminder.source_rule,
    )


def notify(user, title, message="", link="", organization=None):
    return Notification.objects.create(
        organization=organization or user.profile.organization,
        user=user,
        title=title,
        message=message,
        link=link,
    )


def _recipient(rule, prospect):
    if rule.notify_assigned_to and prospect.assigned_to_id:
        return prospect.assigned_to
    if rule.notify_created_by and prospect.created_by_id:
        return prospect.created_by
    return None


def _apply_rule(rule, prospect, now):
    status_name = prospect.status.name if prospect.status_id else "sans statut"
    title = rule.reminder_title or f"Relance prospect : {prospect.company_name}"
    message = rule.reminder_message or (
        f"Ce prospect est en statut « {status_name} » depuis {rule.days_in_status} jours."
    )
    user = _recipient(rule, prospect)
    reminder = None

    if rule.action_type == AutoReminderRule.ActionType.REMINDER:
        if user is None:
            return False
        reminder = Reminder.objects.create(
            organization=rule.organization,
            user=user,
            title=title,
            description=message,
            remind_at=now,
            prospect=prospect,
            source_rule=rule,
        )
    elif rule.action_type == AutoReminderRule.ActionType.NOTIFICATION:
        if user is None:
            return False
        notify(user, title, message, reverse("crm:prospect-detail", args=[prospect.pk]), organization=rule.organization)
    elif rule.action_type == AutoReminderRule.ActionType.STATUS_CHANGE:
        if rule.new_status is None:
            return False
        status_changed_at = prospect.status_changed_at
        change_status(prospect, rule.new_status)
        if user is not None:
            notify(user, f"Statut modifié : {prospect.company_name}", message, organization=rule.organization)
        AutoReminderLog.objects.create(rule=rule, prospect=prospect, status_changed_at=status_changed_at)
        return True

    AutoReminderLog.objects.create(rule=rule, prospect=prospect, status_changed_at=prospect.status_changed_at, reminder=reminder)
    return True


@transaction.atomic
def run_auto_rules(organization, now=None) -> int:
    """Apply active rules to prospects that stayed long enough in the trigger status.

    Converted prospects are ignored. Returns the number of actions taken.
    """
    now = now or timezone.now()
    fired = 0

    rules = AutoReminderRule.objects.filter(organization=organization, is_active=True).select_related("trigger_status", "new_status")
    for rule in rules:
        qs = Prospect.objects.filter(
            organization=organization,
            converted_at__isnull=True,
            status_changed_at__lte=now - timedelta(days=rule.days_in_status),
        ).select_related("status", "assigned_to", "created_by")
        if rule.trigger_status_id:
            qs = qs.filter(status=rule.trigger_status)

        seen = set(AutoReminderLog.objects.filter(rule=rule, prospect__in=qs).values_list("prospect_id", "status_changed_at"))

        for prospect in qs:
            if (prospect.pk, prospect.status_changed_at) in seen:
                continue
            if _apply_rule(rule, prospect, now):
                fired += 1

    logger.info("Auto reminder rules for %s: %d action(s)", organization, fired)
    return fired


def notifications_for(user, unread_only=False):
    qs = Notification.objects.filter(user=user)
    if unread_only:
        qs = qs.filter(is_read=False)
    return qs


def mark_notifications_read(user, ids=None) -> int:
    qs = Notification.objects.filter(user=user, is_read=False)
    if ids:
        qs = qs.filter(pk__in=ids)
    return qs.update(is_read=True)
