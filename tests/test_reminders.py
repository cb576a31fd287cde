from datetime import date, datetime, timedelta

import pytest
from django.utils import timezone

from crm.models import Prospect, ProspectStatus
from reminders.models import AutoReminderLog, AutoReminderRule, Notification, Reminder
from reminders.services import add_month, complete_reminder, due_reminders, mark_notifications_read, notify, run_auto_rules

pytestmark = pytest.mark.django_db


def test_add_month_clamps_to_month_end():
    assert add_month(datetime(2024, 1, 31, 9, 0)) == datetime(2024, 2, 29, 9, 0)
    assert add_month(datetime(2023, 12, 15, 9, 0)) == datetime(2024, 1, 15, 9, 0)


def test_add_month_keeps_the_series_day():
    assert add_month(datetime(2024, 2, 29, 9, 0), day=31) == datetime(2024, 3, 31, 9, 0)
    assert add_month(datetime(2024, 3, 31, 9, 0), day=31) == datetime(2024, 4, 30, 9, 0)


@pytest.fixture
def make_reminder(organization, user):
    def _make(remind_at, **kwargs):
        return Reminder.objects.create(organization=organization, user=user, title="Rappeler le client", remind_at=remind_at, **kwargs)

    return _make


class TestReminders:
    def test_due_window(self, user, make_reminder):
        now = timezone.now()
        soon = make_reminder(now + timedelta(minutes=30))
        late = make_reminder(now - timedelta(days=2))
        make_reminder(now + timedelta(hours=2))
        make_reminder(now - timedelta(days=1), is_completed=True)

        assert list(due_reminders(user, now=now)) == [late, soon]

    def test_complete_one_off(self, make_reminder):
        reminder = make_reminder(timezone.now())
        assert complete_reminder(reminder) is None
        assert Reminder.objects.get(pk=reminder.pk).is_completed

    def test_complete_twice(self, make_reminder):
        reminder = make_reminder(timezone.now())
        complete_reminder(reminder)
        with pytest.raises(ValueError):
            complete_reminder(reminder)

    def test_recurring_spawns_next(self, make_reminder):
        start = timezone.now()
        reminder = make_reminder(start, recurrence=Reminder.Recurrence.WEEKLY)

        following = complete_reminder(reminder)

        assert following.remind_at == start + timedelta(weeks=1)
        assert following.recurrence == Reminder.Recurrence.WEEKLY
        assert not following.is_completed

    def test_monthly_series_returns_to_its_day_after_a_short_month(self, make_reminder):
        start = timezone.make_aware(datetime(2024, 1, 31, 9, 0))
        reminder = make_reminder(start, recurrence=Reminder.Recurrence.MONTHLY)

        february = complete_reminder(reminder)
        march = complete_reminder(february)

        assert timezone.localtime(february.remind_at).date() == date(2024, 2, 29)
        assert timezone.localtime(march.remind_at).date() == date(2024, 3, 31)
        assert march.recurrence_day == 31

    def test_recurrence_end_date(self, make_reminder):
        start = timezone.now()
        reminder = make_reminder(start, recurrence=Reminder.Recurrence.DAILY, recurrence_end_date=timezone.localdate(start))
        assert complete_reminder(reminder) is None


class TestNotifications:
    def test_mark_read(self, user):
        a = notify(user, "Facture payée")
        notify(user, "Nouveau prospect")

        assert mark_notifications_read(user, [a.pk]) == 1
        assert mark_notifications_read(user) == 1
        assert not Notification.objects.filter(user=user, is_read=False).exists()


class TestAutoRules:
    @pytest.fixture
    def status(self, organization):
        return ProspectStatus.objects.get(organization=organization, name="Démarché")

    @pytest.fixture
    def stale_prospect(self, organization, status, salesperson):
        prospect = Prospect.objects.create(organization=organization, company_name="Garage Central", status=status, assigned_to=salesperson)
        Prospect.objects.filter(pk=prospect.pk).update(status_changed_at=timezone.now() - timedelta(days=10))
        return prospect

    def rule(self, organization, status, **kwargs):
        return AutoReminderRule.objects.create(organization=organization, name="Relance", trigger_status=status, days_in_status=7, **kwargs)

    def test_reminder_created_once_per_status_period(self, organization, status, stale_prospect, salesperson):
        self.rule(organization, status)

        assert run_auto_rules(organization) == 1
        assert run_auto_rules(organization) == 0

        reminder = Reminder.objects.get(prospect=stale_prospect)
        assert reminder.user == salesperson
        assert AutoReminderLog.objects.filter(prospect=stale_prospect).count() == 1

    def test_recent_prospects_ignored(self, organization, status):
        self.rule(organization, status)
        Prospect.objects.create(organization=organization, company_name="Tout neuf", status=status)
        assert run_auto_rules(organization) == 0

    def test_converted_prospects_ignored(self, organization, status, stale_prospect):
        self.rule(organization, status)
        Prospect.objects.filter(pk=stale_prospect.pk).update(converted_at=timezone.now())
        assert run_auto_rules(organization) == 0

    def test_notification_action(self, organization, status, stale_prospect, salesperson):
        self.rule(organization, status, action_type=AutoReminderRule.ActionType.NOTIFICATION)
        run_auto_rules(organization)
        notification = Notification.objects.get(user=salesperson)
        assert notification.link == f"/prospects/{stale_prospect.pk}/"

    def test_status_change_action(self, organization, status, stale_prospect):
        lost = ProspectStatus.objects.get(organization=organization, is_final_negative=True)
        self.rule(organization, status, action_type=AutoReminderRule.ActionType.STATUS_CHANGE, new_status=lost)

        assert run_auto_rules(organization) == 1

        prospect = Prospect.objects.get(pk=stale_prospect.pk)
        assert prospect.status == lost
        assert prospect.status_changed_at > timezone.now() - timedelta(minutes=1)
