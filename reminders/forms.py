from django import forms

from crm.models import Prospect, ProspectStatus
from contacts.models import Contact
from reminders.models import AutoReminderRule, Reminder


class ReminderForm(forms.ModelForm):
    class Meta:
        model = Reminder
        fields = ["title", "description", "remind_at", "recurrence", "recurrence_end_date", "prospect", "contact"]
        widgets = {
            "remind_at": forms.DateTimeInput(attrs={"type": "datetime-local"}),
            "recurrence_end_date": forms.DateInput(attrs={"type": "date"}),
            "description": forms.Textarea(attrs={"rows": 2}),
        }

    def __init__(self, *args, organization=None, user=None, **kwargs):
        super().__init__(*args, **kwargs)
        self._organization = organization
        self._user = user
        self.fields["prospect"].queryset = Prospect.objects.filter(organization=organization)
        self.fields["contact"].queryset = Contact.objects.filter(organization=organization)

    def clean(self):
        cleaned = super().clean()
        end = cleaned.get("recurrence_end_date")
        remind_at = cleaned.get("remind_at")
        if end and remind_at and end < remind_at.date():
            self.add_error("recurrence_end_date", "La fin de récurrence précède le rappel.")
        return cleaned

    def save(self, commit=True):
        obj = super().save(commit=False)
        if self._organization is not None and not obj.organization_id:
            obj.organization = self._organization
        if self._user is not None and not obj.user_id:
            obj.user = self._user
        if commit:
            obj.save()
        return obj


class AutoReminderRuleForm(forms.ModelForm):
    class Meta:
        model = AutoReminderRule
        fields = [
            "name",
            "description",
            "trigger_status",
            "days_in_status",
            "action_type",
            "reminder_title",
            "reminder_message",
            "new_status",
            "notify_assigned_to",
            "notify_created_by",
            "priority",
            "is_active",
        ]
        widgets = {
            "description": forms.Textarea(attrs={"rows": 2}),
            "reminder_message": forms.Textarea(attrs={"rows": 2}),
        }

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        self._organization = organization
        statuses = ProspectStatus.objects.filter(organization=organization)
        self.fields["trigger_status"].queryset = statuses
        self.fields["new_status"].queryset = statuses

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("action_type") == AutoReminderRule.ActionType.STATUS_CHANGE and not cleaned.get("new_status"):
            self.add_error("new_status", "Choisissez le statut à appliquer.")
        return cleaned

    def save(self, commit=True):
        obj = super().save(commit=False)
        if self._organization is not None and not obj.organization_id:
            obj.organization = self._organization
        if commit:
            obj.save()
        return obj
