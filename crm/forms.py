from django import forms
from django.contrib.auth import get_user_model

from core.services.siren import clean_digits, is_valid_siret
from crm.models import Prospect, ProspectContact, ProspectNote, ProspectStatus, ProspectVisit


def _organization_users(organization):
    User = get_user_model()
    if organization is None:
        return User.objects.none()
    return User.objects.filter(profile__organization=organization, is_active=True).order_by("username")


class ProspectForm(forms.ModelForm):
    """
    Usage:
        form = ProspectForm(request.POST or None, organization=organization)

    When the company looks like an existing prospect, the view shows the matches and the
    user re-submits with `confirm_duplicate` checked.
    """

    confirm_duplicate = forms.BooleanField(required=False, widget=forms.HiddenInput)

    class Meta:
        model = Prospect
        fields = [
            "company_name",
            "siret",
            "legal_form",
            "naf_code",
            "address_line1",
            "address_line2",
            "postal_code",
            "city",
            "country",
            "latitude",
            "longitude",
            "status",
            "assigned_to",
            "source",
            "website",
            "phone",
            "email",
            "notes",
        ]
        widgets = {
            "notes": forms.Textarea(attrs={"rows": 3}),
            "latitude": forms.HiddenInput,
            "longitude": forms.HiddenInput,
        }

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        self._organization = organization
        self.fields["status"].queryset = ProspectStatus.objects.filter(organization=organization, is_active=True)
        self.fields["assigned_to"].queryset = _organization_users(organization)

    def clean_siret(self):
        siret = clean_digits(self.cleaned_data.get("siret"))
        if siret and not is_valid_siret(siret):
            raise forms.ValidationError("SIRET invalide (14 chiffres attendus).")
        return siret

    def save(self, commit=True):
        obj = super().save(commit=False)
        if self._organization is not None and not obj.organization_id:
            obj.organization = self._organization
        if commit:
            obj.save()
        return obj


class ProspectVisitForm(forms.ModelForm):
    class Meta:
        model = ProspectVisit
        fields = ["visited_at", "status_after", "duration_minutes", "notes", "next_action", "next_action_date"]
        widgets = {
            "visited_at": forms.DateTimeInput(attrs={"type": "datetime-local"}),
            "next_action_date": forms.DateInput(attrs={"type": "date"}),
            "notes": forms.Textarea(attrs={"rows": 3}),
        }
        labels = {"status_after": "Nouveau statut"}

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["status_after"].queryset = ProspectStatus.objects.filter(organization=organization, is_active=True)


class ProspectContactForm(forms.ModelForm):
    class Meta:
        model = ProspectContact
        fields = ["name", "role", "email", "phone", "is_primary"]


class ProspectNoteForm(forms.ModelForm):
    class Meta:
        model = ProspectNote
        fields = ["content"]
        widgets = {"content": forms.Textarea(attrs={"rows": 2})}


class ProspectImportForm(forms.Form):
    file = forms.FileField(label="Fichier CSV")

    def clean_file(self):
        upload = self.cleaned_data["file"]
        if not upload.name.lower().endswith(".csv"):
            raise forms.ValidationError("Seuls les fichiers .csv sont acceptés.")
        return upload
