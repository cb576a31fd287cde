from decimal import Decimal, InvalidOperation

from django import forms
from django.contrib.auth import get_user_model

from commissions.models import Commission, CommissionRule, CommissionTarget
from commissions.services import period_bounds


def _organization_users(organization):
    return get_user_model().objects.filter(profile__organization=organization, is_active=True).order_by("username")


class CommissionRuleForm(forms.ModelForm):
    """Tiers are typed one per line as "min;max;rate" (max empty for the last tier)."""

    tiers_text = forms.CharField(
        label="Paliers",
        required=False,
        widget=forms.Textarea(attrs={"rows": 3, "placeholder": "0;10000;5\n10000;;8"}),
    )

    class Meta:
        model = CommissionRule
        fields = [
            "name",
            "description",
            "rule_type",
            "percentage",
            "fixed_amount",
            "bonus_threshold_amount",
            "bonus_percentage",
            "applies_to_user",
            "min_invoice_amount",
            "priority",
            "is_active",
        ]
        widgets = {"description": forms.Textarea(attrs={"rows": 2})}

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        self._organization = organization
        self.fields["applies_to_user"].queryset = _organization_users(organization)
        if self.instance.pk and self.instance.tiers:
            self.initial["tiers_text"] = "\n".join(
                f"{t.get('min', '')};{t.get('max') if t.get('max') is not None else ''};{t.get('rate', '')}"
                for t in self.instance.tiers
            )

    def clean_tiers_text(self):
        tiers = []
        for n, line in enumerate(self.cleaned_data.get("tiers_text", "").splitlines(), start=1):
            if not line.strip():
                continue
            parts = [p.strip().replace(",", ".") for p in line.split(";")]
            if len(parts) != 3:
                raise forms.ValidationError(f"Palier {n} : format attendu min;max;taux.")
            try:
                low = Decimal(parts[0] or "0")
                high = Decimal(parts[1]) if parts[1] else None
                rate = Decimal(parts[2])
            except InvalidOperation:
                raise forms.ValidationError(f"Palier {n} : nombre invalide.")
            if high is not None and high <= low:
                raise forms.ValidationError(f"Palier {n} : le maximum doit dépasser le minimum.")
            tiers.append({"min": str(low), "max": str(high) if high is not None else None, "rate": str(rate)})
        return tiers

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("rule_type") == CommissionRule.RuleType.TIERED and not cleaned.get("tiers_text"):
            self.add_error("tiers_text", "Indiquez au moins un palier.")
        return cleaned

    def save(self, commit=True):
        obj = super().save(commit=False)
        obj.tiers = self.cleaned_data.get("tiers_text") or []
        if self._organization is not None and not obj.organization_id:
            obj.organization = self._organization
        if commit:
            obj.save()
        return obj


class CommissionTargetForm(forms.ModelForm):
    class Meta:
        model = CommissionTarget
        fields = ["user", "period_type", "period_start", "target_amount", "bonus_threshold_percent", "bonus_amount"]
        widgets = {"period_start": forms.DateInput(attrs={"type": "date"})}

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        self._organization = organization
        self.fields["user"].queryset = _organization_users(organization)

    def save(self, commit=True):
        obj = super().save(commit=False)
        obj.period_start, obj.period_end = period_bounds(obj.period_type, obj.period_start)
        if self._organization is not None and not obj.organization_id:
            obj.organization = self._organization
        if commit:
            obj.save()
        return obj


class CommissionFilterForm(forms.Form):
    status = forms.ChoiceField(required=False, label="Statut")
    user = forms.ModelChoiceField(queryset=None, required=False, label="Commercial")
    year = forms.IntegerField(required=False, label="Année")
    month = forms.IntegerField(required=False, min_value=1, max_value=12, label="Mois")

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["status"].choices = [("", "Tous")] + list(Commission.Status.choices)
        self.fields["user"].queryset = _organization_users(organization)

    def apply(self, qs):
        if not self.is_bound or not self.is_valid():
            return qs
        data = self.cleaned_data
        if data.get("status"):
            qs = qs.filter(status=data["status"])
        if data.get("user"):
            qs = qs.filter(user=data["user"])
        if data.get("year"):
            qs = qs.filter(period_year=data["year"])
        if data.get("month"):
            qs = qs.filter(period_month=data["month"])
        return qs
