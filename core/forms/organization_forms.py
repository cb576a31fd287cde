from django import forms

from core.models import Organization
from core.services.siren import clean_digits, is_valid_siret, vat_number_from_siret


class OrganizationForm(forms.ModelForm):
    class Meta:
        model = Organization
        fields = [
            "name",
            "legal_name",
            "siret",
            "vat_number",
            "address_line1",
            "address_line2",
            "postal_code",
            "city",
            "country",
            "phone",
            "email",
            "website",
            "default_payment_terms",
            "legal_mentions",
            "bank_details",
        ]
        widgets = {
            "legal_mentions": forms.Textarea(attrs={"rows": 4}),
            "bank_details": forms.Textarea(attrs={"rows": 3}),
        }

    def clean_siret(self):
        siret = clean_digits(self.cleaned_data.get("siret"))
        if siret and not is_valid_siret(siret):
            raise forms.ValidationError("SIRET invalide (14 chiffres attendus).")
        return siret

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("siret") and not cleaned.get("vat_number"):
            cleaned["vat_number"] = vat_number_from_siret(cleaned["siret"])
        return cleaned
