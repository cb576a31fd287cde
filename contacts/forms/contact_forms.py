from django import forms

from contacts.models import Contact
from core.services.siren import clean_digits, is_valid_siret


class ContactForm(forms.ModelForm):
    """
    Usage:
        form = ContactForm(request.POST or None, organization=request.user.profile.organization)
    """

    class Meta:
        model = Contact
        fields = [
            "type",
            "company_name",
            "first_name",
            "last_name",
            "email",
            "phone",
            "mobile",
            "siret",
            "vat_number",
            "billing_address_line1",
            "billing_address_line2",
            "billing_postal_code",
            "billing_city",
            "billing_country",
            "shipping_address_line1",
            "shipping_postal_code",
            "shipping_city",
            "payment_terms",
            "tags",
            "notes",
            "is_active",
        ]
        widgets = {
            "notes": forms.Textarea(attrs={"rows": 3}),
        }

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        self._organization = organization

    def clean_siret(self):
        siret = clean_digits(self.cleaned_data.get("siret"))
        if siret and not is_valid_siret(siret):
            raise forms.ValidationError("SIRET invalide (14 chiffres attendus).")
        return siret

    def clean(self):
        cleaned = super().clean()
        if not (cleaned.get("company_name") or cleaned.get("last_name") or cleaned.get("first_name")):
            raise forms.ValidationError("Indiquez une raison sociale ou un nom.")
        return cleaned

    def save(self, commit=True):
        obj = super().save(commit=False)

        # organization always comes from the request context
        if self._organization is not None and not obj.organization_id:
            obj.organization = self._organization

        if commit:
            obj.save()
            self.save_m2m()
        return obj
