from django import forms
from django.contrib.auth import get_user_model
from django.utils import timezone

from contacts.models import Contact
from documents.forms.line_forms import BillLineForm, InvoiceLineForm, QuoteLineForm
from documents.models import Bill, BillLine, Invoice, InvoiceLine, Payment, Quote, QuoteLine

User = get_user_model()


class OrganizationDocumentForm(forms.ModelForm):
    """
    Usage:
        form = InvoiceForm(request.POST or None, organization=request.user.profile.organization)
    """

    contact_kind = "clients"

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)

        # sensible default
        if not self.instance.pk and not self.initial.get("date"):
            self.initial["date"] = timezone.localdate()

        self._organization = organization

        if organization is not None:
            contacts = getattr(Contact.objects.filter(organization=organization, is_active=True), self.contact_kind)()
            if self.instance.pk and self.instance.contact_id:
                contacts = contacts | Contact.objects.filter(pk=self.instance.contact_id)
            self.fields["contact"].queryset = contacts.distinct()

            if "salesperson" in self.fields:
                self.fields["salesperson"].queryset = User.objects.filter(profile__organization=organization)
                self.fields["salesperson"].required = False

    def save(self, commit=True):
        obj = super().save(commit=False)

        # organization comes from the request context (don't trust the browser)
        if self._organization is not None and not obj.organization_id:
            obj.organization = self._organization

        if commit:
            obj.save()
            self.save_m2m()
        return obj


class QuoteForm(OrganizationDocumentForm):
    class Meta:
        model = Quote
        fields = ["contact", "date", "valid_until", "title", "salesperson", "notes", "terms"]
        widgets = {
            "date": forms.DateInput(attrs={"type": "date"}, format="%Y-%m-%d"),
            "valid_until": forms.DateInput(attrs={"type": "date"}, format="%Y-%m-%d"),
            "notes": forms.Textarea(attrs={"rows": 2}),
            "terms": forms.Textarea(attrs={"rows": 2}),
        }


class InvoiceForm(OrganizationDocumentForm):
    class Meta:
        model = Invoice
        fields = ["contact", "date", "due_date", "title", "salesperson", "notes", "terms"]
        widgets = {
            "date": forms.DateInput(attrs={"type": "date"}, format="%Y-%m-%d"),
            "due_date": forms.DateInput(attrs={"type": "date"}, format="%Y-%m-%d"),
            "notes": forms.Textarea(attrs={"rows": 2}),
            "terms": forms.Textarea(attrs={"rows": 2}),
        }

    def clean(self):
        cleaned = super().clean()
        date, due_date = cleaned.get("date"), cleaned.get("due_date")
        if date and due_date and due_date < date:
            self.add_error("due_date", "L'échéance ne peut pas précéder la date de facture.")
        return cleaned


class BillForm(OrganizationDocumentForm):
    contact_kind = "suppliers"

    class Meta:
        model = Bill
        fields = ["contact", "supplier_reference", "date", "due_date", "notes"]
        widgets = {
            "date": forms.DateInput(attrs={"type": "date"}, format="%Y-%m-%d"),
            "due_date": forms.DateInput(attrs={"type": "date"}, format="%Y-%m-%d"),
            "notes": forms.Textarea(attrs={"rows": 2}),
        }


class PaymentForm(forms.Form):
    amount = forms.DecimalField(max_digits=12, decimal_places=2, min_value=0.01, label="Montant")
    date = forms.DateField(initial=timezone.localdate, widget=forms.DateInput(attrs={"type": "date"}), label="Date")
    method = forms.ChoiceField(choices=Payment.Method.choices, initial=Payment.Method.BANK_TRANSFER, label="Moyen")
    reference = forms.CharField(required=False, max_length=255, label="Référence")
    notes = forms.CharField(required=False, widget=forms.Textarea(attrs={"rows": 2}), label="Notes")


QuoteLineFormSet = forms.inlineformset_factory(
    Quote,
    QuoteLine,
    form=QuoteLineForm,
    extra=1,
    can_delete=True,
)

InvoiceLineFormSet = forms.inlineformset_factory(
    Invoice,
    InvoiceLine,
    form=InvoiceLineForm,
    extra=1,
    can_delete=True,
)

BillLineFormSet = forms.inlineformset_factory(
    Bill,
    BillLine,
    form=BillLineForm,
    extra=1,
    can_delete=True,
)
