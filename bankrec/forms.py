from django import forms
from django.utils import timezone

from bankrec.models import BankAccount, BankTransaction


class BankAccountForm(forms.ModelForm):
    class Meta:
        model = BankAccount
        fields = ["name", "bank_name", "iban", "bic", "account_holder", "initial_balance", "is_default", "is_active"]

    def clean_iban(self):
        return (self.cleaned_data.get("iban") or "").replace(" ", "").upper()


class StatementImportForm(forms.Form):
    bank_account = forms.ModelChoiceField(queryset=BankAccount.objects.none(), label="Compte")
    file = forms.FileField(label="Relevé OFX / QFX")

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        if organization is not None:
            accounts = BankAccount.objects.filter(organization=organization, is_active=True)
            self.fields["bank_account"].queryset = accounts
            default = accounts.filter(is_default=True).first()
            if default:
                self.initial.setdefault("bank_account", default.pk)


class BankTransactionForm(forms.ModelForm):
    class Meta:
        model = BankTransaction
        fields = ["bank_account", "date", "description", "amount", "type", "reference", "category", "notes"]
        widgets = {
            "date": forms.DateInput(attrs={"type": "date"}),
            "notes": forms.Textarea(attrs={"rows": 2}),
        }

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        self._organization = organization
        self.initial.setdefault("date", timezone.localdate())
        if organization is not None:
            self.fields["bank_account"].queryset = BankAccount.objects.filter(organization=organization, is_active=True)

    def clean_amount(self):
        amount = self.cleaned_data["amount"]
        if amount <= 0:
            raise forms.ValidationError("Le montant doit être positif (le sens est donné par le type).")
        return amount

    def save(self, commit=True):
        obj = super().save(commit=False)
        if self._organization is not None and not obj.organization_id:
            obj.organization = self._organization
        if commit:
            obj.save()
        return obj


class TransactionFilterForm(forms.Form):
    STATUS_CHOICES = (
        ("", "Toutes"),
        ("unreconciled", "À rapprocher"),
        ("reconciled", "Rapprochées"),
    )

    bank_account = forms.ModelChoiceField(required=False, queryset=BankAccount.objects.none(), empty_label="Tous les comptes")
    status = forms.ChoiceField(required=False, choices=STATUS_CHOICES)
    type = forms.ChoiceField(required=False, choices=[("", "Crédits et débits")] + list(BankTransaction.Type.choices))
    q = forms.CharField(required=False, label="Recherche")

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        if organization is not None:
            self.fields["bank_account"].queryset = BankAccount.objects.filter(organization=organization)

    def apply(self, qs):
        if not self.is_valid():
            return qs
        data = self.cleaned_data
        if data.get("bank_account"):
            qs = qs.filter(bank_account=data["bank_account"])
        if data.get("status") == "unreconciled":
            qs = qs.filter(is_reconciled=False)
        elif data.get("status") == "reconciled":
            qs = qs.filter(is_reconciled=True)
        if data.get("type"):
            qs = qs.filter(type=data["type"])
        if data.get("q"):
            qs = qs.filter(description__icontains=data["q"])
        return qs
