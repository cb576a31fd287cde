from django import forms

from contacts.models import Item
from core.models import TaxRate


class ItemForm(forms.ModelForm):
    class Meta:
        model = Item
        fields = [
            "type",
            "sku",
            "name",
            "description",
            "unit_price",
            "cost_price",
            "tax_rate",
            "unit",
            "category",
            "is_active",
        ]
        widgets = {
            "description": forms.Textarea(attrs={"rows": 2}),
        }

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        self._organization = organization
        if organization:
            self.fields["tax_rate"].queryset = TaxRate.objects.active().filter(organization=organization)
            if not self.instance.pk:
                default_rate = TaxRate.objects.default_for(organization)
                if default_rate:
                    self.initial.setdefault("tax_rate", default_rate.pk)

    def save(self, commit=True):
        item = super().save(commit=False)
        if self._organization is not None and not item.organization_id:
            item.organization = self._organization
        if commit:
            item.save()
        return item
