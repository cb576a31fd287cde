from decimal import Decimal

from django import forms

from contacts.models import Item
from core.models import TaxRate
from documents.models import BillLine, InvoiceLine, QuoteLine

# used when an organization has not configured its own rates yet
FALLBACK_RATES = (
    (Decimal("20.00"), "TVA 20%"),
    (Decimal("10.00"), "TVA 10%"),
    (Decimal("5.50"), "TVA 5,5%"),
    (Decimal("2.10"), "TVA 2,1%"),
    (Decimal("0.00"), "Exonéré"),
)

LINE_FIELDS = [
    "line_type",
    "item",
    "description",
    "quantity",
    "unit",
    "unit_price",
    "discount_percent",
    "tax_rate",
]


class DocumentLineForm(forms.ModelForm):
    tax_rate = forms.TypedChoiceField(coerce=Decimal, empty_value=Decimal("0.00"), label="TVA")

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)

        if organization is not None:
            self.fields["item"].queryset = Item.objects.filter(organization=organization, is_active=True)
            rates = [(r.rate, r.name) for r in TaxRate.objects.active().filter(organization=organization)]
            default_rate = TaxRate.objects.default_for(organization)
        else:
            rates = []
            default_rate = None

        rates = rates or list(FALLBACK_RATES)
        choices = [(str(rate), name) for rate, name in rates]

        # keep the rate of an existing line selectable even if the rate was deactivated
        current = self.instance.tax_rate if self.instance.pk else None
        if current is not None and str(current) not in {c[0] for c in choices}:
            choices.append((str(current), f"{current} %"))
        self.fields["tax_rate"].choices = choices

        if not self.instance.pk:
            self.initial.setdefault("tax_rate", str(default_rate.rate if default_rate else rates[0][0]))

        self.fields["description"].required = False
        self.fields["item"].required = False

    def clean(self):
        cleaned = super().clean()
        item = cleaned.get("item")

        # picking an article without touching the VAT column uses the article's rate
        if item and item.tax_rate_id and "tax_rate" not in self.changed_data:
            cleaned["tax_rate"] = item.tax_rate.rate

        line_type = cleaned.get("line_type") or "item"
        if line_type != "item" and not cleaned.get("description"):
            raise forms.ValidationError("Une ligne de texte ou de section doit avoir un libellé.")
        if line_type == "item" and not (item or cleaned.get("description")):
            raise forms.ValidationError("Choisissez un article ou saisissez une désignation.")
        if (cleaned.get("discount_percent") or 0) > 100:
            self.add_error("discount_percent", "La remise ne peut pas dépasser 100 %.")
        return cleaned


class QuoteLineForm(DocumentLineForm):
    class Meta:
        model = QuoteLine
        fields = LINE_FIELDS


class InvoiceLineForm(DocumentLineForm):
    class Meta:
        model = InvoiceLine
        fields = LINE_FIELDS


class BillLineForm(DocumentLineForm):
    class Meta:
        model = BillLine
        fields = LINE_FIELDS
