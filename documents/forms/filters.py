from django import forms

from contacts.models import Contact


class DocumentFilterForm(forms.Form):
    q = forms.CharField(required=False, label="Recherche")
    state = forms.ChoiceField(required=False, label="Statut")
    contact = forms.ModelChoiceField(
        required=False,
        queryset=Contact.objects.none(),
        empty_label="Tous les contacts",
    )
    date_from = forms.DateField(required=False, widget=forms.DateInput(attrs={"type": "date"}))
    date_to = forms.DateField(required=False, widget=forms.DateInput(attrs={"type": "date"}))

    def __init__(self, *args, organization=None, model=None, **kwargs):
        super().__init__(*args, **kwargs)
        if model is not None:
            self.fields["state"].choices = [("", "Tous les statuts")] + list(model.State.choices)
        if organization is not None:
            self.fields["contact"].queryset = Contact.objects.filter(organization=organization).order_by("company_name", "last_name")

    def apply(self, qs):
        if not self.is_valid():
            return qs
        data = self.cleaned_data
        if data.get("q"):
            qs = qs.filter(number__icontains=data["q"]) | qs.filter(contact__company_name__icontains=data["q"])
        if data.get("state"):
            qs = qs.filter(state=data["state"])
        if data.get("contact"):
            qs = qs.filter(contact=data["contact"])
        if data.get("date_from"):
            qs = qs.filter(date__gte=data["date_from"])
        if data.get("date_to"):
            qs = qs.filter(date__lte=data["date_to"])
        return qs
