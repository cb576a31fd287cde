import django_filters
from django.db.models import Q

from contacts.models import Contact


class ContactFilter(django_filters.FilterSet):
    q = django_filters.CharFilter(method="search", label="Recherche")
    type = django_filters.ChoiceFilter(choices=Contact.Type.choices, label="Type")
    tag = django_filters.CharFilter(field_name="tags__name", lookup_expr="iexact", label="Étiquette")
    is_active = django_filters.BooleanFilter(label="Actif")

    class Meta:
        model = Contact
        fields = ["type", "is_active"]

    def search(self, queryset, name, value):
        return queryset.filter(
            Q(company_name__icontains=value)
            | Q(first_name__icontains=value)
            | Q(last_name__icontains=value)
            | Q(email__icontains=value)
            | Q(siret__icontains=value.replace(" ", ""))
        )
