import django_filters
from django.contrib.auth import get_user_model
from django.db.models import Q

from crm.models import Prospect, ProspectStatus


class ProspectFilter(django_filters.FilterSet):
    q = django_filters.CharFilter(method="search", label="Recherche")
    status = django_filters.ModelChoiceFilter(queryset=ProspectStatus.objects.none(), label="Statut")
    assigned_to = django_filters.ModelChoiceFilter(queryset=get_user_model().objects.none(), label="Commercial")
    city = django_filters.CharFilter(lookup_expr="icontains", label="Ville")
    source = django_filters.CharFilter(lookup_expr="icontains", label="Source")
    converted = django_filters.BooleanFilter(field_name="contact", lookup_expr="isnull", exclude=True, label="Converti")

    class Meta:
        model = Prospect
        fields = ["status", "assigned_to", "city", "source"]

    def __init__(self, *args, organization=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.filters["status"].queryset = ProspectStatus.objects.filter(organization=organization)
        self.filters["assigned_to"].queryset = get_user_model().objects.filter(profile__organization=organization)

    def search(self, queryset, name, value):
        return queryset.filter(
            Q(company_name__icontains=value)
            | Q(city__icontains=value)
            | Q(email__icontains=value)
            | Q(siret__icontains=value.replace(" ", ""))
        )
