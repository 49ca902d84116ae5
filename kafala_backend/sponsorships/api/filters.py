# sponsorships/api/filters.py

import django_filters

from kafala.services.activity import active_q
from sponsorships.models import Installment, Sponsor, Sponsorship


class SponsorFilter(django_filters.FilterSet):
    q = django_filters.CharFilter(field_name="last_name", lookup_expr="icontains")

    class Meta:
        model = Sponsor
        fields = ["sponsor_type", "is_member", "is_donor", "is_sponsor"]


class SponsorshipFilter(django_filters.FilterSet):
    active = django_filters.BooleanFilter(method="filter_active")

    class Meta:
        model = Sponsorship
        fields = ["sponsor", "beneficiary"]

    def filter_active(self, queryset, name, value):
        if value is None:
            return queryset
        return queryset.filter(active_q()) if value else queryset.exclude(active_q())


class InstallmentFilter(django_filters.FilterSet):
    month_from = django_filters.DateFilter(field_name="month", lookup_expr="gte")
    month_to = django_filters.DateFilter(field_name="month", lookup_expr="lte")

    class Meta:
        model = Installment
        fields = ["settled"]
