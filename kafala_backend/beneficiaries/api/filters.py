# beneficiaries/api/filters.py

import django_filters

from beneficiaries.models import Beneficiary, Guardian


class GuardianFilter(django_filters.FilterSet):
    q = django_filters.CharFilter(field_name="last_name", lookup_expr="icontains")

    class Meta:
        model = Guardian
        fields = ["is_closed"]


class BeneficiaryFilter(django_filters.FilterSet):
    q = django_filters.CharFilter(field_name="last_name", lookup_expr="icontains")
    min_age = django_filters.NumberFilter(field_name="age_cache", lookup_expr="gte")
    max_age = django_filters.NumberFilter(field_name="age_cache", lookup_expr="lte")

    class Meta:
        model = Beneficiary
        fields = ["guardian", "is_closed"]
