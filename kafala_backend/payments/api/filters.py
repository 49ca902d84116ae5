# payments/api/filters.py

import django_filters

from payments.models import Payment, Receipt, Transfer


class PaymentFilter(django_filters.FilterSet):
    date_from = django_filters.DateFilter(field_name="payment_date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="payment_date", lookup_expr="lte")

    class Meta:
        model = Payment
        fields = ["sponsor", "beneficiary", "guardian", "payment_type", "receipt"]


class ReceiptFilter(django_filters.FilterSet):
    class Meta:
        model = Receipt
        fields = ["sponsor", "payment_type"]


class TransferFilter(django_filters.FilterSet):
    date_from = django_filters.DateFilter(field_name="transfer_date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="transfer_date", lookup_expr="lte")

    class Meta:
        model = Transfer
        fields = ["guardian", "beneficiary", "sponsor"]
