# payments/admin.py

"""
Payments are created and deleted through the payment service only (allocation
and reversal must run in the same transaction). Admin is read-only for them.
"""

from django.contrib import admin

from payments.models import Payment, Receipt, Transfer


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("payment_date", "payment_type", "amount", "sponsor", "beneficiary")
    list_filter = ("payment_type",)
    date_hierarchy = "payment_date"
    search_fields = ("sponsor__last_name", "beneficiary__last_name")
    list_select_related = ("sponsor", "beneficiary")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Receipt)
class ReceiptAdmin(admin.ModelAdmin):
    list_display = ("number", "issued_on", "payment_type", "total", "sponsor")
    search_fields = ("number", "sponsor__last_name")


@admin.register(Transfer)
class TransferAdmin(admin.ModelAdmin):
    list_display = ("transfer_date", "guardian", "beneficiary", "sponsor", "pledge_value", "months")
    list_select_related = ("guardian", "beneficiary", "sponsor")
