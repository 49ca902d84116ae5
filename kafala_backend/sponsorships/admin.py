# sponsorships/admin.py

"""
Admin is read-mostly for the engine-owned state:
- Sponsor.active_sponsorship_count is derived (read-only).
- Installments are shown inline, never editable (the allocation engine owns
  amount_paid / settled).
"""

from django.contrib import admin

from sponsorships.models import Installment, Sponsor, Sponsorship


class InstallmentInline(admin.TabularInline):
    model = Installment
    extra = 0
    can_delete = False
    fields = ("month", "amount_due", "amount_paid", "settled")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Sponsor)
class SponsorAdmin(admin.ModelAdmin):
    list_display = ("last_name", "first_name", "sponsor_type", "pledge_value", "active_sponsorship_count")
    list_filter = ("sponsor_type", "is_member", "is_donor", "is_sponsor")
    search_fields = ("last_name", "first_name", "email", "sponsor_code", "donor_code")
    readonly_fields = ("active_sponsorship_count", "created_at", "updated_at")


@admin.register(Sponsorship)
class SponsorshipAdmin(admin.ModelAdmin):
    list_display = ("sponsor", "beneficiary", "start_date", "end_date", "pledge_value")
    search_fields = ("sponsor__last_name", "beneficiary__last_name")
    list_select_related = ("sponsor", "beneficiary")
    readonly_fields = ("pledge_value", "created_at")
    inlines = [InstallmentInline]


@admin.register(Installment)
class InstallmentAdmin(admin.ModelAdmin):
    list_display = ("sponsorship", "month", "amount_due", "amount_paid", "settled")
    list_filter = ("settled",)
    date_hierarchy = "month"
    readonly_fields = ("sponsorship", "month", "amount_due", "amount_paid", "settled", "created_at", "updated_at")

    def has_add_permission(self, request):
        return False
