# beneficiaries/admin.py

from django.contrib import admin

from beneficiaries.models import Beneficiary, Guardian


class BeneficiaryInline(admin.TabularInline):
    model = Beneficiary
    extra = 0
    fields = ("last_name", "first_name", "birth_date", "is_closed")
    show_change_link = True


@admin.register(Guardian)
class GuardianAdmin(admin.ModelAdmin):
    list_display = ("last_name", "first_name", "phone", "is_closed", "created_at")
    list_filter = ("is_closed",)
    search_fields = ("last_name", "first_name", "national_id")
    inlines = [BeneficiaryInline]


@admin.register(Beneficiary)
class BeneficiaryAdmin(admin.ModelAdmin):
    list_display = ("last_name", "first_name", "birth_date", "age_cache", "guardian", "is_closed")
    list_filter = ("is_closed",)
    search_fields = ("last_name", "first_name", "guardian__last_name")
    readonly_fields = ("age_cache", "created_at", "updated_at")
    list_select_related = ("guardian",)
