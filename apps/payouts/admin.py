from django.contrib import admin

from apps.payouts.models import Payout


@admin.register(Payout)
class PayoutAdmin(admin.ModelAdmin):
    list_display = (
        "consignor",
        "amount",
        "paid_at",
        "is_partial",
        "original_amount_due",
        "balance_disposition",
        "gross_sales",
        "credit_card_fees",
    )
    list_filter = ("is_partial", "balance_disposition", "consignor")
    search_fields = ("consignor__consignor_number", "consignor__name", "notes", "partial_reason")
    readonly_fields = [field.name for field in Payout._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
