from django.contrib import admin

from apps.consignors.models import Consignor


@admin.register(Consignor)
class ConsignorAdmin(admin.ModelAdmin):
    list_display = ("consignor_number", "name", "commission_split", "booth_location", "is_active")
    search_fields = ("consignor_number", "name", "email", "user__username")
    list_filter = ("is_active",)
