from django.contrib import admin

from apps.sales.models import Refund, RefundLine, Sale, SaleLine


class SaleLineInline(admin.TabularInline):
    model = SaleLine
    extra = 0
    autocomplete_fields = ("consignor",)


class RefundLineInline(admin.TabularInline):
    model = RefundLine
    extra = 0


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = ("id", "cashier", "payment_method", "subtotal", "tax_amount", "total", "refund_status", "completed_at")
    list_filter = ("payment_method", "refund_status")
    search_fields = ("id", "cashier__username", "lines__sku")
    inlines = [SaleLineInline]


@admin.register(SaleLine)
class SaleLineAdmin(admin.ModelAdmin):
    list_display = ("sale", "consignor", "sku", "name", "quantity", "unit_price", "commission_split")
    search_fields = ("sale__id", "sku", "name", "consignor__consignor_number")
    autocomplete_fields = ("sale", "consignor")


@admin.register(Refund)
class RefundAdmin(admin.ModelAdmin):
    list_display = ("sale", "refund_amount", "payment_method", "processed_by", "created_at")
    list_filter = ("payment_method",)
    search_fields = ("sale__id", "processed_by__username")
    inlines = [RefundLineInline]
