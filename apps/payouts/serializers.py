from rest_framework import serializers

from apps.payouts.models import BalanceDisposition, Payout


def money_field(**kwargs):
    return serializers.DecimalField(max_digits=12, decimal_places=2, **kwargs)


class SummaryLineSerializer(serializers.Serializer):
    line_id = serializers.UUIDField()
    sale_id = serializers.UUIDField()
    sale_date = serializers.DateTimeField()
    sku = serializers.CharField()
    item_name = serializers.CharField()
    unit_price = money_field()
    quantity = serializers.IntegerField()
    commission_split = serializers.DecimalField(max_digits=5, decimal_places=4)
    payment_method = serializers.CharField()
    line_total = money_field()
    consignor_share = money_field()
    store_share = money_field()
    card_fee = money_field()
    tax_amount = money_field()
    refunded_quantity = serializers.IntegerField()
    refund_status = serializers.CharField()
    is_refunded = serializers.BooleanField()
    adjusted_line_total = money_field()
    adjusted_consignor_share = money_field()
    net_consignor_amount = money_field()
    is_inconsistent = serializers.BooleanField()


class ConsignorPayoutSummarySerializer(serializers.Serializer):
    consignor_id = serializers.UUIDField()
    consignor_number = serializers.CharField()
    consignor_name = serializers.CharField()
    commission_split = serializers.DecimalField(max_digits=5, decimal_places=4)
    period_start = serializers.DateTimeField()
    period_end = serializers.DateTimeField()
    gross_sales = money_field()
    tax_collected = money_field()
    store_share = money_field()
    consignor_gross_share = money_field()
    credit_card_fees = money_field()
    pending_amount = money_field()
    sales_count = serializers.IntegerField()
    items_sold = serializers.IntegerField()
    last_payout_id = serializers.UUIDField(allow_null=True)
    last_paid_at = serializers.DateTimeField(allow_null=True)
    has_inconsistencies = serializers.BooleanField()
    inconsistent_line_ids = serializers.ListField(child=serializers.UUIDField())
    lines = SummaryLineSerializer(many=True)


class SummaryTotalsSerializer(serializers.Serializer):
    total_pending = money_field()
    total_gross_sales = money_field()
    total_store_share = money_field()
    total_tax_collected = money_field()
    total_credit_card_fees = money_field()
    total_sales_count = serializers.IntegerField()
    total_items_sold = serializers.IntegerField()
    consignors_with_pending = serializers.IntegerField()


class PayoutSerializer(serializers.ModelSerializer):
    consignor_number = serializers.CharField(source="consignor.consignor_number", read_only=True)
    consignor_name = serializers.CharField(source="consignor.name", read_only=True)
    unpaid_remainder = money_field(read_only=True, allow_null=True)

    class Meta:
        model = Payout
        fields = [
            "id",
            "consignor",
            "consignor_number",
            "consignor_name",
            "amount",
            "period_start",
            "period_end",
            "paid_at",
            "sales_count",
            "items_sold",
            "gross_sales",
            "tax_collected",
            "store_share",
            "credit_card_fees",
            "notes",
            "is_partial",
            "original_amount_due",
            "partial_reason",
            "balance_disposition",
            "unpaid_remainder",
            "created_at",
        ]
        read_only_fields = fields


class PayoutRequestSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    custom_amount = money_field(required=False, allow_null=True, default=None)
    partial_reason = serializers.CharField(required=False, allow_blank=True, default="")
    balance_disposition = serializers.ChoiceField(
        choices=BalanceDisposition.choices, required=False, allow_null=True, default=None
    )
    expected_pending_amount = money_field(required=False, allow_null=True, default=None)
