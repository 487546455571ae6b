from rest_framework import serializers

from apps.sales.models import PaymentMethod, Refund, RefundLine, Sale, SaleLine


class SaleLineSerializer(serializers.ModelSerializer):
    consignor_number = serializers.CharField(source="consignor.consignor_number", read_only=True)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = SaleLine
        fields = [
            "id",
            "consignor",
            "consignor_number",
            "sku",
            "name",
            "unit_price",
            "quantity",
            "commission_split",
            "line_total",
        ]
        read_only_fields = fields


class RefundLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = RefundLine
        fields = ["id", "sale_line", "quantity", "restocked"]
        read_only_fields = fields


class RefundSerializer(serializers.ModelSerializer):
    lines = RefundLineSerializer(many=True, read_only=True)
    processed_by_username = serializers.CharField(source="processed_by.username", read_only=True, default=None)

    class Meta:
        model = Refund
        fields = ["id", "sale", "refund_amount", "payment_method", "processed_by", "processed_by_username", "created_at", "lines"]
        read_only_fields = fields


class SaleSerializer(serializers.ModelSerializer):
    lines = SaleLineSerializer(many=True, read_only=True)
    refunds = RefundSerializer(many=True, read_only=True)
    cashier_username = serializers.CharField(source="cashier.username", read_only=True, default=None)

    class Meta:
        model = Sale
        fields = [
            "id",
            "cashier",
            "cashier_username",
            "payment_method",
            "subtotal",
            "tax_amount",
            "total",
            "completed_at",
            "refund_status",
            "created_at",
            "lines",
            "refunds",
        ]
        read_only_fields = fields


class SaleListSerializer(serializers.ModelSerializer):
    cashier_username = serializers.CharField(source="cashier.username", read_only=True, default=None)

    class Meta:
        model = Sale
        fields = [
            "id",
            "cashier",
            "cashier_username",
            "payment_method",
            "total",
            "completed_at",
            "refund_status",
        ]
        read_only_fields = fields


class RefundItemSerializer(serializers.Serializer):
    sale_line = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    restocked = serializers.BooleanField(required=False, default=False)


class RefundCreateSerializer(serializers.Serializer):
    refund_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, required=False, allow_null=True, default=None)
    items = RefundItemSerializer(many=True)

    def validate_refund_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Refund amount must be greater than 0.")
        return value

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("A refund must include at least one line.")
        return value
