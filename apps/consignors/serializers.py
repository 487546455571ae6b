from rest_framework import serializers

from apps.consignors.models import Consignor


class ConsignorSerializer(serializers.ModelSerializer):
    class Meta:
        model = Consignor
        fields = [
            "id",
            "user",
            "consignor_number",
            "name",
            "email",
            "phone",
            "address",
            "booth_location",
            "notes",
            "commission_split",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]
        extra_kwargs = {
            "user": {
                "required": False,
                "allow_null": True,
            }
        }

    def validate_commission_split(self, value):
        if value <= 0 or value > 1:
            raise serializers.ValidationError("Commission split must be greater than 0 and at most 1.")
        return value

    def validate_consignor_number(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Consignor number is required.")
        return value
