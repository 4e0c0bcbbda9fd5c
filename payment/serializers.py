from rest_framework import serializers
from .models import PaymentTransaction


class PaymentTransactionSerializer(serializers.ModelSerializer):
    """
    Read-only view of a gateway transaction for the back office.
    """

    order_ref = serializers.CharField(source="booking.order_ref", read_only=True)

    class Meta:
        model = PaymentTransaction
        fields = [
            "id",
            "order_ref",
            "gateway",
            "purpose",
            "reference",
            "payment_url",
            "amount",
            "status",
            "paid_at",
            "created_at",
        ]
        read_only_fields = fields


class DPOVerifySerializer(serializers.Serializer):
    transaction_token = serializers.CharField(max_length=255)
    order_ref = serializers.CharField(max_length=64)
