from __future__ import annotations

from rest_framework import serializers

from apps.orders.models import Order
from apps.payments.models import Payment


class CreatePaymentIntentSerializer(serializers.Serializer):
    order_id = serializers.IntegerField(min_value=1)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)


class VerifyPaymentSerializer(serializers.Serializer):
    razorpay_order_id = serializers.CharField(max_length=100)
    razorpay_payment_id = serializers.CharField(max_length=100)
    razorpay_signature = serializers.CharField(max_length=256)
    order_id = serializers.IntegerField(min_value=1)


class PaymentErrorSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class PaymentFailureSerializer(serializers.Serializer):
    order_id = serializers.IntegerField(min_value=1)
    error = PaymentErrorSerializer(required=False)


class RefundSerializer(serializers.Serializer):
    order_id = serializers.IntegerField(min_value=1)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    reason = serializers.CharField(min_length=3, max_length=500)


class HistoryQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False, default=10)


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = [
            "method",
            "status",
            "amount",
            "gateway_order_id",
            "gateway_payment_id",
            "paid_at",
            "failure_reason",
            "refund_id",
            "refund_amount",
            "refund_reason",
            "refunded_at",
        ]


class PaymentHistoryRowSerializer(serializers.ModelSerializer):
    payment = PaymentSerializer(read_only=True)
    pricing = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = ["id", "order_number", "payment", "pricing", "created_at"]

    def get_pricing(self, obj: Order) -> dict:
        return {
            "subtotal": str(obj.subtotal),
            "shipping_fee": str(obj.shipping_fee),
            "tax": str(obj.tax),
            "discount": str(obj.discount),
            "total": str(obj.total),
        }
