from __future__ import annotations

from rest_framework import serializers

from apps.orders.domain.pricing import COUPON_FIXED, COUPON_PERCENTAGE
from apps.orders.domain.state_machine import ExchangeStatus, FULFILLMENT_EVENTS, OrderStatus, ReturnStatus
from apps.orders.models import Order, OrderCancellation, OrderExchange, OrderItem, OrderReturn
from apps.payments.models import Payment


class AddressSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    phone = serializers.RegexField(r"^\+?[0-9]{10,15}$", error_messages={"invalid": "Enter a valid phone number."})
    address = serializers.CharField(max_length=500)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100)
    pincode = serializers.RegexField(r"^[0-9]{6}$", error_messages={"invalid": "Enter a valid 6 digit pincode."})
    landmark = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    address_type = serializers.ChoiceField(choices=["home", "work", "other"], required=False, default="home")


class BillingAddressSerializer(AddressSerializer):
    same_as_shipping = serializers.BooleanField(required=False, default=False)


class VariantSerializer(serializers.Serializer):
    color = serializers.CharField(max_length=50, required=False, allow_blank=True)
    size = serializers.CharField(max_length=20, required=False, allow_blank=True)
    other = serializers.CharField(max_length=100, required=False, allow_blank=True)


class OrderItemInputSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1, max_value=100)
    variant = VariantSerializer(required=False)


class CouponInputSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50)
    type = serializers.ChoiceField(choices=[COUPON_FIXED, COUPON_PERCENTAGE], default=COUPON_FIXED)
    value = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)

    def validate(self, attrs):
        if attrs["type"] == COUPON_PERCENTAGE and attrs["value"] > 100:
            raise serializers.ValidationError({"value": "Percentage discount cannot exceed 100."})
        return attrs


class OrderCreateSerializer(serializers.Serializer):
    items = OrderItemInputSerializer(many=True, allow_empty=False)
    shipping_address = AddressSerializer()
    billing_address = BillingAddressSerializer(required=False)
    payment_method = serializers.ChoiceField(choices=[choice for choice, _ in Payment.METHOD_CHOICES])
    coupon = CouponInputSerializer(required=False)
    customer_note = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    is_gift = serializers.BooleanField(required=False, default=False)
    gift_message = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class OrderListQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False, default=10)
    status = serializers.ChoiceField(choices=[s.value for s in OrderStatus], required=False)


class ReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(min_length=10, max_length=500)


class ExchangeRequestSerializer(ReasonSerializer):
    new_product_id = serializers.IntegerField(min_value=1)


class FulfillmentUpdateSerializer(serializers.Serializer):
    event = serializers.ChoiceField(choices=sorted(str(event) for event in FULFILLMENT_EVENTS))
    note = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    tracking_number = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    carrier = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    tracking_url = serializers.URLField(required=False, allow_blank=True, default="")
    location = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")


class ReturnStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[s.value for s in ReturnStatus])
    return_tracking_number = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    note = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class ExchangeStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[s.value for s in ExchangeStatus])
    exchange_tracking_number = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    note = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class OrderItemSerializer(serializers.ModelSerializer):
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = ["id", "product_id", "product_name", "quantity", "unit_price", "variant", "status", "line_total"]


class PaymentSummarySerializer(serializers.ModelSerializer):
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
            "refunded_at",
        ]


class CancellationSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderCancellation
        fields = ["reason", "cancelled_at", "refund_status"]


class ReturnSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderReturn
        fields = ["reason", "requested_at", "approved_at", "status", "refund_amount", "return_tracking_number"]


class ExchangeSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderExchange
        fields = [
            "reason",
            "requested_at",
            "approved_at",
            "status",
            "new_product_id",
            "price_difference",
            "exchange_tracking_number",
        ]


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    payment = serializers.SerializerMethodField()
    pricing = serializers.SerializerMethodField()
    coupon = serializers.SerializerMethodField()
    cancellation = serializers.SerializerMethodField()
    return_request = serializers.SerializerMethodField()
    exchange_request = serializers.SerializerMethodField()
    can_be_cancelled = serializers.BooleanField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "user_id",
            "status",
            "items",
            "pricing",
            "coupon",
            "payment",
            "shipping_address",
            "billing_address",
            "customer_note",
            "is_gift",
            "gift_message",
            "tracking_number",
            "carrier",
            "tracking_url",
            "estimated_delivery",
            "delivered_at",
            "invoice_number",
            "invoice_url",
            "cancellation",
            "return_request",
            "exchange_request",
            "can_be_cancelled",
            "reordered_from_id",
            "created_at",
            "updated_at",
        ]

    def get_pricing(self, obj: Order) -> dict:
        return {
            "subtotal": str(obj.subtotal),
            "shipping_fee": str(obj.shipping_fee),
            "tax": str(obj.tax),
            "discount": str(obj.discount),
            "total": str(obj.total),
            "currency": obj.currency,
        }

    def get_coupon(self, obj: Order):
        if not obj.coupon_code:
            return None
        return {"code": obj.coupon_code, "type": obj.coupon_type, "value": str(obj.coupon_value)}

    def _related(self, obj: Order, name: str, serializer_cls):
        instance = getattr(obj, name, None)
        return serializer_cls(instance).data if instance else None

    def get_payment(self, obj: Order):
        return self._related(obj, "payment", PaymentSummarySerializer)

    def get_cancellation(self, obj: Order):
        return self._related(obj, "cancellation", CancellationSerializer)

    def get_return_request(self, obj: Order):
        return self._related(obj, "return_request", ReturnSerializer)

    def get_exchange_request(self, obj: Order):
        return self._related(obj, "exchange_request", ExchangeSerializer)
