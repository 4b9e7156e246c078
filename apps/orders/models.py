from __future__ import annotations

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from .domain.policies import within_window
from .domain.pricing import money
from .domain.state_machine import ExchangeStatus, OrderEvent, OrderStateMachine, OrderStatus, ReturnStatus


def _choices(enum_cls) -> list[tuple[str, str]]:
    return [(member.value, member.value.replace("_", " ").title()) for member in enum_cls]


class Order(models.Model):
    STATUS_CHOICES = _choices(OrderStatus)

    COUPON_TYPE_CHOICES = [
        ("fixed", "Fixed"),
        ("percentage", "Percentage"),
    ]

    order_number = models.CharField(max_length=40, unique=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="orders")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=OrderStatus.PENDING.value)

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    shipping_fee = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    currency = models.CharField(max_length=3, default="INR")

    coupon_code = models.CharField(max_length=50, blank=True, default="")
    coupon_type = models.CharField(max_length=20, choices=COUPON_TYPE_CHOICES, blank=True, default="")
    coupon_value = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    shipping_address = models.JSONField(default=dict)
    billing_address = models.JSONField(default=dict)
    customer_note = models.TextField(blank=True, default="")
    is_gift = models.BooleanField(default=False)
    gift_message = models.CharField(max_length=500, blank=True, default="")

    tracking_number = models.CharField(max_length=100, blank=True, default="")
    carrier = models.CharField(max_length=100, blank=True, default="")
    tracking_url = models.URLField(blank=True, default="")
    estimated_delivery = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    invoice_number = models.CharField(max_length=50, blank=True, default="")
    invoice_url = models.CharField(max_length=500, blank=True, default="")
    invoice_generated_at = models.DateTimeField(null=True, blank=True)

    reordered_from = models.ForeignKey(
        "self", null=True, blank=True, on_delete=models.PROTECT, related_name="reorders"
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["user", "created_at"], name="orders_user_created_idx"),
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["created_at"], name="orders_created_idx"),
        ]

    def __str__(self) -> str:
        return self.order_number

    def can_be_cancelled(self) -> bool:
        return OrderStateMachine.can_apply(self.status, OrderEvent.CANCEL)

    def _delivery_reference(self):
        return self.delivered_at or self.created_at

    def can_be_returned(self, now=None) -> bool:
        now = now or timezone.now()
        return OrderStateMachine.can_apply(self.status, OrderEvent.REQUEST_RETURN) and within_window(
            self._delivery_reference(), now, settings.ORDER_RETURN_WINDOW_DAYS
        )

    def can_be_exchanged(self, now=None) -> bool:
        now = now or timezone.now()
        return OrderStateMachine.can_apply(self.status, OrderEvent.REQUEST_EXCHANGE) and within_window(
            self._delivery_reference(), now, settings.ORDER_EXCHANGE_WINDOW_DAYS
        )

    def recalculate_total(self):
        self.subtotal = money(sum((item.line_total for item in self.items.all()), money(0)))
        self.total = money(self.subtotal + self.shipping_fee + self.tax - self.discount)
        return self.total


class OrderItem(models.Model):
    STATUS_CHOICES = _choices(OrderStatus)

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey("catalog.Product", on_delete=models.PROTECT, related_name="order_items")
    product_name = models.CharField(max_length=100)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    variant = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=OrderStatus.PENDING.value)

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        return f"{self.order} - {self.product_name} x{self.quantity}"

    @property
    def line_total(self):
        return money(self.unit_price * self.quantity)


class OrderStatusHistory(models.Model):
    """Append-only audit trail of applied transitions."""

    order = models.ForeignKey(Order, on_delete=models.PROTECT, related_name="status_history")
    status = models.CharField(max_length=20, choices=_choices(OrderStatus))
    note = models.CharField(max_length=500, blank=True, default="")
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+"
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["id"]
        verbose_name_plural = "Order status history"

    def __str__(self) -> str:
        return f"{self.order} -> {self.status}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValueError("Status history entries are immutable.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Status history entries cannot be deleted.")


class OrderCancellation(models.Model):
    REFUND_NONE = "none"
    REFUND_PENDING = "pending"
    REFUND_PROCESSED = "processed"
    REFUND_FAILED = "failed"

    REFUND_STATUS_CHOICES = [
        (REFUND_NONE, "None"),
        (REFUND_PENDING, "Pending"),
        (REFUND_PROCESSED, "Processed"),
        (REFUND_FAILED, "Failed"),
    ]

    order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name="cancellation")
    reason = models.CharField(max_length=500)
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, on_delete=models.SET_NULL, related_name="+"
    )
    cancelled_at = models.DateTimeField(default=timezone.now)
    refund_status = models.CharField(max_length=20, choices=REFUND_STATUS_CHOICES, default=REFUND_NONE)


class OrderReturn(models.Model):
    STATUS_CHOICES = _choices(ReturnStatus)

    order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name="return_request")
    reason = models.CharField(max_length=500)
    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, on_delete=models.SET_NULL, related_name="+"
    )
    requested_at = models.DateTimeField(default=timezone.now)
    approved_at = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=ReturnStatus.REQUESTED.value)
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    return_tracking_number = models.CharField(max_length=100, blank=True, default="")


class OrderExchange(models.Model):
    STATUS_CHOICES = _choices(ExchangeStatus)

    order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name="exchange_request")
    reason = models.CharField(max_length=500)
    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, on_delete=models.SET_NULL, related_name="+"
    )
    requested_at = models.DateTimeField(default=timezone.now)
    approved_at = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=ExchangeStatus.REQUESTED.value)
    new_product = models.ForeignKey("catalog.Product", on_delete=models.PROTECT, related_name="+")
    price_difference = models.DecimalField(max_digits=12, decimal_places=2)
    exchange_tracking_number = models.CharField(max_length=100, blank=True, default="")


class TrackingEvent(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="tracking_events")
    status = models.CharField(max_length=50)
    location = models.CharField(max_length=200, blank=True, default="")
    description = models.CharField(max_length=500, blank=True, default="")
    occurred_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["occurred_at", "id"]
