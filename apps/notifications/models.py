from django.db import models


class OutboundEvent(models.Model):
    """
    Side effect recorded by a workflow inside its transaction and delivered
    by a worker after commit.
    """

    ORDER_CREATED = "order.created"
    ORDER_CANCELLED = "order.cancelled"
    ORDER_RETURN_REQUESTED = "order.return_requested"
    ORDER_EXCHANGE_REQUESTED = "order.exchange_requested"
    ORDER_STATUS_CHANGED = "order.status_changed"
    PAYMENT_COMPLETED = "payment.completed"
    PAYMENT_FAILED = "payment.failed"
    PAYMENT_REFUNDED = "payment.refunded"

    EVENT_TYPE_CHOICES = [
        (ORDER_CREATED, "Order created"),
        (ORDER_CANCELLED, "Order cancelled"),
        (ORDER_RETURN_REQUESTED, "Return requested"),
        (ORDER_EXCHANGE_REQUESTED, "Exchange requested"),
        (ORDER_STATUS_CHANGED, "Order status changed"),
        (PAYMENT_COMPLETED, "Payment completed"),
        (PAYMENT_FAILED, "Payment failed"),
        (PAYMENT_REFUNDED, "Payment refunded"),
    ]

    STATUS_PENDING = "pending"
    STATUS_SENT = "sent"
    STATUS_FAILED = "failed"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_SENT, "Sent"),
        (STATUS_FAILED, "Failed"),
    ]

    event_type = models.CharField(max_length=50, choices=EVENT_TYPE_CHOICES)
    order = models.ForeignKey("orders.Order", on_delete=models.PROTECT, related_name="outbound_events")
    payload = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True, default="")
    email_sent_at = models.DateTimeField(null=True, blank=True)
    sms_sent_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    dispatched_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["status", "created_at"], name="outbound_status_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.event_type} ({self.status})"
