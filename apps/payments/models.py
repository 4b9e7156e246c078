"""
Payment sub-record of an order: method, settlement status, gateway
identifiers and refund details.
"""

from django.db import models


class Payment(models.Model):
    METHOD_RAZORPAY = "razorpay"
    METHOD_COD = "cod"
    METHOD_WALLET = "wallet"
    METHOD_UPI = "upi"

    METHOD_CHOICES = [
        (METHOD_RAZORPAY, "Razorpay"),
        (METHOD_COD, "Cash on delivery"),
        (METHOD_WALLET, "Wallet"),
        (METHOD_UPI, "UPI"),
    ]

    STATUS_PENDING = "pending"
    STATUS_COMPLETED = "completed"
    STATUS_FAILED = "failed"
    STATUS_REFUNDED = "refunded"
    STATUS_PARTIALLY_REFUNDED = "partially_refunded"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_FAILED, "Failed"),
        (STATUS_REFUNDED, "Refunded"),
        (STATUS_PARTIALLY_REFUNDED, "Partially refunded"),
    ]

    SETTLED_STATUSES = (STATUS_COMPLETED, STATUS_REFUNDED, STATUS_PARTIALLY_REFUNDED)

    order = models.OneToOneField("orders.Order", on_delete=models.PROTECT, related_name="payment")
    method = models.CharField(max_length=30, choices=METHOD_CHOICES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    gateway_order_id = models.CharField(max_length=100, blank=True, default="", db_index=True)
    gateway_payment_id = models.CharField(max_length=100, blank=True, default="")
    gateway_signature = models.CharField(max_length=256, blank=True, default="")
    paid_at = models.DateTimeField(null=True, blank=True)
    failure_reason = models.CharField(max_length=500, blank=True, default="")
    refund_id = models.CharField(max_length=100, blank=True, default="")
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    refund_reason = models.CharField(max_length=500, blank=True, default="")
    refunded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["status", "paid_at"], name="payments_status_paid_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.order} - {self.status}"
