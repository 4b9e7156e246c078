from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("id", "order", "method", "status", "amount", "paid_at", "refund_amount")
    search_fields = ("order__order_number", "gateway_order_id", "gateway_payment_id", "refund_id")
    list_filter = ("method", "status")
    list_select_related = ("order",)
