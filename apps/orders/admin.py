from django.contrib import admin

from .models import Order, OrderCancellation, OrderExchange, OrderItem, OrderReturn, OrderStatusHistory, TrackingEvent


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ("product", "product_name", "quantity", "unit_price", "variant", "status")


class OrderStatusHistoryInline(admin.TabularInline):
    model = OrderStatusHistory
    extra = 0
    can_delete = False
    readonly_fields = ("status", "note", "actor", "created_at")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "order_number", "user", "status", "total", "created_at")
    search_fields = ("order_number", "user__username", "user__email")
    list_filter = ("status",)
    readonly_fields = ("order_number", "subtotal", "shipping_fee", "tax", "discount", "total", "status")
    inlines = [OrderItemInline, OrderStatusHistoryInline]


admin.site.register(OrderCancellation)
admin.site.register(OrderReturn)
admin.site.register(OrderExchange)
admin.site.register(TrackingEvent)
