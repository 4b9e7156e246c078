from django.contrib import admin

from .models import OutboundEvent


@admin.register(OutboundEvent)
class OutboundEventAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "event_type",
        "order",
        "status",
        "attempts",
        "email_sent_at",
        "sms_sent_at",
        "dispatched_at",
    )
    search_fields = ("order__order_number", "event_type")
    list_filter = ("event_type", "status")
    list_select_related = ("order",)
