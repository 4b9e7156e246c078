from __future__ import annotations

from django.template.loader import render_to_string

from apps.notifications.domain.ports import RenderedMessage
from apps.notifications.models import OutboundEvent

_HEADLINES = {
    OutboundEvent.ORDER_CREATED: "Order Confirmation",
    OutboundEvent.ORDER_CANCELLED: "Order Cancelled",
    OutboundEvent.ORDER_RETURN_REQUESTED: "Return Requested",
    OutboundEvent.ORDER_EXCHANGE_REQUESTED: "Exchange Requested",
    OutboundEvent.ORDER_STATUS_CHANGED: "Order Update",
    OutboundEvent.PAYMENT_COMPLETED: "Payment Confirmation",
    OutboundEvent.PAYMENT_FAILED: "Payment Failed",
    OutboundEvent.PAYMENT_REFUNDED: "Refund Processed",
}

_SMS = {
    OutboundEvent.ORDER_CREATED: "Your order {number} has been placed. Total: {currency} {total}.",
    OutboundEvent.ORDER_CANCELLED: "Your order {number} has been cancelled.",
    OutboundEvent.ORDER_RETURN_REQUESTED: "We received your return request for order {number}.",
    OutboundEvent.ORDER_EXCHANGE_REQUESTED: "We received your exchange request for order {number}.",
    OutboundEvent.ORDER_STATUS_CHANGED: "Your order {number} is now {status}.",
    OutboundEvent.PAYMENT_COMPLETED: "Payment received for order {number}.",
    OutboundEvent.PAYMENT_FAILED: "Payment for order {number} failed. Please try again.",
    OutboundEvent.PAYMENT_REFUNDED: "A refund has been processed for order {number}.",
}


class OrderMessageRenderer:
    @staticmethod
    def render(event: OutboundEvent) -> RenderedMessage:
        order = event.order
        headline = _HEADLINES.get(event.event_type, "Order Update")
        text = render_to_string(
            "notifications/email/order_event.txt",
            {
                "headline": headline,
                "event_type": event.event_type,
                "order": order,
                "items": list(order.items.all()),
                "payload": event.payload or {},
            },
        )
        sms = _SMS.get(event.event_type, "").format(
            number=order.order_number,
            currency=order.currency,
            total=order.total,
            status=order.status,
        )
        return RenderedMessage(subject=f"{headline} - {order.order_number}", text=text, sms=sms)
