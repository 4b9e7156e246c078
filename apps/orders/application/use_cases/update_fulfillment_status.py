from __future__ import annotations

from dataclasses import dataclass

from django.db import transaction
from django.utils import timezone

from apps.notifications.application.services.publisher import OutboundEventPublisher
from apps.notifications.models import OutboundEvent
from apps.orders.domain.errors import OrderValidationError
from apps.orders.domain.state_machine import FULFILLMENT_EVENTS, OrderEvent
from apps.orders.models import Order, TrackingEvent
from apps.orders.services.order_service import OrderService

_DEFAULT_NOTES = {
    OrderEvent.START_PROCESSING: "Order is being processed",
    OrderEvent.SHIP: "Order shipped",
    OrderEvent.DELIVER: "Order delivered",
}


@dataclass(frozen=True)
class UpdateFulfillmentStatusCommand:
    order_id: int
    actor: object
    event: str
    note: str = ""
    tracking_number: str = ""
    carrier: str = ""
    tracking_url: str = ""
    location: str = ""


class UpdateFulfillmentStatusUseCase:
    @staticmethod
    @transaction.atomic
    def execute(cmd: UpdateFulfillmentStatusCommand) -> Order:
        event = OrderEvent(cmd.event)
        if event not in FULFILLMENT_EVENTS:
            raise OrderValidationError(f"Unsupported fulfillment event '{cmd.event}'", field="event")

        order = OrderService.get_for_actor(cmd.order_id, cmd.actor, allow_admin=True, for_update=True)

        extra_fields: list[str] = []
        for name in ("tracking_number", "carrier", "tracking_url"):
            value = getattr(cmd, name)
            if value:
                setattr(order, name, value)
                extra_fields.append(name)
        if event == OrderEvent.DELIVER:
            order.delivered_at = timezone.now()
            extra_fields.append("delivered_at")

        note = cmd.note or _DEFAULT_NOTES[event]
        OrderService.apply_event(order, event, note=note, actor=cmd.actor, extra_fields=tuple(extra_fields))
        TrackingEvent.objects.create(order=order, status=order.status, location=cmd.location, description=note)
        OutboundEventPublisher.publish(
            event_type=OutboundEvent.ORDER_STATUS_CHANGED,
            order=order,
            payload={"status": order.status},
        )
        return order
