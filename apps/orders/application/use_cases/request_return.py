from __future__ import annotations

from dataclasses import dataclass

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.notifications.application.services.publisher import OutboundEventPublisher
from apps.notifications.models import OutboundEvent
from apps.orders.domain.errors import InvalidTransitionError, ReturnWindowExpiredError
from apps.orders.domain.state_machine import OrderEvent, OrderStateMachine
from apps.orders.models import Order, OrderReturn
from apps.orders.services.order_service import OrderService


@dataclass(frozen=True)
class RequestReturnCommand:
    order_id: int
    actor: object
    reason: str


class RequestReturnUseCase:
    @staticmethod
    @transaction.atomic
    def execute(cmd: RequestReturnCommand) -> Order:
        order = OrderService.get_for_actor(cmd.order_id, cmd.actor, for_update=True)
        if not OrderStateMachine.can_apply(order.status, OrderEvent.REQUEST_RETURN):
            raise InvalidTransitionError(
                "Only delivered orders can be returned",
                details={"status": order.status},
            )
        if not order.can_be_returned(timezone.now()):
            raise ReturnWindowExpiredError(
                f"Order cannot be returned. The {settings.ORDER_RETURN_WINDOW_DAYS} day return window has expired."
            )

        OrderReturn.objects.create(order=order, reason=cmd.reason, requested_by=cmd.actor)
        OrderService.apply_event(
            order, OrderEvent.REQUEST_RETURN, note=f"Return requested: {cmd.reason}", actor=cmd.actor
        )
        OutboundEventPublisher.publish(
            event_type=OutboundEvent.ORDER_RETURN_REQUESTED,
            order=order,
            payload={"reason": cmd.reason},
        )
        return order
