from __future__ import annotations

from dataclasses import dataclass

from django.db import transaction

from apps.catalog.services.inventory_service import InventoryService
from apps.notifications.application.services.publisher import OutboundEventPublisher
from apps.notifications.models import OutboundEvent
from apps.orders.domain.errors import InvalidTransitionError
from apps.orders.domain.state_machine import OrderEvent
from apps.orders.models import Order, OrderCancellation
from apps.orders.services.order_service import OrderService
from apps.payments.models import Payment


@dataclass(frozen=True)
class CancelOrderCommand:
    order_id: int
    actor: object
    reason: str


class CancelOrderUseCase:
    @staticmethod
    @transaction.atomic
    def execute(cmd: CancelOrderCommand) -> Order:
        order = OrderService.get_for_actor(cmd.order_id, cmd.actor, for_update=True)
        if not order.can_be_cancelled():
            raise InvalidTransitionError(
                "Order cannot be cancelled at this stage",
                details={"status": order.status},
            )

        OrderService.apply_event(order, OrderEvent.CANCEL, note=f"Order cancelled: {cmd.reason}", actor=cmd.actor)

        payment = Payment.objects.filter(order=order).first()
        refund_status = OrderCancellation.REFUND_NONE
        if payment and payment.status == Payment.STATUS_COMPLETED:
            refund_status = OrderCancellation.REFUND_PENDING
        OrderCancellation.objects.create(
            order=order,
            reason=cmd.reason,
            cancelled_by=cmd.actor,
            refund_status=refund_status,
        )

        # A failed payment already released the reservation.
        if not (payment and payment.status == Payment.STATUS_FAILED):
            InventoryService.restore_items(order.items.all())
        OutboundEventPublisher.publish(
            event_type=OutboundEvent.ORDER_CANCELLED,
            order=order,
            payload={"reason": cmd.reason},
        )
        return order
