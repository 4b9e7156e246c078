from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction

from apps.catalog.services.inventory_service import InventoryService
from apps.notifications.application.services.publisher import OutboundEventPublisher
from apps.notifications.models import OutboundEvent
from apps.orders.domain.errors import InvalidTransitionError
from apps.orders.domain.state_machine import OrderEvent
from apps.orders.models import Order
from apps.orders.services.order_service import OrderService
from apps.payments.application.services.payment_lookup import owned_order, payment_for
from apps.payments.models import Payment

logger = logging.getLogger("storefront.payments")


@dataclass(frozen=True)
class RecordPaymentFailureCommand:
    order_id: int
    actor: object
    code: str = ""
    description: str = ""


class RecordPaymentFailureUseCase:
    @staticmethod
    @transaction.atomic
    def execute(cmd: RecordPaymentFailureCommand) -> Order:
        order = owned_order(cmd.order_id, cmd.actor, for_update=True)
        payment = payment_for(order, for_update=True)
        if payment.status not in (Payment.STATUS_PENDING, Payment.STATUS_FAILED):
            raise InvalidTransitionError(
                "Payment can no longer be marked as failed",
                details={"payment_status": payment.status},
            )

        reason = cmd.description or "Unknown error"
        already_failed = payment.status == Payment.STATUS_FAILED
        payment.status = Payment.STATUS_FAILED
        payment.failure_reason = reason[:500]
        payment.save(update_fields=["status", "failure_reason", "updated_at"])

        OrderService.apply_event(order, OrderEvent.PAYMENT_FAILED, note=f"Payment failed: {reason}", actor=cmd.actor)
        if not already_failed:
            InventoryService.restore_items(order.items.all())

        OutboundEventPublisher.publish(
            event_type=OutboundEvent.PAYMENT_FAILED,
            order=order,
            payload={"code": cmd.code, "reason": reason},
        )
        logger.info("payment_failed", extra={"order_number": order.order_number, "error_code": cmd.code})
        return order
