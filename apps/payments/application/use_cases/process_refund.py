from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from apps.notifications.application.services.publisher import OutboundEventPublisher
from apps.notifications.models import OutboundEvent
from apps.orders.domain.errors import OrderNotFoundError
from apps.orders.domain.pricing import money
from apps.orders.domain.state_machine import ReturnStatus
from apps.orders.models import Order, OrderCancellation, OrderReturn
from apps.orders.services.order_service import OrderService
from apps.payments.application.facade import PaymentGatewayFacade
from apps.payments.application.services.payment_lookup import payment_for
from apps.payments.domain.errors import PaymentValidationError, RefundNotAllowedError
from apps.payments.models import Payment

logger = logging.getLogger("storefront.payments")


@dataclass(frozen=True)
class ProcessRefundCommand:
    order_id: int
    actor: object
    amount: Decimal
    reason: str


class ProcessRefundUseCase:
    @staticmethod
    @transaction.atomic
    def execute(cmd: ProcessRefundCommand) -> Payment:
        order = Order.objects.select_for_update().filter(pk=cmd.order_id).first()
        if order is None:
            raise OrderNotFoundError()
        payment = payment_for(order, for_update=True)
        if payment.status != Payment.STATUS_COMPLETED:
            raise RefundNotAllowedError("Cannot refund incomplete payment")

        amount = money(cmd.amount)
        if amount <= 0 or amount > money(order.total):
            raise PaymentValidationError("Refund amount must be positive and not exceed the order total", field="amount")

        gateway = PaymentGatewayFacade.get()
        refund = gateway.refund(
            gateway_payment_id=payment.gateway_payment_id,
            amount=amount,
            notes={"reason": cmd.reason, "order_id": str(order.id)},
        )

        payment.status = Payment.STATUS_REFUNDED if amount >= order.total else Payment.STATUS_PARTIALLY_REFUNDED
        payment.refund_id = refund.refund_id
        payment.refund_amount = amount
        payment.refund_reason = cmd.reason
        payment.refunded_at = timezone.now()
        payment.save()

        OrderService.annotate(order, note=f"Refund processed: ₹{amount} - {cmd.reason}", actor=cmd.actor)

        OrderReturn.objects.filter(
            order=order, status__in=[ReturnStatus.APPROVED.value, ReturnStatus.RECEIVED.value]
        ).update(status=ReturnStatus.REFUNDED.value, refund_amount=amount)
        OrderCancellation.objects.filter(order=order, refund_status=OrderCancellation.REFUND_PENDING).update(
            refund_status=OrderCancellation.REFUND_PROCESSED
        )

        OutboundEventPublisher.publish(
            event_type=OutboundEvent.PAYMENT_REFUNDED,
            order=order,
            payload={"amount": str(amount), "refund_id": refund.refund_id, "reason": cmd.reason},
        )
        logger.info(
            "refund_processed",
            extra={"order_number": order.order_number, "amount": str(amount), "status": payment.status},
        )
        return payment
