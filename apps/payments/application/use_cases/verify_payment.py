from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction
from django.utils import timezone

from apps.catalog.services.inventory_service import InventoryService
from apps.notifications.application.services.publisher import OutboundEventPublisher
from apps.notifications.models import OutboundEvent
from apps.orders.domain.state_machine import OrderEvent
from apps.orders.models import Order
from apps.orders.services.order_service import OrderService
from apps.payments.application.facade import PaymentGatewayFacade
from apps.payments.application.services.payment_lookup import owned_order, payment_for
from apps.payments.domain.errors import PaymentValidationError, SignatureMismatchError
from apps.payments.models import Payment

logger = logging.getLogger("storefront.payments")


@dataclass(frozen=True)
class VerifyPaymentCommand:
    order_id: int
    actor: object
    gateway_order_id: str
    gateway_payment_id: str
    signature: str


class VerifyPaymentUseCase:
    @staticmethod
    @transaction.atomic
    def execute(cmd: VerifyPaymentCommand) -> Order:
        order = owned_order(cmd.order_id, cmd.actor, for_update=True)
        payment = payment_for(order, for_update=True)

        if payment.status == Payment.STATUS_COMPLETED:
            if payment.gateway_payment_id == cmd.gateway_payment_id:
                return order
            raise PaymentValidationError("Payment already completed for this order")

        if payment.gateway_order_id and payment.gateway_order_id != cmd.gateway_order_id:
            logger.warning(
                "payment_order_mismatch",
                extra={"order_number": order.order_number, "gateway_order_id": cmd.gateway_order_id},
            )
            raise SignatureMismatchError()

        gateway = PaymentGatewayFacade.get()
        if not gateway.verify_signature(
            gateway_order_id=cmd.gateway_order_id,
            gateway_payment_id=cmd.gateway_payment_id,
            signature=cmd.signature,
        ):
            logger.warning("payment_signature_mismatch", extra={"order_number": order.order_number})
            raise SignatureMismatchError()

        # A prior failure released the reservation; take it again.
        if payment.status == Payment.STATUS_FAILED:
            for item in order.items.select_related("product"):
                InventoryService.reserve(item.product, item.quantity)

        payment.status = Payment.STATUS_COMPLETED
        payment.gateway_order_id = cmd.gateway_order_id
        payment.gateway_payment_id = cmd.gateway_payment_id
        payment.gateway_signature = cmd.signature
        payment.paid_at = timezone.now()
        payment.failure_reason = ""
        payment.save()

        OrderService.apply_event(order, OrderEvent.PAYMENT_CONFIRMED, note="Payment completed successfully", actor=cmd.actor)
        OutboundEventPublisher.publish(
            event_type=OutboundEvent.PAYMENT_COMPLETED,
            order=order,
            payload={"gateway_payment_id": cmd.gateway_payment_id, "amount": str(payment.amount)},
        )
        logger.info("payment_completed", extra={"order_number": order.order_number})
        return order
