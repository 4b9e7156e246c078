from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction

from apps.orders.domain.pricing import money
from apps.orders.domain.state_machine import OrderStatus
from apps.payments.application.facade import PaymentGatewayFacade
from apps.payments.application.services.payment_lookup import owned_order, payment_for
from apps.payments.domain.errors import PaymentValidationError
from apps.payments.models import Payment

logger = logging.getLogger("storefront.payments")


@dataclass(frozen=True)
class CreatePaymentIntentCommand:
    order_id: int
    actor: object
    amount: Decimal | None = None


@dataclass(frozen=True)
class PaymentIntentResult:
    gateway_order: dict
    key_id: str
    payment: Payment


class CreatePaymentIntentUseCase:
    @staticmethod
    @transaction.atomic
    def execute(cmd: CreatePaymentIntentCommand) -> PaymentIntentResult:
        order = owned_order(cmd.order_id, cmd.actor, for_update=True)
        payment = payment_for(order, for_update=True)

        if order.status != OrderStatus.PENDING or payment.status == Payment.STATUS_COMPLETED:
            raise PaymentValidationError("Order is not awaiting payment", details={"status": order.status})
        if cmd.amount is not None and money(cmd.amount) != money(order.total):
            raise PaymentValidationError("Amount does not match the order total", field="amount")

        gateway = PaymentGatewayFacade.get()
        intent = gateway.create_intent(
            amount=order.total,
            currency=order.currency,
            receipt=order.order_number,
            notes={"order_id": str(order.id), "user_id": str(order.user_id)},
        )

        payment.gateway_order_id = intent.gateway_order_id
        payment.save(update_fields=["gateway_order_id", "updated_at"])
        logger.info(
            "payment_intent_created",
            extra={"order_number": order.order_number, "gateway_order_id": intent.gateway_order_id},
        )
        return PaymentIntentResult(
            gateway_order={
                "id": intent.gateway_order_id,
                "amount": intent.amount_minor,
                "currency": intent.currency,
                "receipt": intent.receipt,
            },
            key_id=gateway.public_key,
            payment=payment,
        )
