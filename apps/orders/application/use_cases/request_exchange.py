from __future__ import annotations

from dataclasses import dataclass

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.catalog.models import Product
from apps.notifications.application.services.publisher import OutboundEventPublisher
from apps.notifications.models import OutboundEvent
from apps.orders.domain.errors import ExchangeWindowExpiredError, InvalidTransitionError, ProductUnavailableError
from apps.orders.domain.pricing import money
from apps.orders.domain.state_machine import OrderEvent, OrderStateMachine
from apps.orders.models import Order, OrderExchange
from apps.orders.services.order_service import OrderService


@dataclass(frozen=True)
class RequestExchangeCommand:
    order_id: int
    actor: object
    reason: str
    new_product_id: int


class RequestExchangeUseCase:
    @staticmethod
    @transaction.atomic
    def execute(cmd: RequestExchangeCommand) -> OrderExchange:
        order = OrderService.get_for_actor(cmd.order_id, cmd.actor, for_update=True)
        if not OrderStateMachine.can_apply(order.status, OrderEvent.REQUEST_EXCHANGE):
            raise InvalidTransitionError(
                "Only delivered orders can be exchanged",
                details={"status": order.status},
            )
        if not order.can_be_exchanged(timezone.now()):
            raise ExchangeWindowExpiredError(
                f"Order cannot be exchanged. The {settings.ORDER_EXCHANGE_WINDOW_DAYS} day exchange window has expired."
            )

        new_product = Product.objects.filter(pk=cmd.new_product_id, is_active=True).first()
        if new_product is None:
            raise ProductUnavailableError("New product not available", field="new_product_id")

        # Compared against the whole order subtotal, not the exchanged line.
        price_difference = money(new_product.price - order.subtotal)
        exchange = OrderExchange.objects.create(
            order=order,
            reason=cmd.reason,
            requested_by=cmd.actor,
            new_product=new_product,
            price_difference=price_difference,
        )
        OrderService.apply_event(
            order, OrderEvent.REQUEST_EXCHANGE, note=f"Exchange requested: {cmd.reason}", actor=cmd.actor
        )
        OutboundEventPublisher.publish(
            event_type=OutboundEvent.ORDER_EXCHANGE_REQUESTED,
            order=order,
            payload={"reason": cmd.reason, "price_difference": str(price_difference)},
        )
        return exchange
