from __future__ import annotations

from dataclasses import dataclass

from django.db import transaction
from django.utils import timezone

from apps.orders.domain.errors import OrderNotFoundError
from apps.orders.domain.state_machine import ExchangeStateMachine, ExchangeStatus
from apps.orders.models import OrderExchange
from apps.orders.services.order_service import OrderService


@dataclass(frozen=True)
class UpdateExchangeStatusCommand:
    order_id: int
    actor: object
    status: str
    exchange_tracking_number: str = ""
    note: str = ""


class UpdateExchangeStatusUseCase:
    @staticmethod
    @transaction.atomic
    def execute(cmd: UpdateExchangeStatusCommand) -> OrderExchange:
        order = OrderService.get_for_actor(cmd.order_id, cmd.actor, allow_admin=True, for_update=True)
        exchange = OrderExchange.objects.select_for_update().filter(order=order).first()
        if exchange is None:
            raise OrderNotFoundError("Exchange request not found")

        exchange.status = ExchangeStateMachine.next_status(exchange.status, cmd.status).value
        if exchange.status == ExchangeStatus.APPROVED:
            exchange.approved_at = timezone.now()
        if cmd.exchange_tracking_number:
            exchange.exchange_tracking_number = cmd.exchange_tracking_number
        exchange.save()

        OrderService.annotate(
            order,
            note=cmd.note or f"Exchange {exchange.status.replace('_', ' ')}",
            actor=cmd.actor,
        )
        return exchange
