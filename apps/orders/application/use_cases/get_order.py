from __future__ import annotations

from dataclasses import dataclass

from apps.orders.models import Order
from apps.orders.services.order_service import OrderService


@dataclass(frozen=True)
class GetOrderCommand:
    order_id: int
    actor: object


class GetOrderUseCase:
    @staticmethod
    def execute(cmd: GetOrderCommand) -> Order:
        return OrderService.get_for_actor(cmd.order_id, cmd.actor, allow_admin=True)
