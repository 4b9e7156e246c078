from __future__ import annotations

import logging
import secrets
import time

from django.utils import timezone

from apps.accounts.application.services.roles import AccountRoleService

from ..domain.errors import OrderAccessDeniedError, OrderNotFoundError
from ..domain.state_machine import OrderStateMachine
from ..models import Order, OrderStatusHistory

logger = logging.getLogger("storefront.orders")


class OrderService:
    @staticmethod
    def generate_order_number() -> str:
        # random tail keeps two checkouts in the same millisecond apart
        suffix = secrets.token_hex(3).upper()
        return f"ORD-{int(time.time() * 1000)}-{Order.objects.count() + 1:04d}-{suffix}"

    @staticmethod
    def get_for_actor(order_id, actor, *, allow_admin: bool = False, for_update: bool = False) -> Order:
        queryset = Order.objects.select_related("user")
        if for_update:
            queryset = queryset.select_for_update()
        order = queryset.filter(pk=order_id).first()
        if order is None:
            raise OrderNotFoundError()
        if order.user_id == getattr(actor, "pk", None):
            return order
        if allow_admin and AccountRoleService.is_admin(actor):
            return order
        raise OrderAccessDeniedError("Not authorized to access this order")

    @staticmethod
    def apply_event(order: Order, event: str, *, note: str = "", actor=None, extra_fields: tuple[str, ...] = ()) -> Order:
        """Move `order` through `event` and append the matching history entry."""
        previous = order.status
        order.status = OrderStateMachine.next_status(previous, event).value
        order.save(update_fields=["status", "updated_at", *extra_fields])
        order.items.update(status=order.status)
        OrderService._record(order, note=note, actor=actor)
        logger.info(
            "order_transition",
            extra={"order_number": order.order_number, "event": str(event), "from": previous, "to": order.status},
        )
        return order

    @staticmethod
    def annotate(order: Order, *, note: str, actor=None) -> OrderStatusHistory:
        return OrderService._record(order, note=note, actor=actor)

    @staticmethod
    def record_initial(order: Order, *, note: str, actor=None) -> OrderStatusHistory:
        return OrderService._record(order, note=note, actor=actor)

    @staticmethod
    def _record(order: Order, *, note: str, actor=None) -> OrderStatusHistory:
        return OrderStatusHistory.objects.create(
            order=order,
            status=order.status,
            note=note[:500],
            actor=actor if getattr(actor, "pk", None) else None,
            created_at=timezone.now(),
        )
