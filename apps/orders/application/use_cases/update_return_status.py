from __future__ import annotations

from dataclasses import dataclass

from django.db import transaction
from django.utils import timezone

from apps.orders.domain.errors import OrderNotFoundError
from apps.orders.domain.state_machine import ReturnStateMachine, ReturnStatus
from apps.orders.models import OrderReturn
from apps.orders.services.order_service import OrderService


@dataclass(frozen=True)
class UpdateReturnStatusCommand:
    order_id: int
    actor: object
    status: str
    return_tracking_number: str = ""
    note: str = ""


class UpdateReturnStatusUseCase:
    @staticmethod
    @transaction.atomic
    def execute(cmd: UpdateReturnStatusCommand) -> OrderReturn:
        order = OrderService.get_for_actor(cmd.order_id, cmd.actor, allow_admin=True, for_update=True)
        return_request = OrderReturn.objects.select_for_update().filter(order=order).first()
        if return_request is None:
            raise OrderNotFoundError("Return request not found")

        return_request.status = ReturnStateMachine.next_status(return_request.status, cmd.status).value
        if return_request.status == ReturnStatus.APPROVED:
            return_request.approved_at = timezone.now()
        if cmd.return_tracking_number:
            return_request.return_tracking_number = cmd.return_tracking_number
        return_request.save()

        OrderService.annotate(
            order,
            note=cmd.note or f"Return {return_request.status.replace('_', ' ')}",
            actor=cmd.actor,
        )
        return return_request
