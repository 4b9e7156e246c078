from __future__ import annotations

from dataclasses import dataclass

from apps.orders.services.order_service import OrderService


@dataclass(frozen=True)
class TrackOrderCommand:
    order_id: int
    actor: object


class TrackOrderUseCase:
    @staticmethod
    def execute(cmd: TrackOrderCommand) -> dict:
        order = OrderService.get_for_actor(cmd.order_id, cmd.actor, allow_admin=True)
        return {
            "order_number": order.order_number,
            "status": order.status,
            "tracking_number": order.tracking_number,
            "carrier": order.carrier,
            "tracking_url": order.tracking_url,
            "estimated_delivery": order.estimated_delivery,
            "delivered_at": order.delivered_at,
            "status_history": [
                {"status": entry.status, "note": entry.note, "timestamp": entry.created_at}
                for entry in order.status_history.all()
            ],
            "tracking_history": [
                {
                    "status": event.status,
                    "location": event.location,
                    "description": event.description,
                    "timestamp": event.occurred_at,
                }
                for event in order.tracking_events.all()
            ],
        }
