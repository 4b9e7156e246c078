from __future__ import annotations

from django.db import transaction

from apps.notifications.models import OutboundEvent


class OutboundEventPublisher:
    @staticmethod
    def publish(*, event_type: str, order, payload: dict | None = None) -> OutboundEvent:
        """
        Record an outbound event in the caller's transaction.

        Delivery is enqueued only after the surrounding transaction commits, so
        a rolled back workflow never notifies anyone.
        """
        event = OutboundEvent.objects.create(event_type=event_type, order=order, payload=payload or {})

        from apps.notifications.tasks import enqueue_outbound_event

        transaction.on_commit(lambda: enqueue_outbound_event(event_id=event.id))
        return event
