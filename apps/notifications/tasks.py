from __future__ import annotations

import logging

from celery import shared_task

from apps.notifications.application.use_cases.dispatch_outbound_event import (
    DispatchOutboundEventCommand,
    DispatchOutboundEventUseCase,
)
from apps.notifications.domain.errors import NotificationDeliveryError

logger = logging.getLogger("storefront.notifications")


@shared_task(
    bind=True,
    autoretry_for=(NotificationDeliveryError,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_jitter=True,
    retry_kwargs={"max_retries": 5},
)
def dispatch_outbound_event_task(self, *, event_id: int):
    DispatchOutboundEventUseCase.execute(DispatchOutboundEventCommand(event_id=event_id))


def enqueue_outbound_event(*, event_id: int) -> None:
    """Hand the event to the worker. Notification failures never reach the caller."""
    try:
        dispatch_outbound_event_task.delay(event_id=event_id)
    except Exception:
        logger.exception("outbound_event_enqueue_failed", extra={"event_id": event_id})
