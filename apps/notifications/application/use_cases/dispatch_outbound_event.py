from __future__ import annotations

import logging
from dataclasses import dataclass

from django.conf import settings
from django.utils import timezone

from apps.accounts.application.services.roles import AccountRoleService
from apps.notifications.application.services.invoice_service import InvoiceService
from apps.notifications.application.services.renderer import OrderMessageRenderer
from apps.notifications.domain.errors import EmailGatewayError, NotificationDeliveryError, SmsGatewayError
from apps.notifications.infrastructure.router import NotificationGatewayRouter
from apps.notifications.models import OutboundEvent

logger = logging.getLogger("storefront.notifications")


@dataclass(frozen=True)
class DispatchOutboundEventCommand:
    event_id: int


class DispatchOutboundEventUseCase:
    @staticmethod
    def execute(cmd: DispatchOutboundEventCommand) -> OutboundEvent | None:
        event = OutboundEvent.objects.select_related("order", "order__user").filter(id=cmd.event_id).first()
        if not event:
            logger.warning("outbound_event_missing", extra={"event_id": cmd.event_id})
            return None
        if event.status == OutboundEvent.STATUS_SENT:
            return event

        order = event.order
        if event.event_type == OutboundEvent.PAYMENT_COMPLETED:
            try:
                InvoiceService.generate(order)
            except Exception:
                logger.exception("invoice_generation_failed", extra={"order_id": order.id})

        message = OrderMessageRenderer.render(event)
        user = order.user
        phone = AccountRoleService.phone_of(user)

        # each channel is stamped as soon as it succeeds so a retry only resends what failed
        try:
            if user.email and event.email_sent_at is None:
                NotificationGatewayRouter.email().send_email(
                    subject=message.subject,
                    body=message.text,
                    to_email=user.email,
                    from_email=settings.DEFAULT_FROM_EMAIL,
                )
                event.email_sent_at = timezone.now()
                event.save(update_fields=["email_sent_at"])
            if phone and message.sms and event.sms_sent_at is None:
                NotificationGatewayRouter.sms().send_sms(to=phone, body=message.sms)
                event.sms_sent_at = timezone.now()
                event.save(update_fields=["sms_sent_at"])
        except (EmailGatewayError, SmsGatewayError) as exc:
            event.status = OutboundEvent.STATUS_FAILED
            event.attempts += 1
            event.last_error = str(exc)
            event.save(update_fields=["status", "attempts", "last_error"])
            logger.warning(
                "outbound_event_failed",
                extra={"event_id": event.id, "event_type": event.event_type, "attempts": event.attempts},
            )
            raise NotificationDeliveryError(str(exc)) from exc

        event.status = OutboundEvent.STATUS_SENT
        event.attempts += 1
        event.last_error = ""
        event.dispatched_at = timezone.now()
        event.save(update_fields=["status", "attempts", "last_error", "dispatched_at"])
        logger.info("outbound_event_sent", extra={"event_id": event.id, "event_type": event.event_type})
        return event
