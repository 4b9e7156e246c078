from __future__ import annotations

import logging

from apps.notifications.domain.ports import SmsGateway

logger = logging.getLogger("storefront.notifications")


class LoggingSmsGateway(SmsGateway):
    """Simulation gateway: records the message in the log instead of sending it."""

    name = "logging"

    def send_sms(self, *, to: str, body: str) -> None:
        logger.info("sms_simulated", extra={"to": to, "body": body})
