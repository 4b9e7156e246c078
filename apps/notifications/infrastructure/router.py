from __future__ import annotations

import importlib

from django.conf import settings

from apps.notifications.domain.errors import NotificationError
from apps.notifications.domain.ports import EmailGateway, SmsGateway


def _load(dotted: str):
    if not dotted:
        raise NotificationError("Notification gateway is not configured.")
    module_path, class_name = dotted.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)()


class NotificationGatewayRouter:
    @staticmethod
    def email() -> EmailGateway:
        return _load(getattr(settings, "NOTIFICATION_EMAIL_GATEWAY", ""))

    @staticmethod
    def sms() -> SmsGateway:
        return _load(getattr(settings, "NOTIFICATION_SMS_GATEWAY", ""))
