from __future__ import annotations


class NotificationError(Exception):
    pass


class EmailGatewayError(NotificationError):
    pass


class SmsGatewayError(NotificationError):
    pass


class NotificationDeliveryError(NotificationError):
    """Raised when an outbound event could not be delivered and should be retried."""
