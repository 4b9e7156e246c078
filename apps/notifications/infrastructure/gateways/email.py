from __future__ import annotations

from django.core.mail import EmailMultiAlternatives

from apps.notifications.domain.errors import EmailGatewayError
from apps.notifications.domain.ports import EmailGateway


class DjangoMailEmailGateway(EmailGateway):
    """Sends through Django's configured EMAIL_BACKEND (SMTP in production)."""

    name = "django_mail"

    def send_email(self, *, subject: str, body: str, to_email: str, from_email: str) -> None:
        try:
            email = EmailMultiAlternatives(
                subject=subject,
                body=body,
                from_email=from_email,
                to=[to_email],
            )
            email.send(fail_silently=False)
        except Exception as exc:  # pragma: no cover - transport errors vary
            raise EmailGatewayError(str(exc)) from exc
