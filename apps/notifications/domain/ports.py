from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RenderedMessage:
    subject: str
    text: str
    sms: str = ""
    headers: dict = field(default_factory=dict)


class EmailGateway:
    name = "base"

    def send_email(self, *, subject: str, body: str, to_email: str, from_email: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class SmsGateway:
    name = "base"

    def send_sms(self, *, to: str, body: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError
