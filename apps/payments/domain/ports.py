from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Protocol


@dataclass(frozen=True)
class GatewayIntent:
    gateway_order_id: str
    amount_minor: int
    currency: str
    receipt: str
    raw: dict = field(default_factory=dict)


@dataclass(frozen=True)
class GatewayRefund:
    refund_id: str
    amount: Decimal
    status: str
    raw: dict = field(default_factory=dict)


class PaymentGatewayPort(Protocol):
    code: str
    name: str

    @property
    def public_key(self) -> str:
        ...

    def create_intent(self, *, amount: Decimal, currency: str, receipt: str, notes: dict) -> GatewayIntent:
        ...

    def verify_signature(self, *, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        ...

    def refund(self, *, gateway_payment_id: str, amount: Decimal, notes: dict) -> GatewayRefund:
        ...


def to_minor_units(amount: Decimal) -> int:
    """Rupees to paise."""
    return int((Decimal(str(amount)) * 100).to_integral_value())
