from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

from django.conf import settings

from apps.payments.domain.ports import GatewayIntent, GatewayRefund, to_minor_units
from apps.payments.domain.signatures import signature_matches


class DummyGateway:
    """Offline gateway for local development; signs with the configured key secret."""

    code = "dummy"
    name = "Dummy Gateway"

    @property
    def public_key(self) -> str:
        return "dummy_key"

    def create_intent(self, *, amount: Decimal, currency: str, receipt: str, notes: dict) -> GatewayIntent:
        gateway_order_id = f"order_dummy_{uuid4().hex[:14]}"
        amount_minor = to_minor_units(amount)
        return GatewayIntent(
            gateway_order_id=gateway_order_id,
            amount_minor=amount_minor,
            currency=currency,
            receipt=receipt,
            raw={
                "id": gateway_order_id,
                "amount": amount_minor,
                "currency": currency,
                "receipt": receipt,
                "notes": notes,
                "status": "created",
            },
        )

    def verify_signature(self, *, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        return signature_matches(settings.RAZORPAY_KEY_SECRET, gateway_order_id, gateway_payment_id, signature)

    def refund(self, *, gateway_payment_id: str, amount: Decimal, notes: dict) -> GatewayRefund:
        return GatewayRefund(refund_id=f"rfnd_dummy_{uuid4().hex[:14]}", amount=amount, status="processed")
