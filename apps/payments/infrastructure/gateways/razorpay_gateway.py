from __future__ import annotations

import logging
from decimal import Decimal

import razorpay
from django.conf import settings
from razorpay.errors import BadRequestError, GatewayError, ServerError, SignatureVerificationError

from apps.payments.domain.errors import PaymentGatewayError
from apps.payments.domain.ports import GatewayIntent, GatewayRefund, to_minor_units

logger = logging.getLogger("storefront.payments")

_GATEWAY_ERRORS = (
    BadRequestError,
    GatewayError,
    ServerError,
    OSError,
)


class RazorpayGateway:
    code = "razorpay"
    name = "Razorpay"

    def __init__(self, key_id: str | None = None, key_secret: str | None = None):
        self.key_id = key_id or settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret or settings.RAZORPAY_KEY_SECRET
        self.client = razorpay.Client(auth=(self.key_id, self.key_secret))

    @property
    def public_key(self) -> str:
        return self.key_id

    def create_intent(self, *, amount: Decimal, currency: str, receipt: str, notes: dict) -> GatewayIntent:
        payload = {
            "amount": to_minor_units(amount),
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
        }
        try:
            response = self.client.order.create(data=payload)
        except _GATEWAY_ERRORS as exc:
            logger.error("razorpay_order_create_failed", extra={"receipt": receipt, "error": str(exc)})
            raise PaymentGatewayError() from exc
        return GatewayIntent(
            gateway_order_id=response["id"],
            amount_minor=int(response.get("amount", payload["amount"])),
            currency=response.get("currency", currency),
            receipt=response.get("receipt", receipt),
            raw=response,
        )

    def verify_signature(self, *, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        try:
            self.client.utility.verify_payment_signature(
                {
                    "razorpay_order_id": gateway_order_id,
                    "razorpay_payment_id": gateway_payment_id,
                    "razorpay_signature": signature,
                }
            )
        except SignatureVerificationError:
            return False
        except (TypeError, ValueError):
            # the SDK compares str digests, which fails on non-ASCII input
            logger.warning("razorpay_signature_malformed", extra={"gateway_order_id": gateway_order_id})
            return False
        return True

    def refund(self, *, gateway_payment_id: str, amount: Decimal, notes: dict) -> GatewayRefund:
        try:
            response = self.client.payment.refund(
                gateway_payment_id,
                {"amount": to_minor_units(amount), "notes": notes},
            )
        except _GATEWAY_ERRORS as exc:
            logger.error(
                "razorpay_refund_failed",
                extra={"gateway_payment_id": gateway_payment_id, "error": str(exc)},
            )
            raise PaymentGatewayError() from exc
        return GatewayRefund(
            refund_id=response["id"],
            amount=Decimal(response.get("amount", to_minor_units(amount))) / 100,
            status=response.get("status", "processed"),
            raw=response,
        )
