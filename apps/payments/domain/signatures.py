"""
Checkout callback signatures.

The gateway signs "<gateway_order_id>|<gateway_payment_id>" with the
merchant key secret using HMAC-SHA256 and sends the hex digest.
"""

from __future__ import annotations

import hashlib
import hmac


def compute_signature(secret: str, gateway_order_id: str, gateway_payment_id: str) -> str:
    message = f"{gateway_order_id}|{gateway_payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def signature_matches(secret: str, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
    if not secret or not signature:
        return False
    expected = compute_signature(secret, gateway_order_id, gateway_payment_id)
    return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))
