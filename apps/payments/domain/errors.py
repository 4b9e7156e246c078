from __future__ import annotations


class PaymentDomainError(ValueError):
    http_status = 400
    code = "payment_error"

    def __init__(self, message: str, *, field: str | None = None, details: dict | None = None):
        super().__init__(message)
        self.field = field
        self.details = details or {}


class PaymentValidationError(PaymentDomainError):
    code = "validation_failed"


class PaymentNotFoundError(PaymentDomainError):
    http_status = 404
    code = "not_found"


class SignatureMismatchError(PaymentDomainError):
    code = "signature_mismatch"

    def __init__(self, message: str = "Payment verification failed", **kwargs):
        super().__init__(message, **kwargs)


class RefundNotAllowedError(PaymentDomainError):
    code = "refund_not_allowed"


class PaymentGatewayError(PaymentDomainError):
    """Upstream gateway failure. The original error is logged, never returned."""

    http_status = 502
    code = "gateway_error"

    def __init__(self, message: str = "Payment gateway error", **kwargs):
        super().__init__(message, **kwargs)
