from __future__ import annotations


class OrderDomainError(ValueError):
    http_status = 400
    code = "order_error"

    def __init__(self, message: str, *, field: str | None = None, details: dict | None = None):
        super().__init__(message)
        self.field = field
        self.details = details or {}


class OrderValidationError(OrderDomainError):
    code = "validation_failed"


class OrderNotFoundError(OrderDomainError):
    http_status = 404
    code = "not_found"

    def __init__(self, message: str = "Order not found", **kwargs):
        super().__init__(message, **kwargs)


class OrderAccessDeniedError(OrderDomainError):
    http_status = 403
    code = "forbidden"


class InvalidTransitionError(OrderDomainError):
    code = "invalid_transition"


class WindowExpiredError(OrderDomainError):
    code = "window_expired"


class ReturnWindowExpiredError(WindowExpiredError):
    code = "return_window_expired"


class ExchangeWindowExpiredError(WindowExpiredError):
    code = "exchange_window_expired"


class ProductUnavailableError(OrderDomainError):
    code = "product_unavailable"


class InsufficientStockError(OrderDomainError):
    code = "insufficient_stock"


class NothingAvailableError(OrderDomainError):
    code = "nothing_available"

    def __init__(self, message: str = "No items available for reorder", *, unavailable_items: list[dict] | None = None):
        super().__init__(message, details={"unavailable_items": unavailable_items or []})
