from __future__ import annotations


class CatalogDomainError(ValueError):
    http_status = 400
    code = "catalog_error"

    def __init__(self, message: str, *, field: str | None = None, details: dict | None = None):
        super().__init__(message)
        self.field = field
        self.details = details or {}


class ProductValidationError(CatalogDomainError):
    code = "validation_failed"


class SkuAlreadyExistsError(CatalogDomainError):
    code = "sku_exists"


class ProductNotFoundError(CatalogDomainError):
    http_status = 404
    code = "not_found"


class ProductAccessDeniedError(CatalogDomainError):
    http_status = 403
    code = "forbidden"
