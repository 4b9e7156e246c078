"""
Response envelope for the JSON API.

Every API response carries `success`; failures add a human readable
`message` and, for multi-field validation problems, an `errors` array of
`{"field", "message"}` objects.
"""

from __future__ import annotations

import logging

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger("storefront.request")


def success(*, message: str | None = None, http_status: int = status.HTTP_200_OK, **payload) -> Response:
    body: dict = {"success": True}
    if message:
        body["message"] = message
    body.update(payload)
    return Response(body, status=http_status)


def failure(
    *,
    message: str,
    errors: list[dict] | None = None,
    http_status: int = status.HTTP_400_BAD_REQUEST,
    **payload,
) -> Response:
    body: dict = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    body.update(payload)
    return Response(body, status=http_status)


def domain_failure(exc: Exception) -> Response:
    """Render a domain error using the status and details it declares."""
    errors = None
    field = getattr(exc, "field", None)
    if field:
        errors = [{"field": field, "message": str(exc)}]
    return failure(
        message=str(exc),
        errors=errors,
        http_status=getattr(exc, "http_status", status.HTTP_400_BAD_REQUEST),
        **(getattr(exc, "details", None) or {}),
    )


def flatten_errors(detail, prefix: str = "") -> list[dict]:
    if isinstance(detail, dict):
        out: list[dict] = []
        for key, value in detail.items():
            out.extend(flatten_errors(value, f"{prefix}.{key}" if prefix else str(key)))
        return out
    if isinstance(detail, list):
        out = []
        for index, item in enumerate(detail):
            if isinstance(item, (dict, list)):
                out.extend(flatten_errors(item, f"{prefix}[{index}]"))
            else:
                out.extend(flatten_errors(item, prefix))
        return out
    return [{"field": prefix or "non_field_errors", "message": str(detail)}]


def envelope_exception_handler(exc, context):
    if getattr(exc, "http_status", None) and isinstance(exc, ValueError):
        return domain_failure(exc)

    response = exception_handler(exc, context)
    if response is None:
        view = context.get("view")
        logger.exception(
            "unhandled_api_error",
            extra={"status_code": 500, "error_code": "server_error", "view": type(view).__name__ if view else ""},
        )
        return failure(message="Internal server error.", http_status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, exceptions.ValidationError):
        response.data = {
            "success": False,
            "message": "Validation failed",
            "errors": flatten_errors(exc.detail),
        }
        return response

    if isinstance(exc, exceptions.Throttled):
        response.data = {
            "success": False,
            "message": "Too many sensitive operations. Please try again later.",
        }
        return response

    detail = getattr(exc, "detail", None)
    if isinstance(detail, dict):
        message = str(detail.get("detail") or detail.get("message") or "Request failed.")
    else:
        message = str(detail or "Request failed.")
    response.data = {"success": False, "message": message}
    return response
