from __future__ import annotations

import logging
import time
import uuid

logger = logging.getLogger("storefront.request")

REQUEST_ID_HEADER = "X-Request-Id"


class RequestIdMiddleware:
    """Stamp every request with an id and report how long it took."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        incoming = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
        request.request_id = incoming[:64] if incoming else str(uuid.uuid4())
        started = time.monotonic()

        response = self.get_response(request)

        elapsed_ms = int((time.monotonic() - started) * 1000)
        response[REQUEST_ID_HEADER] = request.request_id
        response["X-Response-Time-ms"] = str(elapsed_ms)
        logger.info(
            "request_completed",
            extra={
                "request_id": request.request_id,
                "method": request.method,
                "path": request.path,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
                "user_id": getattr(getattr(request, "user", None), "pk", None),
            },
        )
        return response
