from __future__ import annotations

import logging

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse
from django.views.decorators.http import require_GET

logger = logging.getLogger("storefront.request")


@require_GET
def healthz(request):
    return JsonResponse({"status": "ok"})


@require_GET
def readyz(request):
    db_ok = True
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError:
        logger.exception("readyz_database_unavailable")
        db_ok = False

    cache_ok = True
    try:
        cache.set("readyz", "1", 5)
        cache_ok = cache.get("readyz") == "1"
    except Exception:
        logger.exception("readyz_cache_unavailable")
        cache_ok = False

    ready = db_ok and cache_ok
    return JsonResponse(
        {"status": "ok" if ready else "unavailable", "db": db_ok, "cache": cache_ok},
        status=200 if ready else 503,
    )
