from __future__ import annotations

import math
from dataclasses import dataclass


def parse_page_params(query_params, *, default_limit: int = 10, max_limit: int = 100) -> tuple[int, int]:
    try:
        page = max(1, int(query_params.get("page") or 1))
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(query_params.get("limit") or default_limit)
    except (TypeError, ValueError):
        limit = default_limit
    return page, min(max(1, limit), max_limit)


@dataclass(frozen=True)
class Page:
    items: list
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def meta(self) -> dict:
        return {"count": len(self.items), "total": self.total, "page": self.page, "pages": self.pages}


def paginate(queryset, *, page: int, limit: int) -> Page:
    total = queryset.count()
    offset = (page - 1) * limit
    return Page(items=list(queryset[offset : offset + limit]), total=total, page=page, limit=limit)
