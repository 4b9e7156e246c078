from __future__ import annotations

from dataclasses import dataclass

from apps.orders.models import Order
from storefront.pagination import Page, paginate


@dataclass(frozen=True)
class ListOrdersCommand:
    user: object
    page: int = 1
    limit: int = 10
    status: str = ""


class ListOrdersUseCase:
    @staticmethod
    def execute(cmd: ListOrdersCommand) -> Page:
        queryset = (
            Order.objects.filter(user=cmd.user)
            .select_related("payment")
            .prefetch_related("items")
            .order_by("-created_at", "-id")
        )
        if cmd.status:
            queryset = queryset.filter(status=cmd.status)
        return paginate(queryset, page=cmd.page, limit=cmd.limit)
