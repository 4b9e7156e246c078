from __future__ import annotations

from dataclasses import dataclass

from apps.orders.models import Order
from apps.payments.models import Payment
from storefront.pagination import Page, paginate


@dataclass(frozen=True)
class PaymentHistoryCommand:
    user: object
    page: int = 1
    limit: int = 10


class PaymentHistoryUseCase:
    @staticmethod
    def execute(cmd: PaymentHistoryCommand) -> Page:
        queryset = (
            Order.objects.filter(user=cmd.user, payment__status__in=Payment.SETTLED_STATUSES)
            .select_related("payment")
            .order_by("-payment__paid_at", "-id")
        )
        return paginate(queryset, page=cmd.page, limit=cmd.limit)
