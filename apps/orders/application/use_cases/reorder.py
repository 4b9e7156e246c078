from __future__ import annotations

from dataclasses import dataclass, field

from django.db import transaction

from apps.orders.domain.errors import NothingAvailableError
from apps.orders.models import Order
from apps.orders.services.order_placement_service import OrderPlacementService, PlacementLine
from apps.orders.services.order_service import OrderService
from apps.payments.models import Payment


@dataclass(frozen=True)
class ReorderCommand:
    order_id: int
    actor: object


@dataclass(frozen=True)
class ReorderResult:
    order: Order
    unavailable_items: list[dict] = field(default_factory=list)


class ReorderUseCase:
    @staticmethod
    @transaction.atomic
    def execute(cmd: ReorderCommand) -> ReorderResult:
        original = OrderService.get_for_actor(cmd.order_id, cmd.actor)

        available: list[PlacementLine] = []
        unavailable: list[dict] = []
        for item in original.items.select_related("product"):
            product = item.product
            if not product.is_active:
                unavailable.append({"name": item.product_name, "reason": "Product no longer available"})
            elif product.stock < item.quantity:
                unavailable.append({"name": item.product_name, "reason": f"Only {product.stock} items available"})
            else:
                available.append(PlacementLine(product_id=product.pk, quantity=item.quantity, variant=item.variant))

        if not available:
            raise NothingAvailableError(unavailable_items=unavailable)

        payment = Payment.objects.filter(order=original).first()
        order = OrderPlacementService.place(
            user=cmd.actor,
            lines=available,
            shipping_address=original.shipping_address,
            billing_address=original.billing_address,
            payment_method=payment.method if payment else Payment.METHOD_RAZORPAY,
            customer_note=original.customer_note,
            history_note=f"Reorder from {original.order_number}",
            reordered_from=original,
        )
        return ReorderResult(order=order, unavailable_items=unavailable)
