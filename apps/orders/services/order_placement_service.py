"""
Checkout: turns validated line requests into a priced, stock-reserved order.

Everything happens inside one transaction. The referenced product rows are
locked in id order before any check, so two checkouts for the same product
serialize on the lock and a failed line rolls back every earlier reservation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.catalog.services.inventory_service import InventoryService
from apps.notifications.application.services.publisher import OutboundEventPublisher
from apps.notifications.models import OutboundEvent
from apps.payments.models import Payment

from ..domain.errors import InsufficientStockError, OrderValidationError, ProductUnavailableError
from ..domain.pricing import Coupon, PricingPolicy, money, price_lines
from ..models import Order, OrderItem
from .order_service import OrderService

logger = logging.getLogger("storefront.orders")


@dataclass(frozen=True)
class PlacementLine:
    product_id: int
    quantity: int
    variant: dict = field(default_factory=dict)


class OrderPlacementService:
    @staticmethod
    @transaction.atomic
    def place(
        *,
        user,
        lines: list[PlacementLine],
        shipping_address: dict,
        billing_address: dict | None = None,
        payment_method: str = Payment.METHOD_RAZORPAY,
        coupon: Coupon | None = None,
        customer_note: str = "",
        is_gift: bool = False,
        gift_message: str = "",
        history_note: str = "Order placed successfully",
        reordered_from: Order | None = None,
    ) -> Order:
        if not lines:
            raise OrderValidationError("Order must contain at least one item", field="items")

        products = InventoryService.lock_products(line.product_id for line in lines)

        # Lines may repeat a product; check against the combined quantity.
        requested: dict[int, int] = {}
        for line in lines:
            requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

        for product_id, quantity in requested.items():
            product = products.get(product_id)
            if product is None or not product.is_active:
                raise ProductUnavailableError(
                    f"Product {product.name if product else product_id} is not available",
                    details={"product_id": product_id},
                )
            if quantity > product.stock:
                raise InsufficientStockError(
                    f"Insufficient stock for {product.name}. Available: {product.stock}",
                    details={"product_id": product_id, "available": product.stock},
                )

        summary = price_lines(
            ((products[line.product_id].price, line.quantity) for line in lines),
            policy=PricingPolicy.from_settings(settings),
            coupon=coupon,
        )

        now = timezone.now()
        order = Order.objects.create(
            order_number=OrderService.generate_order_number(),
            user=user,
            subtotal=summary.subtotal,
            shipping_fee=summary.shipping_fee,
            tax=summary.tax,
            discount=summary.discount,
            total=summary.total,
            currency=settings.ORDER_CURRENCY,
            coupon_code=coupon.code if coupon else "",
            coupon_type=coupon.type if coupon and coupon.code else "",
            coupon_value=coupon.value if coupon else money(0),
            shipping_address=shipping_address,
            billing_address=billing_address or {**shipping_address, "same_as_shipping": True},
            customer_note=customer_note,
            is_gift=is_gift,
            gift_message=gift_message,
            estimated_delivery=now + timedelta(days=settings.ORDER_ESTIMATED_DELIVERY_DAYS),
            reordered_from=reordered_from,
            created_at=now,
        )

        for line in lines:
            product = products[line.product_id]
            OrderItem.objects.create(
                order=order,
                product=product,
                product_name=product.name,
                quantity=line.quantity,
                unit_price=product.price,
                variant=line.variant or {},
            )
            InventoryService.reserve(product, line.quantity)

        Payment.objects.create(order=order, method=payment_method, amount=order.total)
        OrderService.record_initial(order, note=history_note, actor=user)
        OutboundEventPublisher.publish(
            event_type=OutboundEvent.ORDER_CREATED,
            order=order,
            payload={"total": str(order.total)},
        )

        logger.info(
            "order_created",
            extra={"order_number": order.order_number, "user_id": user.pk, "total": str(order.total)},
        )
        return order
