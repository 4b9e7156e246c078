from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from apps.orders.domain.pricing import COUPON_FIXED, Coupon
from apps.orders.models import Order
from apps.orders.services.order_placement_service import OrderPlacementService, PlacementLine


@dataclass(frozen=True)
class CreateOrderCommand:
    user: object
    items: tuple[dict, ...]
    shipping_address: dict
    billing_address: dict | None = None
    payment_method: str = "razorpay"
    coupon_code: str = ""
    coupon_type: str = COUPON_FIXED
    coupon_value: Decimal = Decimal("0")
    customer_note: str = ""
    is_gift: bool = False
    gift_message: str = ""


class CreateOrderUseCase:
    @staticmethod
    def execute(cmd: CreateOrderCommand) -> Order:
        coupon = None
        if cmd.coupon_code:
            coupon = Coupon(code=cmd.coupon_code, type=cmd.coupon_type, value=Decimal(str(cmd.coupon_value)))

        return OrderPlacementService.place(
            user=cmd.user,
            lines=[
                PlacementLine(
                    product_id=int(item["product_id"]),
                    quantity=int(item["quantity"]),
                    variant=item.get("variant") or {},
                )
                for item in cmd.items
            ],
            shipping_address=cmd.shipping_address,
            billing_address=cmd.billing_address,
            payment_method=cmd.payment_method,
            coupon=coupon,
            customer_note=cmd.customer_note,
            is_gift=cmd.is_gift,
            gift_message=cmd.gift_message,
        )
