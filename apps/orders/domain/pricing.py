from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

COUPON_FIXED = "fixed"
COUPON_PERCENTAGE = "percentage"


def money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricingPolicy:
    free_shipping_threshold: Decimal
    flat_shipping_fee: Decimal
    tax_rate: Decimal

    @classmethod
    def from_settings(cls, settings) -> "PricingPolicy":
        return cls(
            free_shipping_threshold=Decimal(str(settings.ORDER_FREE_SHIPPING_THRESHOLD)),
            flat_shipping_fee=Decimal(str(settings.ORDER_FLAT_SHIPPING_FEE)),
            tax_rate=Decimal(str(settings.ORDER_TAX_RATE)),
        )

    def shipping_for(self, subtotal: Decimal) -> Decimal:
        return ZERO if subtotal >= self.free_shipping_threshold else money(self.flat_shipping_fee)

    def tax_for(self, subtotal: Decimal) -> Decimal:
        return money(subtotal * self.tax_rate)


@dataclass(frozen=True)
class Coupon:
    code: str = ""
    type: str = COUPON_FIXED
    value: Decimal = ZERO

    def discount_for(self, subtotal: Decimal) -> Decimal:
        if self.type == COUPON_PERCENTAGE:
            return money(subtotal * self.value / Decimal(100))
        return money(self.value)


@dataclass(frozen=True)
class PricingSummary:
    subtotal: Decimal
    shipping_fee: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal


def price_lines(
    lines: Iterable[tuple[Decimal, int]],
    *,
    policy: PricingPolicy,
    coupon: Coupon | None = None,
) -> PricingSummary:
    """Price (unit_price, quantity) pairs.

    total = subtotal + shipping + tax - discount, where the discount is capped
    so the total never goes below zero.
    """
    subtotal = money(sum((Decimal(str(price)) * quantity for price, quantity in lines), ZERO))
    shipping = policy.shipping_for(subtotal)
    tax = policy.tax_for(subtotal)
    discount = coupon.discount_for(subtotal) if coupon else ZERO
    discount = max(ZERO, min(discount, subtotal + shipping + tax))
    return PricingSummary(
        subtotal=subtotal,
        shipping_fee=shipping,
        tax=tax,
        discount=discount,
        total=subtotal + shipping + tax - discount,
    )
