from __future__ import annotations

from apps.orders.domain.errors import OrderNotFoundError
from apps.orders.models import Order
from apps.payments.domain.errors import PaymentNotFoundError
from apps.payments.models import Payment


def owned_order(order_id, user, *, for_update: bool = False) -> Order:
    """Callers only ever see their own orders; anything else is reported as missing."""
    queryset = Order.objects.select_for_update() if for_update else Order.objects.all()
    order = queryset.filter(pk=order_id, user_id=getattr(user, "pk", None)).first()
    if order is None:
        raise OrderNotFoundError()
    return order


def payment_for(order: Order, *, for_update: bool = False) -> Payment:
    queryset = Payment.objects.select_for_update() if for_update else Payment.objects.all()
    payment = queryset.filter(order=order).first()
    if payment is None:
        raise PaymentNotFoundError("Payment record not found")
    return payment
