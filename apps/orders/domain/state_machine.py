"""
Order state machine.

The transition table is the only authority on which moves are legal. The
status history stored next to an order is an audit trail written after a
transition is applied; it is never read to decide what may happen next.
"""

from __future__ import annotations

from enum import StrEnum

from .errors import InvalidTransitionError


class OrderStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"
    EXCHANGED = "exchanged"


class OrderEvent(StrEnum):
    PAYMENT_CONFIRMED = "payment_confirmed"
    PAYMENT_FAILED = "payment_failed"
    CANCEL = "cancel"
    START_PROCESSING = "start_processing"
    SHIP = "ship"
    DELIVER = "deliver"
    REQUEST_RETURN = "request_return"
    REQUEST_EXCHANGE = "request_exchange"


_TRANSITIONS: dict[tuple[OrderStatus, OrderEvent], OrderStatus] = {
    (OrderStatus.PENDING, OrderEvent.PAYMENT_CONFIRMED): OrderStatus.CONFIRMED,
    (OrderStatus.PENDING, OrderEvent.PAYMENT_FAILED): OrderStatus.PENDING,
    (OrderStatus.PENDING, OrderEvent.CANCEL): OrderStatus.CANCELLED,
    (OrderStatus.CONFIRMED, OrderEvent.CANCEL): OrderStatus.CANCELLED,
    (OrderStatus.PROCESSING, OrderEvent.CANCEL): OrderStatus.CANCELLED,
    (OrderStatus.CONFIRMED, OrderEvent.START_PROCESSING): OrderStatus.PROCESSING,
    (OrderStatus.CONFIRMED, OrderEvent.SHIP): OrderStatus.SHIPPED,
    (OrderStatus.PROCESSING, OrderEvent.SHIP): OrderStatus.SHIPPED,
    (OrderStatus.SHIPPED, OrderEvent.DELIVER): OrderStatus.DELIVERED,
    (OrderStatus.DELIVERED, OrderEvent.REQUEST_RETURN): OrderStatus.RETURNED,
    (OrderStatus.DELIVERED, OrderEvent.REQUEST_EXCHANGE): OrderStatus.EXCHANGED,
}

FULFILLMENT_EVENTS = frozenset({OrderEvent.START_PROCESSING, OrderEvent.SHIP, OrderEvent.DELIVER})


class OrderStateMachine:
    @staticmethod
    def can_apply(current: str, event: str) -> bool:
        return (OrderStatus(current), OrderEvent(event)) in _TRANSITIONS

    @staticmethod
    def next_status(current: str, event: str) -> OrderStatus:
        key = (OrderStatus(current), OrderEvent(event))
        if key not in _TRANSITIONS:
            raise InvalidTransitionError(
                f"Cannot apply '{key[1]}' to an order in status '{key[0]}'.",
                details={"status": str(key[0]), "event": str(key[1])},
            )
        return _TRANSITIONS[key]

    @staticmethod
    def allowed_events(current: str) -> list[OrderEvent]:
        status = OrderStatus(current)
        return [event for (state, event) in _TRANSITIONS if state == status]


class ReturnStatus(StrEnum):
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    PICKED_UP = "picked_up"
    RECEIVED = "received"
    REFUNDED = "refunded"


class ExchangeStatus(StrEnum):
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    PICKED_UP = "picked_up"
    RECEIVED = "received"
    SHIPPED = "shipped"
    DELIVERED = "delivered"


_RETURN_MOVES: dict[ReturnStatus, frozenset[ReturnStatus]] = {
    ReturnStatus.REQUESTED: frozenset({ReturnStatus.APPROVED, ReturnStatus.REJECTED}),
    ReturnStatus.APPROVED: frozenset({ReturnStatus.PICKED_UP, ReturnStatus.REFUNDED}),
    ReturnStatus.PICKED_UP: frozenset({ReturnStatus.RECEIVED}),
    ReturnStatus.RECEIVED: frozenset({ReturnStatus.REFUNDED}),
}

_EXCHANGE_MOVES: dict[ExchangeStatus, frozenset[ExchangeStatus]] = {
    ExchangeStatus.REQUESTED: frozenset({ExchangeStatus.APPROVED, ExchangeStatus.REJECTED}),
    ExchangeStatus.APPROVED: frozenset({ExchangeStatus.PICKED_UP}),
    ExchangeStatus.PICKED_UP: frozenset({ExchangeStatus.RECEIVED}),
    ExchangeStatus.RECEIVED: frozenset({ExchangeStatus.SHIPPED}),
    ExchangeStatus.SHIPPED: frozenset({ExchangeStatus.DELIVERED}),
}


class ReturnStateMachine:
    @staticmethod
    def next_status(current: str, target: str) -> ReturnStatus:
        source, dest = ReturnStatus(current), ReturnStatus(target)
        if dest not in _RETURN_MOVES.get(source, frozenset()):
            raise InvalidTransitionError(f"Return cannot move from '{source}' to '{dest}'.")
        return dest


class ExchangeStateMachine:
    @staticmethod
    def next_status(current: str, target: str) -> ExchangeStatus:
        source, dest = ExchangeStatus(current), ExchangeStatus(target)
        if dest not in _EXCHANGE_MOVES.get(source, frozenset()):
            raise InvalidTransitionError(f"Exchange cannot move from '{source}' to '{dest}'.")
        return dest
