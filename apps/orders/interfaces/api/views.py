from __future__ import annotations

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from apps.accounts.interfaces.api.permissions import IsAdminRole
from apps.accounts.interfaces.api.throttling import SensitiveOperationThrottle
from apps.orders.application.use_cases.cancel_order import CancelOrderCommand, CancelOrderUseCase
from apps.orders.application.use_cases.create_order import CreateOrderCommand, CreateOrderUseCase
from apps.orders.application.use_cases.get_order import GetOrderCommand, GetOrderUseCase
from apps.orders.application.use_cases.list_orders import ListOrdersCommand, ListOrdersUseCase
from apps.orders.application.use_cases.reorder import ReorderCommand, ReorderUseCase
from apps.orders.application.use_cases.request_exchange import RequestExchangeCommand, RequestExchangeUseCase
from apps.orders.application.use_cases.request_return import RequestReturnCommand, RequestReturnUseCase
from apps.orders.application.use_cases.track_order import TrackOrderCommand, TrackOrderUseCase
from apps.orders.application.use_cases.update_exchange_status import (
    UpdateExchangeStatusCommand,
    UpdateExchangeStatusUseCase,
)
from apps.orders.application.use_cases.update_fulfillment_status import (
    UpdateFulfillmentStatusCommand,
    UpdateFulfillmentStatusUseCase,
)
from apps.orders.application.use_cases.update_return_status import (
    UpdateReturnStatusCommand,
    UpdateReturnStatusUseCase,
)
from apps.orders.domain.errors import OrderDomainError
from storefront.api_errors import domain_failure, success

from .serializers import (
    ExchangeRequestSerializer,
    ExchangeSerializer,
    ExchangeStatusUpdateSerializer,
    FulfillmentUpdateSerializer,
    OrderCreateSerializer,
    OrderListQuerySerializer,
    OrderSerializer,
    ReasonSerializer,
    ReturnSerializer,
    ReturnStatusUpdateSerializer,
)


class OrderListCreateAPI(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = OrderListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = ListOrdersUseCase.execute(
            ListOrdersCommand(
                user=request.user,
                page=query.validated_data["page"],
                limit=query.validated_data["limit"],
                status=query.validated_data.get("status", ""),
            )
        )
        return success(**result.meta(), orders=OrderSerializer(result.items, many=True).data)

    def post(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        coupon = data.get("coupon") or {}
        billing = data.get("billing_address")
        if billing and billing.get("same_as_shipping"):
            billing = None

        try:
            order = CreateOrderUseCase.execute(
                CreateOrderCommand(
                    user=request.user,
                    items=tuple(data["items"]),
                    shipping_address=dict(data["shipping_address"]),
                    billing_address=dict(billing) if billing else None,
                    payment_method=data["payment_method"],
                    coupon_code=coupon.get("code", ""),
                    coupon_type=coupon.get("type", "fixed"),
                    coupon_value=coupon.get("value", 0),
                    customer_note=data["customer_note"],
                    is_gift=data["is_gift"],
                    gift_message=data["gift_message"],
                )
            )
        except OrderDomainError as exc:
            return domain_failure(exc)

        return success(
            message="Order created successfully",
            order=OrderSerializer(order).data,
            http_status=status.HTTP_201_CREATED,
        )


class OrderDetailAPI(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, order_id: int):
        try:
            order = GetOrderUseCase.execute(GetOrderCommand(order_id=order_id, actor=request.user))
        except OrderDomainError as exc:
            return domain_failure(exc)
        return success(order=OrderSerializer(order).data)


class OrderCancelAPI(APIView):
    permission_classes = [IsAuthenticated]
    throttle_classes = [SensitiveOperationThrottle]

    def put(self, request, order_id: int):
        serializer = ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            order = CancelOrderUseCase.execute(
                CancelOrderCommand(order_id=order_id, actor=request.user, reason=serializer.validated_data["reason"])
            )
        except OrderDomainError as exc:
            return domain_failure(exc)
        return success(message="Order cancelled successfully", order=OrderSerializer(order).data)


class OrderReturnAPI(APIView):
    permission_classes = [IsAuthenticated]
    throttle_classes = [SensitiveOperationThrottle]

    def put(self, request, order_id: int):
        serializer = ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            order = RequestReturnUseCase.execute(
                RequestReturnCommand(order_id=order_id, actor=request.user, reason=serializer.validated_data["reason"])
            )
        except OrderDomainError as exc:
            return domain_failure(exc)
        return success(message="Return request submitted successfully", order=OrderSerializer(order).data)


class OrderExchangeAPI(APIView):
    permission_classes = [IsAuthenticated]
    throttle_classes = [SensitiveOperationThrottle]

    def put(self, request, order_id: int):
        serializer = ExchangeRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            exchange = RequestExchangeUseCase.execute(
                RequestExchangeCommand(
                    order_id=order_id,
                    actor=request.user,
                    reason=serializer.validated_data["reason"],
                    new_product_id=serializer.validated_data["new_product_id"],
                )
            )
        except OrderDomainError as exc:
            return domain_failure(exc)
        return success(
            message="Exchange request submitted successfully",
            order=OrderSerializer(exchange.order).data,
            price_difference=str(exchange.price_difference),
        )


class OrderReorderAPI(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, order_id: int):
        try:
            result = ReorderUseCase.execute(ReorderCommand(order_id=order_id, actor=request.user))
        except OrderDomainError as exc:
            return domain_failure(exc)

        payload = {"order": OrderSerializer(result.order).data}
        if result.unavailable_items:
            payload["unavailable_items"] = result.unavailable_items
        return success(message="Reorder created successfully", http_status=status.HTTP_201_CREATED, **payload)


class OrderTrackAPI(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, order_id: int):
        try:
            tracking = TrackOrderUseCase.execute(TrackOrderCommand(order_id=order_id, actor=request.user))
        except OrderDomainError as exc:
            return domain_failure(exc)
        return success(tracking=tracking)


class OrderFulfillmentStatusAPI(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def put(self, request, order_id: int):
        serializer = FulfillmentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            order = UpdateFulfillmentStatusUseCase.execute(
                UpdateFulfillmentStatusCommand(order_id=order_id, actor=request.user, **serializer.validated_data)
            )
        except OrderDomainError as exc:
            return domain_failure(exc)
        return success(message="Order status updated successfully", order=OrderSerializer(order).data)


class ReturnStatusAPI(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def put(self, request, order_id: int):
        serializer = ReturnStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            return_request = UpdateReturnStatusUseCase.execute(
                UpdateReturnStatusCommand(order_id=order_id, actor=request.user, **serializer.validated_data)
            )
        except OrderDomainError as exc:
            return domain_failure(exc)
        return success(message="Return status updated successfully", return_request=ReturnSerializer(return_request).data)


class ExchangeStatusAPI(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def put(self, request, order_id: int):
        serializer = ExchangeStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            exchange = UpdateExchangeStatusUseCase.execute(
                UpdateExchangeStatusCommand(order_id=order_id, actor=request.user, **serializer.validated_data)
            )
        except OrderDomainError as exc:
            return domain_failure(exc)
        return success(message="Exchange status updated successfully", exchange_request=ExchangeSerializer(exchange).data)
