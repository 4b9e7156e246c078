from __future__ import annotations

from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from apps.accounts.interfaces.api.permissions import IsAdminRole
from apps.accounts.interfaces.api.throttling import SensitiveOperationThrottle
from apps.orders.domain.errors import OrderDomainError
from apps.orders.interfaces.api.serializers import OrderSerializer
from apps.payments.application.use_cases.create_payment_intent import (
    CreatePaymentIntentCommand,
    CreatePaymentIntentUseCase,
)
from apps.payments.application.use_cases.payment_history import PaymentHistoryCommand, PaymentHistoryUseCase
from apps.payments.application.use_cases.process_refund import ProcessRefundCommand, ProcessRefundUseCase
from apps.payments.application.use_cases.record_payment_failure import (
    RecordPaymentFailureCommand,
    RecordPaymentFailureUseCase,
)
from apps.payments.application.use_cases.verify_payment import VerifyPaymentCommand, VerifyPaymentUseCase
from apps.payments.domain.errors import PaymentDomainError
from storefront.api_errors import domain_failure, success

from .serializers import (
    CreatePaymentIntentSerializer,
    HistoryQuerySerializer,
    PaymentFailureSerializer,
    PaymentHistoryRowSerializer,
    PaymentSerializer,
    RefundSerializer,
    VerifyPaymentSerializer,
)

_HANDLED = (OrderDomainError, PaymentDomainError)


class CreatePaymentIntentAPI(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = CreatePaymentIntentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            result = CreatePaymentIntentUseCase.execute(
                CreatePaymentIntentCommand(
                    order_id=serializer.validated_data["order_id"],
                    actor=request.user,
                    amount=serializer.validated_data.get("amount"),
                )
            )
        except _HANDLED as exc:
            return domain_failure(exc)
        return success(order=result.gateway_order, key_id=result.key_id)


class VerifyPaymentAPI(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = VerifyPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            order = VerifyPaymentUseCase.execute(
                VerifyPaymentCommand(
                    order_id=data["order_id"],
                    actor=request.user,
                    gateway_order_id=data["razorpay_order_id"],
                    gateway_payment_id=data["razorpay_payment_id"],
                    signature=data["razorpay_signature"],
                )
            )
        except _HANDLED as exc:
            return domain_failure(exc)
        return success(message="Payment verified successfully", order=OrderSerializer(order).data)


class PaymentFailureAPI(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = PaymentFailureSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        error = serializer.validated_data.get("error") or {}
        try:
            RecordPaymentFailureUseCase.execute(
                RecordPaymentFailureCommand(
                    order_id=serializer.validated_data["order_id"],
                    actor=request.user,
                    code=error.get("code", ""),
                    description=error.get("description", ""),
                )
            )
        except _HANDLED as exc:
            return domain_failure(exc)
        return success(message="Payment failure recorded")


class RefundAPI(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]
    throttle_classes = [SensitiveOperationThrottle]

    def post(self, request):
        serializer = RefundSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            payment = ProcessRefundUseCase.execute(
                ProcessRefundCommand(actor=request.user, **serializer.validated_data)
            )
        except _HANDLED as exc:
            return domain_failure(exc)
        return success(message="Refund processed successfully", payment=PaymentSerializer(payment).data)


class PaymentHistoryAPI(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = HistoryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = PaymentHistoryUseCase.execute(PaymentHistoryCommand(user=request.user, **query.validated_data))
        return success(**result.meta(), payments=PaymentHistoryRowSerializer(result.items, many=True).data)
