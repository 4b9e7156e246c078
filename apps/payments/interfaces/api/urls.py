from django.urls import path

from .views import CreatePaymentIntentAPI, PaymentFailureAPI, PaymentHistoryAPI, RefundAPI, VerifyPaymentAPI

urlpatterns = [
    path("payments/create-order/", CreatePaymentIntentAPI.as_view(), name="api_payment_create_order"),
    path("payments/verify/", VerifyPaymentAPI.as_view(), name="api_payment_verify"),
    path("payments/failure/", PaymentFailureAPI.as_view(), name="api_payment_failure"),
    path("payments/refund/", RefundAPI.as_view(), name="api_payment_refund"),
    path("payments/history/", PaymentHistoryAPI.as_view(), name="api_payment_history"),
]
