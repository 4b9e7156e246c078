from django.urls import path

from .views import (
    ExchangeStatusAPI,
    OrderCancelAPI,
    OrderDetailAPI,
    OrderExchangeAPI,
    OrderFulfillmentStatusAPI,
    OrderListCreateAPI,
    OrderReorderAPI,
    OrderReturnAPI,
    OrderTrackAPI,
    ReturnStatusAPI,
)

urlpatterns = [
    path("orders/", OrderListCreateAPI.as_view(), name="api_orders"),
    path("orders/<int:order_id>/", OrderDetailAPI.as_view(), name="api_order_detail"),
    path("orders/<int:order_id>/cancel/", OrderCancelAPI.as_view(), name="api_order_cancel"),
    path("orders/<int:order_id>/return/", OrderReturnAPI.as_view(), name="api_order_return"),
    path("orders/<int:order_id>/return/status/", ReturnStatusAPI.as_view(), name="api_order_return_status"),
    path("orders/<int:order_id>/exchange/", OrderExchangeAPI.as_view(), name="api_order_exchange"),
    path("orders/<int:order_id>/exchange/status/", ExchangeStatusAPI.as_view(), name="api_order_exchange_status"),
    path("orders/<int:order_id>/reorder/", OrderReorderAPI.as_view(), name="api_order_reorder"),
    path("orders/<int:order_id>/track/", OrderTrackAPI.as_view(), name="api_order_track"),
    path("orders/<int:order_id>/status/", OrderFulfillmentStatusAPI.as_view(), name="api_order_status"),
]
