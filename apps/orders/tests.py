from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core import mail
from django.core.cache import cache
from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from apps.accounts.models import AccountProfile
from apps.catalog.models import Product
from apps.notifications.models import OutboundEvent
from apps.orders.domain.errors import InvalidTransitionError
from apps.orders.domain.pricing import COUPON_FIXED, COUPON_PERCENTAGE, Coupon, PricingPolicy, price_lines
from apps.orders.domain.state_machine import (
    ExchangeStateMachine,
    OrderEvent,
    OrderStateMachine,
    OrderStatus,
    ReturnStateMachine,
)
from apps.orders.models import Order, OrderCancellation, OrderExchange, OrderReturn, OrderStatusHistory
from apps.orders.services.order_service import OrderService
from apps.payments.models import Payment

ADDRESS = {
    "name": "Asha Rao",
    "phone": "9876543210",
    "address": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "pincode": "560001",
}


class OrderStateMachineTests(SimpleTestCase):
    def test_cancel_allowed_only_before_shipping(self):
        for status in ("pending", "confirmed", "processing"):
            self.assertTrue(OrderStateMachine.can_apply(status, OrderEvent.CANCEL), status)
        for status in ("shipped", "delivered", "cancelled", "returned", "exchanged"):
            self.assertFalse(OrderStateMachine.can_apply(status, OrderEvent.CANCEL), status)

    def test_payment_failure_keeps_order_pending(self):
        self.assertEqual(OrderStateMachine.next_status("pending", OrderEvent.PAYMENT_FAILED), OrderStatus.PENDING)

    def test_cancelled_is_terminal(self):
        self.assertEqual(OrderStateMachine.allowed_events("cancelled"), [])

    def test_illegal_move_raises(self):
        with self.assertRaises(InvalidTransitionError):
            OrderStateMachine.next_status("pending", OrderEvent.SHIP)

    def test_return_sub_workflow(self):
        self.assertEqual(ReturnStateMachine.next_status("approved", "refunded"), "refunded")
        with self.assertRaises(InvalidTransitionError):
            ReturnStateMachine.next_status("requested", "received")

    def test_exchange_sub_workflow(self):
        self.assertEqual(ExchangeStateMachine.next_status("received", "shipped"), "shipped")
        with self.assertRaises(InvalidTransitionError):
            ExchangeStateMachine.next_status("rejected", "approved")


class PricingTests(SimpleTestCase):
    policy = PricingPolicy(
        free_shipping_threshold=Decimal("500"), flat_shipping_fee=Decimal("99"), tax_rate=Decimal("0.18")
    )

    def test_below_threshold_pays_flat_shipping(self):
        summary = price_lines([(Decimal("100"), 2), (Decimal("50"), 1)], policy=self.policy)
        self.assertEqual(summary.subtotal, Decimal("250.00"))
        self.assertEqual(summary.shipping_fee, Decimal("99.00"))
        self.assertEqual(summary.tax, Decimal("45.00"))
        self.assertEqual(summary.total, Decimal("394.00"))

    def test_free_shipping_at_threshold(self):
        summary = price_lines([(Decimal("300"), 2)], policy=self.policy)
        self.assertEqual(summary.shipping_fee, Decimal("0"))
        self.assertEqual(summary.total, Decimal("708.00"))

    def test_percentage_coupon(self):
        summary = price_lines(
            [(Decimal("1000"), 1)], policy=self.policy, coupon=Coupon("SAVE10", COUPON_PERCENTAGE, Decimal("10"))
        )
        self.assertEqual(summary.discount, Decimal("100.00"))
        self.assertEqual(summary.total, Decimal("1080.00"))

    def test_fixed_coupon_never_makes_total_negative(self):
        summary = price_lines([(Decimal("10"), 1)], policy=self.policy, coupon=Coupon("BIG", COUPON_FIXED, Decimal("5000")))
        self.assertEqual(summary.total, Decimal("0.00"))

    def test_rounding_is_half_up(self):
        summary = price_lines([(Decimal("0.25"), 1)], policy=self.policy)
        self.assertEqual(summary.tax, Decimal("0.05"))


class OrderNumberTests(TestCase):
    @patch("apps.orders.services.order_service.secrets.token_hex", side_effect=["abc123", "def456"])
    @patch("apps.orders.services.order_service.time.time", return_value=1700000000.0)
    def test_same_millisecond_numbers_differ(self, _time, _token_hex):
        first = OrderService.generate_order_number()
        second = OrderService.generate_order_number()
        self.assertEqual(first, "ORD-1700000000000-0001-ABC123")
        self.assertEqual(second, "ORD-1700000000000-0001-DEF456")

    def test_format(self):
        self.assertRegex(OrderService.generate_order_number(), r"^ORD-\d{13}-\d{4}-[0-9A-F]{6}$")


class OrderApiTestCase(TestCase):
    def setUp(self) -> None:
        super().setUp()
        cache.clear()
        User = get_user_model()
        self.client = APIClient()
        self.seller = User.objects.create_user(username="seller", password="x")
        self.buyer = User.objects.create_user(username="buyer", email="buyer@example.com", password="x")
        AccountProfile.objects.create(user=self.buyer, phone="9876543210")
        self.stranger = User.objects.create_user(username="stranger", password="x")
        self.admin = User.objects.create_user(username="ops", password="x", is_staff=True)

        self.shirt = Product.objects.create(seller=self.seller, sku="SHIRT", name="Shirt", price=Decimal("100.00"), stock=10)
        self.socks = Product.objects.create(seller=self.seller, sku="SOCKS", name="Socks", price=Decimal("50.00"), stock=5)
        self.jacket = Product.objects.create(seller=self.seller, sku="JACKET", name="Jacket", price=Decimal("600.00"), stock=3)
        self.client.force_authenticate(self.buyer)

    def place(self, items=None, **extra):
        body = {
            "items": items or [{"product_id": self.shirt.id, "quantity": 2}, {"product_id": self.socks.id, "quantity": 1}],
            "shipping_address": ADDRESS,
            "payment_method": "razorpay",
            **extra,
        }
        return self.client.post("/api/orders/", data=body, format="json")

    def placed_order(self, **extra) -> Order:
        response = self.place(**extra)
        self.assertEqual(response.status_code, 201, response.content)
        return Order.objects.get(pk=response.json()["order"]["id"])

    def set_status(self, order: Order, status: str, **fields) -> Order:
        Order.objects.filter(pk=order.pk).update(status=status, **fields)
        order.refresh_from_db()
        return order


class CreateOrderApiTests(OrderApiTestCase):
    def test_pricing_scenario_below_free_shipping(self):
        response = self.place()
        self.assertEqual(response.status_code, 201)
        payload = response.json()
        self.assertTrue(payload["success"])
        pricing = payload["order"]["pricing"]
        self.assertEqual(pricing["subtotal"], "250.00")
        self.assertEqual(pricing["shipping_fee"], "99.00")
        self.assertEqual(pricing["tax"], "45.00")
        self.assertEqual(pricing["total"], "394.00")
        self.assertEqual(payload["order"]["status"], "pending")
        self.assertEqual(payload["order"]["payment"]["status"], "pending")
        self.assertTrue(payload["order"]["order_number"].startswith("ORD-"))

    def test_free_shipping_when_subtotal_reaches_threshold(self):
        response = self.place(items=[{"product_id": self.jacket.id, "quantity": 1}])
        self.assertEqual(response.json()["order"]["pricing"]["shipping_fee"], "0.00")

    def test_creation_reserves_stock_and_records_history(self):
        order = self.placed_order()
        self.shirt.refresh_from_db()
        self.socks.refresh_from_db()
        self.assertEqual(self.shirt.stock, 8)
        self.assertEqual(self.socks.stock, 4)
        history = list(order.status_history.values_list("status", "note"))
        self.assertEqual(history, [("pending", "Order placed successfully")])
        self.assertTrue(
            OutboundEvent.objects.filter(order=order, event_type=OutboundEvent.ORDER_CREATED).exists()
        )

    def test_item_snapshot_survives_price_change(self):
        order = self.placed_order()
        Product.objects.filter(pk=self.shirt.pk).update(price=Decimal("999.00"))
        self.assertEqual(order.items.get(product=self.shirt).unit_price, Decimal("100.00"))

    def test_insufficient_stock_rolls_back_earlier_reservations(self):
        response = self.place(
            items=[{"product_id": self.shirt.id, "quantity": 2}, {"product_id": self.socks.id, "quantity": 6}]
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("Insufficient stock for Socks", response.json()["message"])
        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.stock, 10)
        self.assertFalse(Order.objects.exists())

    def test_repeated_product_lines_are_checked_together(self):
        response = self.place(
            items=[{"product_id": self.socks.id, "quantity": 3}, {"product_id": self.socks.id, "quantity": 3}]
        )
        self.assertEqual(response.status_code, 400)
        self.socks.refresh_from_db()
        self.assertEqual(self.socks.stock, 5)

    def test_inactive_product_is_unavailable(self):
        Product.objects.filter(pk=self.socks.pk).update(is_active=False)
        response = self.place()
        self.assertEqual(response.status_code, 400)
        self.assertIn("not available", response.json()["message"])

    def test_invalid_payload_returns_field_errors(self):
        response = self.client.post(
            "/api/orders/",
            data={"items": [], "shipping_address": {**ADDRESS, "pincode": "12"}, "payment_method": "cash"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        payload = response.json()
        self.assertEqual(payload["message"], "Validation failed")
        fields = {error["field"] for error in payload["errors"]}
        self.assertTrue(any(field.startswith("items") for field in fields))
        self.assertIn("shipping_address.pincode", fields)
        self.assertIn("payment_method", fields)

    def test_coupon_is_snapshotted(self):
        order = self.placed_order(coupon={"code": "FLAT50", "type": "fixed", "value": "50.00"})
        self.assertEqual(order.discount, Decimal("50.00"))
        self.assertEqual(order.total, Decimal("344.00"))
        self.assertEqual(order.coupon_code, "FLAT50")

    def test_billing_defaults_to_shipping(self):
        order = self.placed_order()
        self.assertTrue(order.billing_address["same_as_shipping"])
        self.assertEqual(order.billing_address["city"], "Bengaluru")

    def test_confirmation_is_delivered_after_commit(self):
        with self.captureOnCommitCallbacks(execute=True):
            order = self.placed_order()
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, f"Order Confirmation - {order.order_number}")
        event = OutboundEvent.objects.get(order=order)
        self.assertEqual(event.status, OutboundEvent.STATUS_SENT)
        self.assertEqual(event.attempts, 1)

    def test_notification_failure_does_not_fail_checkout(self):
        with override_settings(NOTIFICATION_EMAIL_GATEWAY="apps.notifications.tests.FailingEmailGateway"):
            with self.captureOnCommitCallbacks(execute=True):
                response = self.place()
        self.assertEqual(response.status_code, 201)
        event = OutboundEvent.objects.get(order_id=response.json()["order"]["id"])
        self.assertEqual(event.status, OutboundEvent.STATUS_FAILED)
        self.assertGreaterEqual(event.attempts, 1)


class ReadOrderApiTests(OrderApiTestCase):
    def test_list_is_scoped_newest_first_and_paginated(self):
        first = self.placed_order()
        second = self.placed_order()
        Order.objects.filter(pk=first.pk).update(created_at=timezone.now() - timedelta(days=1))

        response = self.client.get("/api/orders/", {"limit": 1})
        payload = response.json()
        self.assertEqual(payload["total"], 2)
        self.assertEqual(payload["pages"], 2)
        self.assertEqual(payload["orders"][0]["id"], second.id)

        self.client.force_authenticate(self.stranger)
        self.assertEqual(self.client.get("/api/orders/").json()["total"], 0)

    def test_list_filters_by_status(self):
        order = self.placed_order()
        self.set_status(order, "confirmed")
        self.placed_order()
        response = self.client.get("/api/orders/", {"status": "confirmed"})
        self.assertEqual([row["id"] for row in response.json()["orders"]], [order.id])

    def test_detail_ownership(self):
        order = self.placed_order()
        self.client.force_authenticate(self.stranger)
        self.assertEqual(self.client.get(f"/api/orders/{order.id}/").status_code, 403)
        self.client.force_authenticate(self.admin)
        self.assertEqual(self.client.get(f"/api/orders/{order.id}/").status_code, 200)

    def test_missing_order_is_404(self):
        response = self.client.get("/api/orders/999999/")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["message"], "Order not found")

    def test_track_projection(self):
        order = self.placed_order()
        self.client.force_authenticate(self.admin)
        response = self.client.get(f"/api/orders/{order.id}/track/")
        self.assertEqual(response.status_code, 200)
        tracking = response.json()["tracking"]
        self.assertEqual(tracking["order_number"], order.order_number)
        self.assertEqual(tracking["status"], "pending")
        self.assertEqual(len(tracking["status_history"]), 1)
        self.assertIsNotNone(tracking["estimated_delivery"])

        self.client.force_authenticate(self.stranger)
        self.assertEqual(self.client.get(f"/api/orders/{order.id}/track/").status_code, 403)


class CancelOrderApiTests(OrderApiTestCase):
    def test_cancel_round_trip_restores_stock(self):
        order = self.placed_order()
        response = self.client.put(f"/api/orders/{order.id}/cancel/", data={"reason": "Changed my mind"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["order"]["status"], "cancelled")

        self.shirt.refresh_from_db()
        self.socks.refresh_from_db()
        self.assertEqual(self.shirt.stock, 10)
        self.assertEqual(self.socks.stock, 5)

        order.refresh_from_db()
        self.assertEqual(order.cancellation.refund_status, OrderCancellation.REFUND_NONE)
        self.assertEqual(order.status_history.last().note, "Order cancelled: Changed my mind")
        self.assertEqual(set(order.items.values_list("status", flat=True)), {"cancelled"})
        self.assertTrue(OutboundEvent.objects.filter(order=order, event_type=OutboundEvent.ORDER_CANCELLED).exists())

    def test_cancel_boundary_per_status(self):
        for status, expected in (("processing", 200), ("shipped", 400), ("delivered", 400)):
            order = self.set_status(self.placed_order(), status)
            response = self.client.put(
                f"/api/orders/{order.id}/cancel/", data={"reason": "No longer needed"}, format="json"
            )
            self.assertEqual(response.status_code, expected, status)

    def test_cancel_after_payment_marks_refund_pending(self):
        order = self.set_status(self.placed_order(), "confirmed")
        Payment.objects.filter(order=order).update(status=Payment.STATUS_COMPLETED)
        self.client.put(f"/api/orders/{order.id}/cancel/", data={"reason": "Found it cheaper"}, format="json")
        self.assertEqual(OrderCancellation.objects.get(order=order).refund_status, OrderCancellation.REFUND_PENDING)

    def test_cancel_twice_is_rejected(self):
        order = self.placed_order()
        self.client.put(f"/api/orders/{order.id}/cancel/", data={"reason": "Changed my mind"}, format="json")
        response = self.client.put(f"/api/orders/{order.id}/cancel/", data={"reason": "Changed my mind"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.stock, 10)

    def test_stranger_cannot_cancel(self):
        order = self.placed_order()
        self.client.force_authenticate(self.stranger)
        response = self.client.put(f"/api/orders/{order.id}/cancel/", data={"reason": "Not my order at all"}, format="json")
        self.assertEqual(response.status_code, 403)
        order.refresh_from_db()
        self.assertEqual(order.status, "pending")

    def test_short_reason_fails_validation(self):
        order = self.placed_order()
        response = self.client.put(f"/api/orders/{order.id}/cancel/", data={"reason": "meh"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["errors"][0]["field"], "reason")

    @override_settings(SENSITIVE_OPERATION_RATE="2/15m")
    def test_sensitive_operations_are_throttled(self):
        order = self.placed_order()
        url = f"/api/orders/{order.id}/cancel/"
        self.client.put(url, data={"reason": "meh"}, format="json")
        self.client.put(url, data={"reason": "meh"}, format="json")
        response = self.client.put(url, data={"reason": "meh"}, format="json")
        self.assertEqual(response.status_code, 429)
        self.assertFalse(response.json()["success"])
        self.assertIn("Retry-After", response)


class ReturnExchangeApiTests(OrderApiTestCase):
    def delivered(self, days_ago: int) -> Order:
        return self.set_status(
            self.placed_order(), "delivered", delivered_at=timezone.now() - timedelta(days=days_ago)
        )

    def test_return_inside_window(self):
        order = self.delivered(days_ago=30)
        response = self.client.put(f"/api/orders/{order.id}/return/", data={"reason": "Does not fit well"}, format="json")
        self.assertEqual(response.status_code, 200)
        order.refresh_from_db()
        self.assertEqual(order.status, "returned")
        self.assertEqual(order.return_request.status, "requested")
        self.assertEqual(order.status_history.last().note, "Return requested: Does not fit well")

    def test_return_after_window(self):
        order = self.delivered(days_ago=31)
        response = self.client.put(f"/api/orders/{order.id}/return/", data={"reason": "Does not fit well"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("return window", response.json()["message"])
        self.assertFalse(OrderReturn.objects.filter(order=order).exists())

    def test_return_requires_delivery(self):
        order = self.set_status(self.placed_order(), "shipped")
        response = self.client.put(f"/api/orders/{order.id}/return/", data={"reason": "Does not fit well"}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_exchange_inside_window_reports_price_difference(self):
        order = self.delivered(days_ago=15)
        response = self.client.put(
            f"/api/orders/{order.id}/exchange/",
            data={"reason": "Wrong size delivered", "new_product_id": self.jacket.id},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["price_difference"], "350.00")
        self.assertEqual(OrderExchange.objects.get(order=order).status, "requested")

    def test_exchange_after_window(self):
        order = self.delivered(days_ago=16)
        response = self.client.put(
            f"/api/orders/{order.id}/exchange/",
            data={"reason": "Wrong size delivered", "new_product_id": self.jacket.id},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("exchange window", response.json()["message"])

    def test_exchange_needs_an_active_replacement(self):
        order = self.delivered(days_ago=1)
        Product.objects.filter(pk=self.jacket.pk).update(is_active=False)
        response = self.client.put(
            f"/api/orders/{order.id}/exchange/",
            data={"reason": "Wrong size delivered", "new_product_id": self.jacket.id},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "New product not available")


class ReorderApiTests(OrderApiTestCase):
    def test_reorder_uses_current_prices(self):
        original = self.placed_order()
        Product.objects.filter(pk=self.shirt.pk).update(price=Decimal("120.00"))
        response = self.client.post(f"/api/orders/{original.id}/reorder/")
        self.assertEqual(response.status_code, 201)
        order = Order.objects.get(pk=response.json()["order"]["id"])
        self.assertEqual(order.status, "pending")
        self.assertEqual(order.reordered_from_id, original.id)
        self.assertEqual(order.items.get(product=self.shirt).unit_price, Decimal("120.00"))
        self.assertEqual(order.status_history.first().note, f"Reorder from {original.order_number}")
        self.assertNotIn("unavailable_items", response.json())

    def test_reorder_reports_unavailable_items(self):
        original = self.placed_order()
        Product.objects.filter(pk=self.socks.pk).update(is_active=False)
        response = self.client.post(f"/api/orders/{original.id}/reorder/")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(
            response.json()["unavailable_items"], [{"name": "Socks", "reason": "Product no longer available"}]
        )

    def test_reorder_with_nothing_available(self):
        original = self.placed_order()
        Product.objects.all().update(is_active=False)
        response = self.client.post(f"/api/orders/{original.id}/reorder/")
        self.assertEqual(response.status_code, 400)
        payload = response.json()
        self.assertEqual(payload["message"], "No items available for reorder")
        self.assertEqual(len(payload["unavailable_items"]), 2)
        self.assertEqual(Order.objects.count(), 1)


class AdminFulfillmentApiTests(OrderApiTestCase):
    def test_customer_cannot_update_status(self):
        order = self.placed_order()
        response = self.client.put(f"/api/orders/{order.id}/status/", data={"event": "ship"}, format="json")
        self.assertEqual(response.status_code, 403)

    def test_ship_then_deliver(self):
        order = self.set_status(self.placed_order(), "confirmed")
        self.client.force_authenticate(self.admin)
        response = self.client.put(
            f"/api/orders/{order.id}/status/",
            data={"event": "ship", "tracking_number": "TRK123", "carrier": "BlueDart", "location": "Mumbai"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        order.refresh_from_db()
        self.assertEqual(order.status, "shipped")
        self.assertEqual(order.tracking_number, "TRK123")

        self.client.put(f"/api/orders/{order.id}/status/", data={"event": "deliver"}, format="json")
        order.refresh_from_db()
        self.assertEqual(order.status, "delivered")
        self.assertIsNotNone(order.delivered_at)
        self.assertEqual(list(order.tracking_events.values_list("status", flat=True)), ["shipped", "delivered"])
        self.assertEqual(
            OutboundEvent.objects.filter(order=order, event_type=OutboundEvent.ORDER_STATUS_CHANGED).count(), 2
        )

    def test_illegal_fulfillment_move(self):
        order = self.placed_order()
        self.client.force_authenticate(self.admin)
        response = self.client.put(f"/api/orders/{order.id}/status/", data={"event": "deliver"}, format="json")
        self.assertEqual(response.status_code, 400)
        order.refresh_from_db()
        self.assertEqual(order.status, "pending")

    def test_return_sub_status_updates(self):
        order = self.set_status(self.placed_order(), "delivered", delivered_at=timezone.now())
        self.client.put(f"/api/orders/{order.id}/return/", data={"reason": "Colour is different"}, format="json")
        self.client.force_authenticate(self.admin)

        response = self.client.put(f"/api/orders/{order.id}/return/status/", data={"status": "approved"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertIsNotNone(response.json()["return_request"]["approved_at"])

        response = self.client.put(f"/api/orders/{order.id}/return/status/", data={"status": "requested"}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_exchange_status_without_request_is_404(self):
        order = self.placed_order()
        self.client.force_authenticate(self.admin)
        response = self.client.put(f"/api/orders/{order.id}/exchange/status/", data={"status": "approved"}, format="json")
        self.assertEqual(response.status_code, 404)


class StatusHistoryTests(OrderApiTestCase):
    def test_history_entries_are_immutable(self):
        order = self.placed_order()
        entry = order.status_history.first()
        entry.note = "rewritten"
        with self.assertRaises(ValueError):
            entry.save()
        with self.assertRaises(ValueError):
            entry.delete()
        self.assertEqual(OrderStatusHistory.objects.get(pk=entry.pk).note, "Order placed successfully")

    def test_order_status_matches_latest_history(self):
        order = self.placed_order()
        self.client.put(f"/api/orders/{order.id}/cancel/", data={"reason": "Changed my mind"}, format="json")
        order.refresh_from_db()
        self.assertEqual(order.status, order.status_history.last().status)

    def test_recalculate_total(self):
        order = self.placed_order()
        self.assertEqual(order.recalculate_total(), Decimal("394.00"))
