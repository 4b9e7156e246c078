from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone
from razorpay.errors import BadRequestError
from rest_framework.test import APIClient

from apps.catalog.models import Product
from apps.notifications.models import OutboundEvent
from apps.orders.models import Order, OrderReturn
from apps.payments.application.facade import PaymentGatewayFacade
from apps.payments.domain.errors import PaymentGatewayError
from apps.payments.domain.ports import to_minor_units
from apps.payments.domain.signatures import compute_signature, signature_matches
from apps.payments.models import Payment

SECRET = "rzp_test_secret"


class SignatureTests(SimpleTestCase):
    def test_matches_hmac_sha256_hex_digest(self):
        signature = compute_signature(SECRET, "order_abc", "pay_xyz")
        self.assertEqual(len(signature), 64)
        self.assertTrue(signature_matches(SECRET, "order_abc", "pay_xyz", signature))

    def test_any_difference_is_rejected(self):
        signature = compute_signature(SECRET, "order_abc", "pay_xyz")
        self.assertFalse(signature_matches(SECRET, "order_abc", "pay_other", signature))
        self.assertFalse(signature_matches("another-secret", "order_abc", "pay_xyz", signature))
        self.assertFalse(signature_matches(SECRET, "order_abc", "pay_xyz", signature[:-1] + "0"))
        self.assertFalse(signature_matches(SECRET, "order_abc", "pay_xyz", ""))

    def test_non_ascii_signature_is_a_mismatch(self):
        self.assertFalse(signature_matches(SECRET, "order_abc", "pay_xyz", "\u00e9" * 64))

    def test_minor_units(self):
        self.assertEqual(to_minor_units(Decimal("394.00")), 39400)
        self.assertEqual(to_minor_units(Decimal("0.05")), 5)

    def test_unknown_provider(self):
        with self.assertRaises(PaymentGatewayError):
            PaymentGatewayFacade.get("paypal")


class PaymentApiTestCase(TestCase):
    def setUp(self) -> None:
        super().setUp()
        cache.clear()
        User = get_user_model()
        self.client = APIClient()
        seller = User.objects.create_user(username="seller", password="x")
        self.buyer = User.objects.create_user(username="buyer", email="buyer@example.com", password="x")
        self.stranger = User.objects.create_user(username="stranger", password="x")
        self.admin = User.objects.create_user(username="ops", password="x", is_superuser=True)
        self.shirt = Product.objects.create(seller=seller, sku="SHIRT", name="Shirt", price=Decimal("100.00"), stock=10)
        self.socks = Product.objects.create(seller=seller, sku="SOCKS", name="Socks", price=Decimal("50.00"), stock=5)
        self.client.force_authenticate(self.buyer)

    def place_order(self) -> Order:
        response = self.client.post(
            "/api/orders/",
            data={
                "items": [{"product_id": self.shirt.id, "quantity": 2}, {"product_id": self.socks.id, "quantity": 1}],
                "shipping_address": {
                    "name": "Asha Rao",
                    "phone": "9876543210",
                    "address": "12 MG Road",
                    "city": "Bengaluru",
                    "state": "Karnataka",
                    "pincode": "560001",
                },
                "payment_method": "razorpay",
            },
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.content)
        return Order.objects.get(pk=response.json()["order"]["id"])

    def verify(self, order: Order, *, gateway_order_id="order_test_1", payment_id="pay_test_1", signature=None):
        return self.client.post(
            "/api/payments/verify/",
            data={
                "order_id": order.id,
                "razorpay_order_id": gateway_order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature or compute_signature(SECRET, gateway_order_id, payment_id),
            },
            format="json",
        )

    def paid_order(self) -> Order:
        order = self.place_order()
        self.assertEqual(self.verify(order).status_code, 200)
        order.refresh_from_db()
        return order


@override_settings(PAYMENT_GATEWAY_PROVIDER="dummy")
class CreatePaymentIntentApiTests(PaymentApiTestCase):
    def test_creates_gateway_order_in_minor_units(self):
        order = self.place_order()
        response = self.client.post("/api/payments/create-order/", data={"order_id": order.id}, format="json")
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["order"]["amount"], 39400)
        self.assertEqual(payload["order"]["currency"], "INR")
        self.assertEqual(payload["order"]["receipt"], order.order_number)
        self.assertEqual(payload["key_id"], "dummy_key")
        self.assertEqual(Payment.objects.get(order=order).gateway_order_id, payload["order"]["id"])

    def test_amount_must_match_order_total(self):
        order = self.place_order()
        response = self.client.post(
            "/api/payments/create-order/", data={"order_id": order.id, "amount": "1.00"}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["errors"][0]["field"], "amount")

    def test_other_users_order_is_not_found(self):
        order = self.place_order()
        self.client.force_authenticate(self.stranger)
        response = self.client.post("/api/payments/create-order/", data={"order_id": order.id}, format="json")
        self.assertEqual(response.status_code, 404)

    def test_paid_order_cannot_open_new_intent(self):
        order = self.paid_order()
        response = self.client.post("/api/payments/create-order/", data={"order_id": order.id}, format="json")
        self.assertEqual(response.status_code, 400)


class RazorpayGatewayApiTests(PaymentApiTestCase):
    @patch("apps.payments.infrastructure.gateways.razorpay_gateway.razorpay.Client")
    def test_razorpay_order_create(self, client_cls):
        client_cls.return_value.order.create.return_value = {
            "id": "order_Rzp123",
            "amount": 39400,
            "currency": "INR",
            "receipt": "ignored",
            "status": "created",
        }
        order = self.place_order()
        response = self.client.post("/api/payments/create-order/", data={"order_id": order.id}, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["key_id"], "rzp_test_key")
        sent = client_cls.return_value.order.create.call_args.kwargs["data"]
        self.assertEqual(sent["amount"], 39400)
        self.assertEqual(sent["receipt"], order.order_number)
        self.assertEqual(sent["notes"]["order_id"], str(order.id))
        client_cls.assert_called_once_with(auth=("rzp_test_key", "rzp_test_secret"))

    @patch("apps.payments.infrastructure.gateways.razorpay_gateway.razorpay.Client")
    def test_gateway_error_is_a_generic_502(self, client_cls):
        client_cls.return_value.order.create.side_effect = BadRequestError("The api key provided is invalid")
        order = self.place_order()
        with self.assertLogs("storefront.payments", level="ERROR"):
            response = self.client.post("/api/payments/create-order/", data={"order_id": order.id}, format="json")
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["message"], "Payment gateway error")
        self.assertNotIn("api key", response.content.decode())


class VerifyPaymentApiTests(PaymentApiTestCase):
    def test_valid_signature_confirms_order(self):
        order = self.place_order()
        response = self.verify(order)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["order"]["status"], "confirmed")

        payment = Payment.objects.get(order=order)
        self.assertEqual(payment.status, Payment.STATUS_COMPLETED)
        self.assertEqual(payment.gateway_payment_id, "pay_test_1")
        self.assertIsNotNone(payment.paid_at)
        order.refresh_from_db()
        self.assertEqual(order.status_history.last().note, "Payment completed successfully")
        self.assertTrue(OutboundEvent.objects.filter(order=order, event_type=OutboundEvent.PAYMENT_COMPLETED).exists())

    def test_tampered_signature_is_rejected(self):
        order = self.place_order()
        good = compute_signature(SECRET, "order_test_1", "pay_test_1")
        response = self.verify(order, signature=good[:-1] + ("0" if good[-1] != "0" else "1"))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Payment verification failed")
        order.refresh_from_db()
        self.assertEqual(order.status, "pending")
        self.assertEqual(Payment.objects.get(order=order).status, Payment.STATUS_PENDING)

    def test_non_ascii_signature_is_rejected(self):
        order = self.place_order()
        response = self.verify(order, signature="\u00e9" * 64)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Payment verification failed")
        self.assertEqual(Payment.objects.get(order=order).status, Payment.STATUS_PENDING)

    @override_settings(PAYMENT_GATEWAY_PROVIDER="dummy")
    def test_non_ascii_signature_is_rejected_by_dummy_gateway(self):
        order = self.place_order()
        response = self.verify(order, signature="\u00e9" * 64)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Payment verification failed")

    def test_gateway_order_must_match_the_opened_intent(self):
        order = self.place_order()
        Payment.objects.filter(order=order).update(gateway_order_id="order_expected")
        response = self.verify(order, gateway_order_id="order_other")
        self.assertEqual(response.status_code, 400)

    def test_repeat_verification_is_idempotent(self):
        order = self.paid_order()
        response = self.verify(order)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(order.status_history.filter(status="confirmed").count(), 1)

    def test_other_users_order_is_not_found(self):
        order = self.place_order()
        self.client.force_authenticate(self.stranger)
        self.assertEqual(self.verify(order).status_code, 404)


class PaymentFailureApiTests(PaymentApiTestCase):
    def fail(self, order: Order, description="Card declined"):
        return self.client.post(
            "/api/payments/failure/",
            data={"order_id": order.id, "error": {"code": "BAD_REQUEST_ERROR", "description": description}},
            format="json",
        )

    def test_failure_keeps_order_pending_and_releases_stock(self):
        order = self.place_order()
        response = self.fail(order)
        self.assertEqual(response.status_code, 200)

        order.refresh_from_db()
        self.assertEqual(order.status, "pending")
        self.assertEqual(order.status_history.last().note, "Payment failed: Card declined")
        payment = Payment.objects.get(order=order)
        self.assertEqual(payment.status, Payment.STATUS_FAILED)
        self.assertEqual(payment.failure_reason, "Card declined")
        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.stock, 10)

    def test_missing_description_defaults(self):
        order = self.place_order()
        self.client.post("/api/payments/failure/", data={"order_id": order.id}, format="json")
        order.refresh_from_db()
        self.assertEqual(order.status_history.last().note, "Payment failed: Unknown error")

    def test_repeated_failure_releases_stock_once(self):
        order = self.place_order()
        self.fail(order)
        self.fail(order)
        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.stock, 10)

    def test_cancel_after_failure_does_not_restore_twice(self):
        order = self.place_order()
        self.fail(order)
        self.client.put(f"/api/orders/{order.id}/cancel/", data={"reason": "Payment keeps failing"}, format="json")
        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.stock, 10)

    def test_successful_retry_after_failure_reserves_again(self):
        order = self.place_order()
        self.fail(order)
        self.assertEqual(self.verify(order).status_code, 200)
        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.stock, 8)

    def test_completed_payment_cannot_be_failed(self):
        order = self.paid_order()
        response = self.fail(order)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(Payment.objects.get(order=order).status, Payment.STATUS_COMPLETED)


@override_settings(PAYMENT_GATEWAY_PROVIDER="dummy")
class RefundApiTests(PaymentApiTestCase):
    def refund(self, order: Order, amount: str, reason="Damaged item"):
        return self.client.post(
            "/api/payments/refund/", data={"order_id": order.id, "amount": amount, "reason": reason}, format="json"
        )

    def test_customers_cannot_refund(self):
        order = self.paid_order()
        self.assertEqual(self.refund(order, "394.00").status_code, 403)

    def test_full_refund(self):
        order = self.paid_order()
        self.client.force_authenticate(self.admin)
        response = self.refund(order, "394.00")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["payment"]["status"], "refunded")

        order.refresh_from_db()
        latest = order.status_history.last()
        self.assertEqual(latest.status, "confirmed")
        self.assertEqual(latest.note, "Refund processed: ₹394.00 - Damaged item")
        self.assertTrue(OutboundEvent.objects.filter(order=order, event_type=OutboundEvent.PAYMENT_REFUNDED).exists())

    def test_half_refund_is_partial(self):
        order = self.paid_order()
        self.client.force_authenticate(self.admin)
        response = self.refund(order, "197.00")
        payment = Payment.objects.get(order=order)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(payment.status, Payment.STATUS_PARTIALLY_REFUNDED)
        self.assertEqual(payment.refund_amount, Decimal("197.00"))
        self.assertTrue(payment.refund_id.startswith("rfnd_"))

    def test_unpaid_order_cannot_be_refunded(self):
        order = self.place_order()
        self.client.force_authenticate(self.admin)
        response = self.refund(order, "10.00")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Cannot refund incomplete payment")

    def test_amount_bounds(self):
        order = self.paid_order()
        self.client.force_authenticate(self.admin)
        self.assertEqual(self.refund(order, "0").status_code, 400)
        self.assertEqual(self.refund(order, "394.01").status_code, 400)
        self.assertEqual(Payment.objects.get(order=order).status, Payment.STATUS_COMPLETED)

    def test_refund_settles_approved_return(self):
        order = self.paid_order()
        Order.objects.filter(pk=order.pk).update(status="returned", delivered_at=timezone.now())
        OrderReturn.objects.create(order=order, reason="Does not fit", status="approved")
        self.client.force_authenticate(self.admin)
        self.refund(order, "394.00")
        return_request = OrderReturn.objects.get(order=order)
        self.assertEqual(return_request.status, "refunded")
        self.assertEqual(return_request.refund_amount, Decimal("394.00"))


class PaymentHistoryApiTests(PaymentApiTestCase):
    def test_lists_settled_payments_newest_first(self):
        older = self.paid_order()
        newer = self.paid_order()
        self.place_order()
        Payment.objects.filter(order=older).update(paid_at=timezone.now() - timedelta(days=2))

        response = self.client.get("/api/payments/history/")
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["total"], 2)
        self.assertEqual([row["id"] for row in payload["payments"]], [newer.id, older.id])
        self.assertEqual(payload["payments"][0]["pricing"]["total"], "394.00")
