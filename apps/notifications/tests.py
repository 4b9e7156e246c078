from __future__ import annotations

import shutil
import tempfile
from decimal import Decimal
from io import StringIO
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core import mail
from django.core.management import call_command
from django.test import TestCase, override_settings

from apps.accounts.models import AccountProfile
from apps.catalog.models import Product
from apps.notifications.application.services.invoice_service import InvoiceService
from apps.notifications.application.services.publisher import OutboundEventPublisher
from apps.notifications.application.use_cases.dispatch_outbound_event import (
    DispatchOutboundEventCommand,
    DispatchOutboundEventUseCase,
)
from apps.notifications.domain.errors import EmailGatewayError, NotificationDeliveryError, SmsGatewayError
from apps.notifications.domain.ports import EmailGateway, SmsGateway
from apps.notifications.models import OutboundEvent
from apps.notifications.tasks import enqueue_outbound_event
from apps.orders.models import Order, OrderItem
from apps.payments.models import Payment


class FailingEmailGateway(EmailGateway):
    name = "failing"

    def send_email(self, *, subject: str, body: str, to_email: str, from_email: str) -> None:
        raise EmailGatewayError("smtp unavailable")


class FailingSmsGateway(SmsGateway):
    name = "failing"

    def send_sms(self, *, to: str, body: str) -> None:
        raise SmsGatewayError("sms provider unavailable")


class NotificationTestCase(TestCase):
    def setUp(self) -> None:
        super().setUp()
        User = get_user_model()
        self.user = User.objects.create_user(
            username="buyer", email="buyer@example.com", password="x", first_name="Asha", last_name="Rao"
        )
        AccountProfile.objects.create(user=self.user, phone="9876543210")
        seller = User.objects.create_user(username="seller", password="x")
        product = Product.objects.create(seller=seller, sku="TEE", name="Tee", price=Decimal("100.00"), stock=5)
        self.order = Order.objects.create(
            order_number="ORD-1700000000000-0001",
            user=self.user,
            subtotal=Decimal("200.00"),
            shipping_fee=Decimal("99.00"),
            tax=Decimal("36.00"),
            total=Decimal("335.00"),
            shipping_address={"name": "Asha Rao", "address": "12 MG Road", "city": "Bengaluru", "pincode": "560001"},
        )
        OrderItem.objects.create(
            order=self.order, product=product, product_name="Tee", quantity=2, unit_price=Decimal("100.00")
        )
        Payment.objects.create(order=self.order, method=Payment.METHOD_RAZORPAY, amount=self.order.total)

    def event(self, event_type: str, **payload) -> OutboundEvent:
        return OutboundEvent.objects.create(event_type=event_type, order=self.order, payload=payload)


class PublisherTests(NotificationTestCase):
    def test_publish_records_event_and_enqueues_after_commit(self):
        with patch("apps.notifications.tasks.enqueue_outbound_event") as enqueue:
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                event = OutboundEventPublisher.publish(
                    event_type=OutboundEvent.ORDER_CREATED, order=self.order, payload={"total": "335.00"}
                )
                enqueue.assert_not_called()
        self.assertEqual(len(callbacks), 1)
        enqueue.assert_called_once_with(event_id=event.id)
        self.assertEqual(event.status, OutboundEvent.STATUS_PENDING)

    def test_enqueue_errors_are_logged_not_raised(self):
        event = self.event(OutboundEvent.ORDER_CREATED)
        with patch("apps.notifications.tasks.dispatch_outbound_event_task.delay", side_effect=ConnectionError("broker down")):
            with self.assertLogs("storefront.notifications", level="ERROR"):
                enqueue_outbound_event(event_id=event.id)
        event.refresh_from_db()
        self.assertEqual(event.status, OutboundEvent.STATUS_PENDING)


class DispatchTests(NotificationTestCase):
    def test_sends_email_and_sms(self):
        event = self.event(OutboundEvent.ORDER_CANCELLED, reason="Changed my mind")
        with self.assertLogs("storefront.notifications", level="INFO") as logs:
            DispatchOutboundEventUseCase.execute(DispatchOutboundEventCommand(event_id=event.id))

        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ["buyer@example.com"])
        self.assertEqual(message.subject, "Order Cancelled - ORD-1700000000000-0001")
        self.assertIn("Reason: Changed my mind", message.body)
        self.assertIn("Hello Asha Rao", message.body)
        self.assertTrue(any("sms_simulated" in line for line in logs.output))

        event.refresh_from_db()
        self.assertEqual(event.status, OutboundEvent.STATUS_SENT)
        self.assertIsNotNone(event.dispatched_at)

    def test_already_sent_event_is_not_resent(self):
        event = self.event(OutboundEvent.ORDER_CREATED)
        OutboundEvent.objects.filter(pk=event.pk).update(status=OutboundEvent.STATUS_SENT)
        DispatchOutboundEventUseCase.execute(DispatchOutboundEventCommand(event_id=event.id))
        self.assertEqual(len(mail.outbox), 0)

    def test_missing_event_is_ignored(self):
        self.assertIsNone(DispatchOutboundEventUseCase.execute(DispatchOutboundEventCommand(event_id=424242)))

    @override_settings(NOTIFICATION_EMAIL_GATEWAY="apps.notifications.tests.FailingEmailGateway")
    def test_gateway_failure_marks_event_failed_for_retry(self):
        event = self.event(OutboundEvent.ORDER_CREATED)
        with self.assertRaises(NotificationDeliveryError):
            DispatchOutboundEventUseCase.execute(DispatchOutboundEventCommand(event_id=event.id))
        event.refresh_from_db()
        self.assertEqual(event.status, OutboundEvent.STATUS_FAILED)
        self.assertEqual(event.attempts, 1)
        self.assertEqual(event.last_error, "smtp unavailable")

    def test_sms_failure_retry_does_not_resend_email(self):
        event = self.event(OutboundEvent.ORDER_CREATED)
        with override_settings(NOTIFICATION_SMS_GATEWAY="apps.notifications.tests.FailingSmsGateway"):
            with self.assertRaises(NotificationDeliveryError):
                DispatchOutboundEventUseCase.execute(DispatchOutboundEventCommand(event_id=event.id))
        event.refresh_from_db()
        self.assertEqual(event.status, OutboundEvent.STATUS_FAILED)
        self.assertIsNotNone(event.email_sent_at)
        self.assertIsNone(event.sms_sent_at)
        self.assertEqual(len(mail.outbox), 1)

        DispatchOutboundEventUseCase.execute(DispatchOutboundEventCommand(event_id=event.id))
        event.refresh_from_db()
        self.assertEqual(event.status, OutboundEvent.STATUS_SENT)
        self.assertEqual(event.attempts, 2)
        self.assertIsNotNone(event.sms_sent_at)
        self.assertEqual(len(mail.outbox), 1)


class InvoiceTests(NotificationTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.media_root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.media_root, ignore_errors=True)

    def test_payment_completed_generates_invoice_before_email(self):
        event = self.event(OutboundEvent.PAYMENT_COMPLETED, amount="335.00")
        with override_settings(MEDIA_ROOT=self.media_root):
            DispatchOutboundEventUseCase.execute(DispatchOutboundEventCommand(event_id=event.id))

        self.order.refresh_from_db()
        self.assertEqual(self.order.invoice_number, "INV-ORD-1700000000000-0001")
        self.assertTrue(self.order.invoice_url.endswith(".txt"))
        self.assertIsNotNone(self.order.invoice_generated_at)
        self.assertIn("INV-ORD-1700000000000-0001", mail.outbox[0].body)

    def test_invoice_is_generated_once(self):
        with override_settings(MEDIA_ROOT=self.media_root):
            InvoiceService.generate(self.order)
            first_url = self.order.invoice_url
            InvoiceService.generate(self.order)
        self.assertEqual(self.order.invoice_url, first_url)

    def test_invoice_failure_does_not_block_email(self):
        event = self.event(OutboundEvent.PAYMENT_COMPLETED, amount="335.00")
        with patch.object(InvoiceService, "generate", side_effect=OSError("disk full")):
            with self.assertLogs("storefront.notifications", level="ERROR"):
                DispatchOutboundEventUseCase.execute(DispatchOutboundEventCommand(event_id=event.id))
        self.assertEqual(len(mail.outbox), 1)
        event.refresh_from_db()
        self.assertEqual(event.status, OutboundEvent.STATUS_SENT)


class RetryCommandTests(NotificationTestCase):
    def test_requeues_pending_and_failed_events(self):
        pending = self.event(OutboundEvent.ORDER_CREATED)
        failed = self.event(OutboundEvent.PAYMENT_FAILED)
        OutboundEvent.objects.filter(pk=failed.pk).update(status=OutboundEvent.STATUS_FAILED, attempts=2)
        sent = self.event(OutboundEvent.ORDER_CANCELLED)
        OutboundEvent.objects.filter(pk=sent.pk).update(status=OutboundEvent.STATUS_SENT)

        out = StringIO()
        with patch("apps.notifications.management.commands.retry_outbound_events.enqueue_outbound_event") as enqueue:
            call_command("retry_outbound_events", stdout=out)

        enqueued = sorted(call.kwargs["event_id"] for call in enqueue.call_args_list)
        self.assertEqual(enqueued, sorted([pending.id, failed.id]))
        self.assertIn("Enqueued 2", out.getvalue())
