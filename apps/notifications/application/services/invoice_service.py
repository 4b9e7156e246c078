from __future__ import annotations

import logging

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.template.loader import render_to_string
from django.utils import timezone

logger = logging.getLogger("storefront.notifications")


class InvoiceService:
    @staticmethod
    def invoice_number_for(order) -> str:
        return f"INV-{order.order_number}"

    @staticmethod
    def generate(order):
        if order.invoice_number and order.invoice_url:
            return order

        invoice_number = InvoiceService.invoice_number_for(order)
        payment = getattr(order, "payment", None)
        content = render_to_string(
            "notifications/invoice.txt",
            {
                "order": order,
                "items": list(order.items.all()),
                "payment": payment,
                "invoice_number": invoice_number,
                "issued_at": timezone.now(),
            },
        )
        prefix = getattr(settings, "INVOICE_STORAGE_PREFIX", "invoices").strip("/")
        path = default_storage.save(f"{prefix}/{invoice_number}.txt", ContentFile(content.encode("utf-8")))

        order.invoice_number = invoice_number
        order.invoice_url = default_storage.url(path)
        order.invoice_generated_at = timezone.now()
        order.save(update_fields=["invoice_number", "invoice_url", "invoice_generated_at", "updated_at"])
        logger.info("invoice_generated", extra={"order_id": order.id, "invoice_number": invoice_number})
        return order
