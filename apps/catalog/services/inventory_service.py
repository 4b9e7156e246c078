"""
Stock adjustments.

Stock is a shared counter; every change is a single UPDATE evaluated by the
database so concurrent adjustments never overwrite each other. Decrements
clamp at zero, restores are unconditional increments.
"""

from __future__ import annotations

import logging
from typing import Iterable

from django.db.models import Case, F, Value, When
from django.utils import timezone

from ..models import Product

logger = logging.getLogger("storefront.inventory")


class InventoryService:
    @staticmethod
    def lock_products(product_ids: Iterable[int]) -> dict[int, Product]:
        """Row-lock the given products (id order) for the current transaction."""
        ids = sorted({int(pid) for pid in product_ids})
        products = Product.objects.select_for_update().filter(id__in=ids).order_by("id")
        return {product.id: product for product in products}

    @staticmethod
    def reserve(product: Product, quantity: int) -> None:
        Product.objects.filter(pk=product.pk).update(
            stock=Case(
                When(stock__gte=quantity, then=F("stock") - quantity),
                default=Value(0),
            ),
            last_stock_update=timezone.now(),
        )
        product.refresh_from_db(fields=["stock", "last_stock_update"])
        logger.debug("stock_reserved", extra={"product_id": product.pk, "quantity": quantity, "stock": product.stock})

    @staticmethod
    def restore(product_id: int, quantity: int) -> None:
        Product.objects.filter(pk=product_id).update(
            stock=F("stock") + quantity,
            last_stock_update=timezone.now(),
        )
        logger.debug("stock_restored", extra={"product_id": product_id, "quantity": quantity})

    @staticmethod
    def restore_items(items) -> None:
        for item in items:
            InventoryService.restore(item.product_id, item.quantity)

    @staticmethod
    def set_stock(product: Product, quantity: int) -> Product:
        product.stock = max(0, int(quantity))
        product.last_stock_update = timezone.now()
        product.save(update_fields=["stock", "last_stock_update", "updated_at"])
        return product
