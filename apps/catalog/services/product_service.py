from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from django.db import IntegrityError, transaction
from django.db.models import Avg, Count, Q, QuerySet

from apps.accounts.application.services.roles import AccountRoleService

from ..domain.errors import (
    ProductAccessDeniedError,
    ProductNotFoundError,
    ProductValidationError,
    SkuAlreadyExistsError,
)
from ..models import Product, ProductReview
from .inventory_service import InventoryService

_UPDATABLE_FIELDS = (
    "name",
    "description",
    "brand",
    "category",
    "price",
    "original_price",
    "discount_percentage",
    "low_stock_threshold",
    "is_active",
)

_SORTS = {
    "price_asc": ("price", "-created_at"),
    "price_desc": ("-price", "-created_at"),
    "newest": ("-created_at",),
}


class ProductService:
    @staticmethod
    def _validate_price(price) -> None:
        if price is None or Decimal(price) < 0:
            raise ProductValidationError("Price must be a non-negative number", field="price")

    @staticmethod
    def _validate_stock(stock) -> None:
        if stock is None or int(stock) < 0:
            raise ProductValidationError("Stock must be a non-negative integer", field="stock")

    @staticmethod
    def get_active(product_id: int) -> Product:
        product = Product.objects.select_related("seller").filter(pk=product_id, is_active=True).first()
        if not product:
            raise ProductNotFoundError("Product not found")
        return product

    @staticmethod
    def get_for_management(*, product_id: int, actor) -> Product:
        product = Product.objects.filter(pk=product_id).first()
        if not product:
            raise ProductNotFoundError("Product not found")
        if product.seller_id != actor.pk and not AccountRoleService.is_admin(actor):
            raise ProductAccessDeniedError("Not authorized to manage this product")
        return product

    @staticmethod
    def search(
        *,
        category: str = "",
        brand: str = "",
        min_price=None,
        max_price=None,
        in_stock: bool = False,
        search: str = "",
        sort: str = "",
    ) -> QuerySet[Product]:
        qs = Product.objects.filter(is_active=True)
        if category:
            qs = qs.filter(category=category)
        if brand:
            qs = qs.filter(brand=brand)
        if min_price is not None:
            qs = qs.filter(price__gte=min_price)
        if max_price is not None:
            qs = qs.filter(price__lte=max_price)
        if in_stock:
            qs = qs.filter(stock__gt=0)
        if search:
            qs = qs.filter(Q(name__icontains=search) | Q(description__icontains=search) | Q(brand__icontains=search))
        return qs.order_by(*_SORTS.get(sort, _SORTS["newest"]))

    @staticmethod
    @transaction.atomic
    def create_product(*, seller, sku: str, name: str, price, stock: int = 0, **attrs) -> Product:
        ProductService._validate_price(price)
        ProductService._validate_stock(stock)
        if not sku:
            raise ProductValidationError("SKU is required", field="sku")
        if Product.objects.filter(sku=sku).exists():
            raise SkuAlreadyExistsError("Product with this SKU already exists", field="sku")

        fields = {key: value for key, value in attrs.items() if key in _UPDATABLE_FIELDS and value is not None}
        try:
            product = Product.objects.create(seller=seller, sku=sku, name=name, price=price, stock=stock, **fields)
        except IntegrityError as exc:
            raise SkuAlreadyExistsError("Product with this SKU already exists", field="sku") from exc
        return product

    @staticmethod
    @transaction.atomic
    def update_product(*, product: Product, stock: int | None = None, **attrs) -> Product:
        if "price" in attrs:
            ProductService._validate_price(attrs["price"])
        update_fields = ["updated_at"]
        for key, value in attrs.items():
            if key in _UPDATABLE_FIELDS:
                setattr(product, key, value)
                update_fields.append(key)
        product.save(update_fields=update_fields)
        if stock is not None:
            ProductService._validate_stock(stock)
            InventoryService.set_stock(product, stock)
        return product

    @staticmethod
    def deactivate(*, product: Product) -> Product:
        product.is_active = False
        product.save(update_fields=["is_active", "updated_at"])
        return product

    @staticmethod
    @transaction.atomic
    def add_review(*, product_id: int, user, rating: int, comment: str) -> tuple[ProductReview, bool]:
        """
        Record `user`'s review of an active product and refresh its rating.

        A second review from the same user replaces the first, so each
        customer counts once in the average.
        """
        product = Product.objects.select_for_update().filter(pk=product_id, is_active=True).first()
        if not product:
            raise ProductNotFoundError("Product not found")
        if not 1 <= int(rating) <= 5:
            raise ProductValidationError("Rating must be between 1 and 5", field="rating")

        review, created = ProductReview.objects.update_or_create(
            product=product,
            user=user,
            defaults={"rating": rating, "comment": comment},
        )
        stats = product.reviews.aggregate(average=Avg("rating"), count=Count("id"))
        product.rating_average = Decimal(str(stats["average"] or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        product.rating_count = stats["count"]
        product.save(update_fields=["rating_average", "rating_count", "updated_at"])
        return review, created

    @staticmethod
    def categories() -> list[str]:
        return list(
            Product.objects.filter(is_active=True)
            .exclude(category="")
            .order_by("category")
            .values_list("category", flat=True)
            .distinct()
        )

    @staticmethod
    def brands() -> list[str]:
        return list(
            Product.objects.filter(is_active=True)
            .exclude(brand="")
            .order_by("brand")
            .values_list("brand", flat=True)
            .distinct()
        )
