from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from apps.accounts.models import AccountProfile
from apps.catalog.models import Product, ProductReview
from apps.catalog.services.inventory_service import InventoryService


def make_product(seller, *, sku: str, name: str = "Item", price: str = "100.00", stock: int = 10, **extra) -> Product:
    return Product.objects.create(seller=seller, sku=sku, name=name, price=Decimal(price), stock=stock, **extra)


class InventoryServiceTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.seller = get_user_model().objects.create_user(username="seller", password="x")
        self.product = make_product(self.seller, sku="SKU-1", stock=5)

    def test_reserve_decrements_stock(self):
        InventoryService.reserve(self.product, 3)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 2)
        self.assertIsNotNone(self.product.last_stock_update)

    def test_reserve_clamps_at_zero(self):
        InventoryService.reserve(self.product, 8)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 0)

    def test_restore_is_an_unconditional_increment(self):
        InventoryService.restore(self.product.id, 4)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 9)

    def test_stock_status(self):
        self.assertEqual(self.product.stock_status, Product.STOCK_LOW)
        self.product.stock = 0
        self.assertEqual(self.product.stock_status, Product.STOCK_OUT)
        self.product.stock = 50
        self.assertEqual(self.product.stock_status, Product.STOCK_IN)


class ProductApiTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        User = get_user_model()
        self.client = APIClient()
        self.seller = User.objects.create_user(username="seller", password="x")
        AccountProfile.objects.create(user=self.seller, role=AccountProfile.ROLE_SELLER)
        self.other_seller = User.objects.create_user(username="other", password="x")
        AccountProfile.objects.create(user=self.other_seller, role=AccountProfile.ROLE_SELLER)
        self.customer = User.objects.create_user(username="customer", password="x")

        self.cheap = make_product(self.seller, sku="CHEAP", name="Cotton Tee", price="199.00", category="apparel")
        self.pricey = make_product(self.seller, sku="PRICEY", name="Wool Coat", price="2999.00", category="apparel")
        self.hidden = make_product(self.seller, sku="HIDDEN", name="Old Hat", is_active=False)

    def test_public_listing_excludes_inactive_and_paginates(self):
        response = self.client.get("/api/products/", {"limit": 1, "sort": "price_asc"})
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload["success"])
        self.assertEqual(payload["total"], 2)
        self.assertEqual(payload["pages"], 2)
        self.assertEqual(payload["count"], 1)
        self.assertEqual(payload["products"][0]["sku"], "CHEAP")

    def test_listing_filters_by_price_and_search(self):
        response = self.client.get("/api/products/", {"min_price": "1000", "search": "wool"})
        skus = [row["sku"] for row in response.json()["products"]]
        self.assertEqual(skus, ["PRICEY"])

    def test_inactive_product_detail_is_404(self):
        response = self.client.get(f"/api/products/{self.hidden.id}/")
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.json()["success"])

    def test_customer_cannot_create_products(self):
        self.client.force_authenticate(self.customer)
        response = self.client.post(
            "/api/products/", data={"sku": "NEW", "name": "New", "price": "10.00"}, format="json"
        )
        self.assertEqual(response.status_code, 403)

    def test_seller_creates_product_and_duplicate_sku_is_rejected(self):
        self.client.force_authenticate(self.seller)
        response = self.client.post(
            "/api/products/", data={"sku": "NEW", "name": "New", "price": "10.00", "stock": 3}, format="json"
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["product"]["stock"], 3)

        duplicate = self.client.post(
            "/api/products/", data={"sku": "NEW", "name": "Again", "price": "10.00"}, format="json"
        )
        self.assertEqual(duplicate.status_code, 400)
        self.assertEqual(duplicate.json()["errors"][0]["field"], "sku")

    def test_negative_price_fails_validation(self):
        self.client.force_authenticate(self.seller)
        response = self.client.post(
            "/api/products/", data={"sku": "NEG", "name": "Neg", "price": "-1"}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        payload = response.json()
        self.assertEqual(payload["message"], "Validation failed")
        self.assertEqual(payload["errors"][0]["field"], "price")

    def test_only_owner_can_update(self):
        self.client.force_authenticate(self.other_seller)
        response = self.client.put(f"/api/products/{self.cheap.id}/", data={"price": "1.00"}, format="json")
        self.assertEqual(response.status_code, 403)

        self.client.force_authenticate(self.seller)
        response = self.client.put(f"/api/products/{self.cheap.id}/", data={"price": "149.00"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.cheap.refresh_from_db()
        self.assertEqual(self.cheap.price, Decimal("149.00"))

    def test_delete_is_a_soft_delete(self):
        self.client.force_authenticate(self.seller)
        response = self.client.delete(f"/api/products/{self.cheap.id}/")
        self.assertEqual(response.status_code, 200)
        self.cheap.refresh_from_db()
        self.assertFalse(self.cheap.is_active)


class ProductReviewApiTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        User = get_user_model()
        self.client = APIClient()
        seller = User.objects.create_user(username="seller", password="x")
        self.alice = User.objects.create_user(username="alice", password="x", first_name="Alice", last_name="Iyer")
        self.bob = User.objects.create_user(username="bob", password="x")
        self.product = make_product(seller, sku="TEE", name="Cotton Tee")
        self.hidden = make_product(seller, sku="GONE", is_active=False)

    def review(self, product_id: int, rating=5, comment="Fits well and the fabric is soft."):
        return self.client.post(
            f"/api/products/{product_id}/reviews/", data={"rating": rating, "comment": comment}, format="json"
        )

    def test_requires_authentication(self):
        response = self.review(self.product.id)
        self.assertEqual(response.status_code, 401)

    def test_review_updates_product_rating(self):
        self.client.force_authenticate(self.alice)
        response = self.review(self.product.id, rating=5)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["message"], "Review added successfully")
        self.assertEqual(response.json()["review"]["user_name"], "Alice Iyer")

        self.client.force_authenticate(self.bob)
        self.assertEqual(self.review(self.product.id, rating=2).status_code, 201)

        self.product.refresh_from_db()
        self.assertEqual(self.product.rating_count, 2)
        self.assertEqual(self.product.rating_average, Decimal("3.50"))

    def test_second_review_from_same_user_replaces_first(self):
        self.client.force_authenticate(self.alice)
        self.review(self.product.id, rating=1)
        self.review(self.product.id, rating=4, comment="Changed my mind after a wash.")

        self.assertEqual(ProductReview.objects.filter(product=self.product).count(), 1)
        review = ProductReview.objects.get(product=self.product)
        self.assertEqual(review.rating, 4)
        self.assertEqual(review.comment, "Changed my mind after a wash.")
        self.product.refresh_from_db()
        self.assertEqual(self.product.rating_count, 1)
        self.assertEqual(self.product.rating_average, Decimal("4.00"))

    def test_rating_and_comment_bounds(self):
        self.client.force_authenticate(self.alice)
        response = self.review(self.product.id, rating=6)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["errors"][0]["field"], "rating")

        response = self.review(self.product.id, comment="Too short")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["errors"][0]["field"], "comment")

        response = self.review(self.product.id, comment="x" * 501)
        self.assertEqual(response.status_code, 400)
        self.assertFalse(ProductReview.objects.exists())

    def test_missing_or_inactive_product_is_404(self):
        self.client.force_authenticate(self.alice)
        self.assertEqual(self.review(self.hidden.id).status_code, 404)
        self.assertEqual(self.review(999999).status_code, 404)

    def test_detail_includes_reviews(self):
        ProductReview.objects.create(product=self.product, user=self.bob, rating=3, comment="Decent for the price.")
        payload = self.client.get(f"/api/products/{self.product.id}/").json()
        self.assertEqual(len(payload["reviews"]), 1)
        self.assertEqual(payload["reviews"][0]["rating"], 3)


class ProductMetaApiTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.client = APIClient()
        seller = get_user_model().objects.create_user(username="seller", password="x")
        make_product(seller, sku="A", category="footwear", brand="Stride")
        make_product(seller, sku="B", category="apparel", brand="Loom")
        make_product(seller, sku="C", category="apparel", brand="Stride")
        make_product(seller, sku="D", category="")
        make_product(seller, sku="E", category="archive", brand="Retired", is_active=False)

    def test_categories_are_distinct_sorted_and_active_only(self):
        response = self.client.get("/api/products/meta/categories/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["categories"], ["apparel", "footwear"])

    def test_brands_are_distinct_sorted_and_active_only(self):
        response = self.client.get("/api/products/meta/brands/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["brands"], ["Loom", "Stride"])
