from __future__ import annotations

from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.core.exceptions import ImproperlyConfigured
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from apps.accounts.application.services.roles import AccountRoleService
from apps.accounts.interfaces.api.throttling import parse_window_rate
from apps.accounts.models import AccountProfile


class AccessGuardApiTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        cache.clear()
        self.client = APIClient()
        self.user = get_user_model().objects.create_user(
            username="buyer", email="buyer@example.com", password="StrongPass12345!"
        )

    def _bearer(self, token) -> None:
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def test_token_endpoint_issues_access_and_refresh(self):
        response = self.client.post(
            "/api/auth/token/",
            data={"username": "buyer", "password": "StrongPass12345!"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn("access", response.json())
        self.assertIn("refresh", response.json())

    def test_missing_token_is_rejected_with_envelope(self):
        response = self.client.get("/api/orders/")
        self.assertEqual(response.status_code, 401)
        payload = response.json()
        self.assertFalse(payload["success"])
        self.assertIn("message", payload)

    def test_garbage_token_is_reported_as_invalid(self):
        self._bearer("not-a-jwt")
        response = self.client.get("/api/orders/")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Invalid token.")

    def test_expired_token_is_reported_as_expired(self):
        token = AccessToken.for_user(self.user)
        token.set_exp(lifetime=-timedelta(minutes=1))
        self._bearer(str(token))
        response = self.client.get("/api/orders/")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Token has expired.")

    def test_inactive_user_is_rejected(self):
        token = AccessToken.for_user(self.user)
        self.user.is_active = False
        self.user.save(update_fields=["is_active"])
        self._bearer(str(token))
        response = self.client.get("/api/orders/")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Account has been deactivated.")

    def test_locked_account_is_rejected(self):
        AccountProfile.objects.create(user=self.user, locked_until=timezone.now() + timedelta(minutes=30))
        self._bearer(str(AccessToken.for_user(self.user)))
        response = self.client.get("/api/orders/")
        self.assertEqual(response.status_code, 401)
        self.assertIn("locked", response.json()["message"])

    def test_valid_token_reaches_the_view(self):
        self._bearer(str(AccessToken.for_user(self.user)))
        response = self.client.get("/api/orders/")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["success"])


class AccountRoleServiceTests(TestCase):
    def test_staff_counts_as_admin(self):
        staff = get_user_model().objects.create_user(username="staff", password="x", is_staff=True)
        self.assertTrue(AccountRoleService.is_admin(staff))

    def test_profile_role_is_used(self):
        seller = get_user_model().objects.create_user(username="seller", password="x")
        AccountProfile.objects.create(user=seller, role=AccountProfile.ROLE_SELLER)
        self.assertTrue(AccountRoleService.is_seller_or_admin(seller))
        self.assertFalse(AccountRoleService.is_admin(seller))

    def test_user_without_profile_is_customer(self):
        user = get_user_model().objects.create_user(username="plain", password="x")
        self.assertEqual(AccountRoleService.role_of(user), AccountProfile.ROLE_CUSTOMER)
        self.assertEqual(AccountRoleService.phone_of(user), "")


class ThrottleRateParsingTests(TestCase):
    def test_window_rates(self):
        self.assertEqual(parse_window_rate("5/15m"), (5, 900))
        self.assertEqual(parse_window_rate("10/h"), (10, 3600))
        self.assertEqual(parse_window_rate("3/30s"), (3, 30))

    def test_invalid_rate_is_a_configuration_error(self):
        with self.assertRaises(ImproperlyConfigured):
            parse_window_rate("bogus")
