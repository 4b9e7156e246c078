"""
Bearer-token guard.

Wraps simplejwt's authentication so the 401 message tells an expired token
apart from a malformed one, and refuses deactivated or locked accounts.
"""

from __future__ import annotations

from django.utils import timezone
from rest_framework import exceptions
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import ExpiredTokenError, TokenError
from rest_framework_simplejwt.tokens import AccessToken

from apps.accounts.models import AccountProfile


class TokenExpired(exceptions.AuthenticationFailed):
    default_detail = "Token has expired."
    default_code = "token_expired"


class TokenInvalid(exceptions.AuthenticationFailed):
    default_detail = "Invalid token."
    default_code = "token_invalid"


class StorefrontJWTAuthentication(JWTAuthentication):
    def get_validated_token(self, raw_token):
        try:
            return AccessToken(raw_token)
        except ExpiredTokenError as exc:
            raise TokenExpired() from exc
        except TokenError as exc:
            raise TokenInvalid() from exc

    def get_user(self, validated_token):
        try:
            user = super().get_user(validated_token)
        except exceptions.AuthenticationFailed as exc:
            if exc.get_codes() == "user_inactive":
                raise exceptions.AuthenticationFailed("Account has been deactivated.", code="user_inactive") from exc
            raise TokenInvalid("Token is not valid. User not found.") from exc

        profile = AccountProfile.objects.filter(user_id=user.pk).only("locked_until").first()
        if profile and profile.is_locked(timezone.now()):
            raise exceptions.AuthenticationFailed(
                "Account is temporarily locked due to too many failed login attempts.",
                code="account_locked",
            )
        return user
