from __future__ import annotations

from apps.accounts.models import AccountProfile


class AccountRoleService:
    @staticmethod
    def role_of(user) -> str:
        if user is None or not getattr(user, "is_authenticated", False):
            return ""
        if getattr(user, "is_superuser", False) or getattr(user, "is_staff", False):
            return AccountProfile.ROLE_ADMIN
        profile = AccountProfile.objects.filter(user_id=user.pk).only("role").first()
        return profile.role if profile else AccountProfile.ROLE_CUSTOMER

    @staticmethod
    def is_admin(user) -> bool:
        return AccountRoleService.role_of(user) == AccountProfile.ROLE_ADMIN

    @staticmethod
    def is_seller_or_admin(user) -> bool:
        return AccountRoleService.role_of(user) in {AccountProfile.ROLE_SELLER, AccountProfile.ROLE_ADMIN}

    @staticmethod
    def phone_of(user) -> str:
        profile = AccountProfile.objects.filter(user_id=user.pk).only("phone").first()
        return (profile.phone or "") if profile else ""
