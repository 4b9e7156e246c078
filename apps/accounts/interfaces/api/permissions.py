from __future__ import annotations

from rest_framework.permissions import BasePermission

from apps.accounts.application.services.roles import AccountRoleService


class IsAdminRole(BasePermission):
    message = "Access denied. Admin role is required for this resource."

    def has_permission(self, request, view) -> bool:
        return bool(request.user and request.user.is_authenticated and AccountRoleService.is_admin(request.user))


class IsSellerOrAdmin(BasePermission):
    message = "Access denied. Seller or admin role is required for this resource."

    def has_permission(self, request, view) -> bool:
        return bool(
            request.user
            and request.user.is_authenticated
            and AccountRoleService.is_seller_or_admin(request.user)
        )
