# ===============================================================================
# API PERMISSIONS CLASSES 🔐
# ===============================================================================

from typing import Any

from rest_framework import permissions
from rest_framework.request import Request


class IsMarketplaceAdmin(permissions.BasePermission):
    """Back-office operators only (role admin or superuser)"""

    message = "Administrator access required"

    def has_permission(self, request: Request, view: Any) -> bool:
        user = request.user
        return bool(user and user.is_authenticated and user.is_marketplace_admin)


class IsMarketplaceUser(permissions.BasePermission):
    """
    Authenticated admins and opticians.
    Ownership of the optician account is checked by the services.
    """

    message = "Marketplace account required"

    def has_permission(self, request: Request, view: Any) -> bool:
        user = request.user
        return bool(user and user.is_authenticated and (user.is_marketplace_admin or user.is_optician))
