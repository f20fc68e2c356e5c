"""
Access rules for acting on behalf of an optician account.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from django.core.exceptions import ValidationError

from apps.common.types import DomainError, Err, Ok, Result

from .models import Optician

if TYPE_CHECKING:
    from apps.users.models import User


class OpticianAccessService:
    """Who may read or submit for an optician"""

    @staticmethod
    def get(optician_id: uuid.UUID | str) -> Result[Optician, DomainError]:
        try:
            return Ok(Optician.objects.select_related('user').get(pk=optician_id))
        except (Optician.DoesNotExist, ValidationError, ValueError):
            return Err(DomainError.not_found('Optician', optician_id))

    @staticmethod
    def check_can_view(user: User | Any, optician: Optician) -> Result[Optician, DomainError]:
        """Admins see every account; opticians only their own"""
        if not user.is_authenticated:
            return Err(DomainError.unauthorized("Authentication required"))
        if user.is_marketplace_admin or optician.is_owned_by(user):
            return Ok(optician)
        return Err(DomainError.unauthorized("You can only access your own optician account"))

    @staticmethod
    def check_can_submit(user: User | Any, optician: Optician) -> Result[Optician, DomainError]:
        """Orders and redemptions are placed for approved optician accounts only"""
        access = OpticianAccessService.check_can_view(user, optician)
        if access.is_err():
            return access
        if not optician.is_eligible_for_points:
            return Err(DomainError.unauthorized(
                f"Optician account {optician.business_name} is not approved"
            ))
        return Ok(optician)
