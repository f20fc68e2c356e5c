"""
Optician profiles - the marketplace buyers.
Each optician owns one loyalty account and places orders and redemptions.
"""

import uuid
from typing import ClassVar

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class Optician(models.Model):
    """
    Optician shop linked to a marketplace user.
    New sign-ups stay PENDING until an admin approves them.
    """

    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_SUSPENDED = 'suspended'
    STATUS_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        (STATUS_PENDING, _('Pending approval')),
        (STATUS_APPROVED, _('Approved')),
        (STATUS_SUSPENDED, _('Suspended')),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='optician'
    )

    business_name = models.CharField(max_length=200)
    city = models.CharField(max_length=100, blank=True)
    address = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=20, blank=True)

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
        help_text=_("Account approval status")
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'opticians'
        verbose_name = _('Optician')
        verbose_name_plural = _('Opticians')
        ordering: ClassVar[tuple[str, ...]] = ('business_name',)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['status'], name='optician_status_idx'),
            models.Index(fields=['city'], name='optician_city_idx'),
        )

    def __str__(self) -> str:
        return self.business_name

    @property
    def is_approved(self) -> bool:
        return self.status == self.STATUS_APPROVED

    @property
    def is_eligible_for_points(self) -> bool:
        """Only approved optician accounts accrue loyalty points"""
        return self.is_approved and self.user.is_optician

    def is_owned_by(self, user) -> bool:
        return user.is_authenticated and self.user_id == user.pk
