"""
User models for the optical marketplace
Email-based authentication with a marketplace role (admin back office or optician buyer).
"""

from __future__ import annotations

from typing import Any, ClassVar

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models
from django.utils.translation import gettext_lazy as _


class UserManager(BaseUserManager):
    """Custom user manager for email-based authentication"""

    def create_user(self, email: str, password: str | None = None, **extra_fields: Any) -> User:
        """Create and return a regular user with email and password"""
        if not email:
            raise ValueError('The Email field must be set')
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email: str, password: str | None = None, **extra_fields: Any) -> User:
        """Create and return a superuser with email and password"""
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', User.ROLE_ADMIN)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)


class User(AbstractUser):
    """
    Marketplace user.
    Admins run the back office; opticians place orders and redeem points.
    """

    ROLE_ADMIN = 'admin'
    ROLE_OPTICIAN = 'optician'
    ROLE_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        (ROLE_ADMIN, _('Administrator')),
        (ROLE_OPTICIAN, _('Optician')),
    )

    # Basic information
    username = None  # Remove username field, using email instead
    email = models.EmailField(_('email address'), unique=True)
    phone = models.CharField(max_length=20, blank=True)
    whatsapp = models.CharField(
        max_length=20,
        blank=True,
        help_text=_('WhatsApp number used for order notifications')
    )

    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default=ROLE_OPTICIAN,
        help_text=_('Marketplace role; only opticians accrue loyalty points')
    )

    # Audit fields
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS: ClassVar[list[str]] = []

    class Meta:
        db_table = 'users'
        verbose_name = _('User')
        verbose_name_plural = _('Users')
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['role'], name='user_role_idx'),
        )

    def __str__(self) -> str:
        return self.email

    @property
    def is_marketplace_admin(self) -> bool:
        """Back-office operator (role admin or Django superuser)"""
        return self.is_active and (self.is_superuser or self.role == self.ROLE_ADMIN)

    @property
    def is_optician(self) -> bool:
        return self.is_active and self.role == self.ROLE_OPTICIAN
