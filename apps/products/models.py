"""
Product catalog models for the optical marketplace.
Only the fields the ordering and loyalty engine reads or guards live here;
catalog presentation (images, categories, brands) is managed elsewhere.
"""

from __future__ import annotations

import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import ClassVar

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Case, F, Q, When
from django.utils.translation import gettext_lazy as _

from apps.common.constants import MAX_DISCOUNT_PCT


class Product(models.Model):
    """
    Sellable optical product.
    ``stock_qty`` is authoritative and is only written through InventoryLedger.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200)
    reference = models.CharField(
        max_length=100,
        unique=True,
        help_text=_("Supplier reference shown on orders")
    )

    # Pricing in cents for precision
    unit_price_cents = models.BigIntegerField(
        validators=[MinValueValidator(0)],
        help_text=_("Catalog unit price in cents")
    )
    discount_pct = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(0), MaxValueValidator(MAX_DISCOUNT_PCT)],
        help_text=_("Professional discount (remise) in percent")
    )

    # Inventory & loyalty
    stock_qty = models.PositiveIntegerField(
        default=0,
        help_text=_("Available units (authoritative)")
    )
    loyalty_points_reward = models.PositiveIntegerField(
        default=0,
        help_text=_("Points earned per confirmed unit")
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'products'
        verbose_name = _('Product')
        verbose_name_plural = _('Products')
        ordering: ClassVar[tuple[str, ...]] = ('name',)
        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.CheckConstraint(condition=Q(stock_qty__gte=0), name='product_stock_qty_non_negative'),
        ]
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['is_active', 'name'], name='product_active_name_idx'),
        )

    def __str__(self) -> str:
        return f"{self.name} ({self.reference})"

    @property
    def sale_price_cents(self) -> int:
        """Unit price after the professional discount, rounded to the cent"""
        factor = (Decimal(100) - self.discount_pct) / Decimal(100)
        return int((Decimal(self.unit_price_cents) * factor).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


class LoyaltyProductQuerySet(models.QuerySet):
    """Catalog queries that project stock from the linked product"""

    def with_available_stock(self) -> LoyaltyProductQuerySet:
        return self.annotate(
            available_stock=Case(
                When(product__isnull=False, then=F('product__stock_qty')),
                default=F('own_stock_qty'),
                output_field=models.PositiveIntegerField(),
            )
        )

    def redeemable(self) -> LoyaltyProductQuerySet:
        """Active rewards with at least one unit available"""
        return self.filter(is_active=True).with_available_stock().filter(available_stock__gt=0)


class LoyaltyProduct(models.Model):
    """
    Reward in the loyalty catalog.

    When linked to a Product its stock is that product's stock (read
    projection); ``own_stock_qty`` is only consulted for unlinked rewards.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='loyalty_products',
        help_text=_("Catalog product delivered for this reward, if any")
    )

    points_cost = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text=_("Points required per unit")
    )
    is_active = models.BooleanField(default=True)

    own_stock_qty = models.PositiveIntegerField(
        default=0,
        help_text=_("Stock for rewards not linked to a catalog product")
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = LoyaltyProductQuerySet.as_manager()

    class Meta:
        db_table = 'loyalty_products'
        verbose_name = _('Loyalty Product')
        verbose_name_plural = _('Loyalty Products')
        ordering: ClassVar[tuple[str, ...]] = ('points_cost', 'name')
        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.CheckConstraint(condition=Q(points_cost__gt=0), name='loyalty_product_points_cost_positive'),
            models.CheckConstraint(condition=Q(own_stock_qty__gte=0), name='loyalty_product_own_stock_non_negative'),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.points_cost} pts)"
