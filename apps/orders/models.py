"""
Order Store for the optical marketplace
Orders are purchase intent; each line is confirmed or cancelled independently
by the back office, and the order status is derived from its lines.
"""

import uuid
from typing import ClassVar

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

# ===============================================================================
# ORDER MANAGEMENT MODELS
# ===============================================================================


class Order(models.Model):
    """
    Optician order for catalog products.
    Has no stored status: see ``aggregate_status``.
    """

    AGGREGATE_PENDING = 'pending'
    AGGREGATE_FULLY_PROCESSED = 'fully_processed'

    # Use UUID for better security and external references
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    optician = models.ForeignKey(
        'opticians.Optician',
        on_delete=models.PROTECT,
        related_name='orders'
    )
    created_by = models.ForeignKey(
        'users.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_orders'
    )
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'orders'
        verbose_name = _('Order')
        verbose_name_plural = _('Orders')
        ordering: ClassVar[tuple[str, ...]] = ('-created_at',)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['optician', '-created_at'], name='order_optician_recent_idx'),
        )

    def __str__(self) -> str:
        return f"Order {self.id} - {self.optician}"

    def _status_counts(self) -> dict[str, int]:
        counts = {status: 0 for status, _label in OrderItem.STATUS_CHOICES}
        # Uses prefetched items when available
        for item in self.items.all():
            counts[item.status] += 1
        return counts

    @property
    def pending_count(self) -> int:
        return self._status_counts()[OrderItem.STATUS_PENDING]

    @property
    def confirmed_count(self) -> int:
        return self._status_counts()[OrderItem.STATUS_CONFIRMED]

    @property
    def cancelled_count(self) -> int:
        return self._status_counts()[OrderItem.STATUS_CANCELLED]

    @property
    def aggregate_status(self) -> str:
        """FULLY_PROCESSED once every line is terminal"""
        if self.pending_count == 0:
            return self.AGGREGATE_FULLY_PROCESSED
        return self.AGGREGATE_PENDING

    @property
    def total_cents(self) -> int:
        return sum(item.line_total_cents for item in self.items.all())

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items.all())


class OrderItem(models.Model):
    """
    Order line with pricing frozen at submission.
    Moves exactly once from PENDING to CONFIRMED or CANCELLED.
    """

    STATUS_PENDING = 'pending'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        (STATUS_PENDING, _('Pending')),
        (STATUS_CONFIRMED, _('Confirmed')),
        (STATUS_CANCELLED, _('Cancelled')),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        Order,
        on_delete=models.PROTECT,
        related_name='items'
    )
    product = models.ForeignKey(
        'products.Product',
        on_delete=models.PROTECT,
        related_name='order_items'
    )

    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    # Product snapshot at time of order
    product_name = models.CharField(max_length=200)
    product_reference = models.CharField(max_length=100)
    unit_price_cents = models.BigIntegerField(help_text=_("Catalog unit price in cents"))
    discount_pct = models.DecimalField(max_digits=5, decimal_places=2)
    sale_price_cents = models.BigIntegerField(help_text=_("Unit price after discount in cents"))
    line_total_cents = models.BigIntegerField(help_text=_("sale_price_cents x quantity"))

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    resolved_at = models.DateTimeField(null=True, blank=True)
    resolved_by = models.ForeignKey(
        'users.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='resolved_order_items'
    )
    points_awarded = models.PositiveIntegerField(
        default=0,
        help_text=_("Loyalty points credited on confirmation")
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'order_items'
        verbose_name = _('Order Item')
        verbose_name_plural = _('Order Items')
        ordering: ClassVar[tuple[str, ...]] = ('created_at', 'id')
        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name='order_item_quantity_positive'),
        ]
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['status', 'created_at'], name='order_item_status_idx'),
            models.Index(fields=['product', 'status'], name='order_item_product_idx'),
        )

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} ({self.status})"

    @property
    def is_pending(self) -> bool:
        return self.status == self.STATUS_PENDING
