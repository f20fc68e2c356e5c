"""
Loyalty models: points accounts, the append-only points ledger,
and redemption requests against the loyalty catalog.
"""

from __future__ import annotations

import uuid
from typing import ClassVar

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q, Sum
from django.utils.translation import gettext_lazy as _

# ===============================================================================
# POINTS LEDGER
# ===============================================================================


class LoyaltyAccount(models.Model):
    """
    One points account per optician.
    ``balance`` is only written by PointsLedger, in the same transaction as
    the PointsLedgerEntry that explains the change.
    """

    optician = models.OneToOneField(
        'opticians.Optician',
        on_delete=models.PROTECT,
        related_name='loyalty_account'
    )
    balance = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'loyalty_accounts'
        verbose_name = _('Loyalty Account')
        verbose_name_plural = _('Loyalty Accounts')
        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.CheckConstraint(condition=Q(balance__gte=0), name='loyalty_account_balance_non_negative'),
        ]

    def __str__(self) -> str:
        return f"{self.optician} - {self.balance} points"

    def ledger_total(self) -> int:
        """Balance reconstructed from the ledger history"""
        return self.entries.aggregate(total=Sum('delta'))['total'] or 0


class PointsLedgerEntry(models.Model):
    """Append-only record of a balance change (positive = credit, negative = debit)"""

    account = models.ForeignKey(
        LoyaltyAccount,
        on_delete=models.PROTECT,
        related_name='entries'
    )
    delta = models.IntegerField()
    reason = models.CharField(max_length=64)
    reference_id = models.CharField(
        max_length=64,
        blank=True,
        help_text=_("Order item, redemption or adjustment this entry settles")
    )
    note = models.CharField(max_length=255, blank=True)

    created_by = models.ForeignKey(
        'users.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_points_entries'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'points_ledger'
        verbose_name = _('Points Ledger Entry')
        verbose_name_plural = _('Points Ledger Entries')
        ordering: ClassVar[tuple[str, ...]] = ('-created_at', '-id')
        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.CheckConstraint(condition=~Q(delta=0), name='points_ledger_delta_non_zero'),
        ]
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['account', '-created_at'], name='points_account_recent_idx'),
            models.Index(fields=['reason', 'reference_id'], name='points_reason_ref_idx'),
        )

    def __str__(self) -> str:
        return f"{self.account.optician}: {self.delta:+d} ({self.reason})"


# ===============================================================================
# REDEMPTIONS
# ===============================================================================


class Redemption(models.Model):
    """
    Request to exchange points for loyalty catalog items.
    Points and stock are committed only when an admin approves it.
    """

    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        (STATUS_PENDING, _('Pending')),
        (STATUS_APPROVED, _('Approved')),
        (STATUS_REJECTED, _('Rejected')),
        (STATUS_CANCELLED, _('Cancelled')),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    optician = models.ForeignKey(
        'opticians.Optician',
        on_delete=models.PROTECT,
        related_name='redemptions'
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)

    # Snapshot of the items' point costs at submission
    total_points = models.PositiveIntegerField()

    resolved_at = models.DateTimeField(null=True, blank=True)
    resolved_by = models.ForeignKey(
        'users.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='resolved_redemptions'
    )
    rejection_reason = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'loyalty_redemptions'
        verbose_name = _('Redemption')
        verbose_name_plural = _('Redemptions')
        ordering: ClassVar[tuple[str, ...]] = ('-created_at',)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['optician', '-created_at'], name='redemption_optician_idx'),
            models.Index(fields=['status', '-created_at'], name='redemption_status_idx'),
        )

    def __str__(self) -> str:
        return f"Redemption {self.id} - {self.total_points} pts ({self.status})"

    @property
    def is_pending(self) -> bool:
        return self.status == self.STATUS_PENDING


class RedemptionItem(models.Model):
    """Line of a redemption with its point cost frozen at submission"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    redemption = models.ForeignKey(
        Redemption,
        on_delete=models.PROTECT,
        related_name='items'
    )
    loyalty_product = models.ForeignKey(
        'products.LoyaltyProduct',
        on_delete=models.PROTECT,
        related_name='redemption_items'
    )

    product_name = models.CharField(max_length=200)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    points_cost = models.PositiveIntegerField()
    total_points = models.PositiveIntegerField()

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'loyalty_redemption_items'
        verbose_name = _('Redemption Item')
        verbose_name_plural = _('Redemption Items')
        ordering: ClassVar[tuple[str, ...]] = ('created_at', 'id')
        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name='redemption_item_quantity_positive'),
        ]

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} ({self.total_points} pts)"
