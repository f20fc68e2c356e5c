"""
Redemption Store and Coordinator.
Opticians exchange loyalty points for catalog rewards; stock and points are
committed together, for every item of the redemption, when an admin approves.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypedDict

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from apps.common.constants import (
    LEDGER_REASON_REDEMPTION_APPROVED,
    MAX_ITEMS_PER_REDEMPTION,
    MAX_QUANTITY_PER_REDEMPTION_LINE,
)
from apps.common.decorators import atomic_with_retry
from apps.common.types import ConflictError, DomainError, Err, Ok, Result
from apps.common.validators import log_security_event, validate_line_items
from apps.opticians.models import Optician
from apps.opticians.services import OpticianAccessService
from apps.products.models import LoyaltyProduct
from apps.products.services import InventoryLedger

from .models import Redemption, RedemptionItem
from .services import PointsLedger

if TYPE_CHECKING:
    from apps.users.models import User

logger = logging.getLogger(__name__)


class BalanceCheck(TypedDict):
    balance: int
    sufficient: bool
    points_needed: int


@dataclass
class RedemptionSubmitData:
    """Parameter object for redemption submission"""
    optician: Optician
    items: list[dict[str, Any]]  # [{'loyalty_product_id': ..., 'quantity': ...}]
    submitted_by: User


# ===============================================================================
# REDEMPTION COORDINATOR
# ===============================================================================


class RedemptionService:
    """State machine PENDING -> {APPROVED, REJECTED, CANCELLED}"""

    @staticmethod
    @transaction.atomic
    def submit(data: RedemptionSubmitData) -> Result[Redemption, DomainError]:
        """
        Persist a PENDING redemption with point costs frozen at submission.
        The redemption is stored even when the balance is short: nothing is
        reserved, approval re-checks against the balance at that moment.
        See ``balance_check`` for the advisory figures.
        """
        access = OpticianAccessService.check_can_submit(data.submitted_by, data.optician)
        if access.is_err():
            return access

        lines_result = validate_line_items(
            data.items, 'loyalty_product_id', MAX_ITEMS_PER_REDEMPTION, MAX_QUANTITY_PER_REDEMPTION_LINE
        )
        if lines_result.is_err():
            return lines_result
        lines = lines_result.unwrap()

        rewards = LoyaltyProduct.objects.in_bulk([line_id for line_id, _ in lines])
        total_points = 0
        for index, (reward_id, quantity) in enumerate(lines):
            reward = rewards.get(reward_id)
            if reward is None:
                return Err(DomainError.validation(
                    f"Unknown loyalty product {reward_id}", index=index, loyalty_product_id=str(reward_id)
                ))
            if not reward.is_active:
                return Err(DomainError.validation(
                    f"{reward.name} is no longer available", index=index, loyalty_product_id=str(reward_id)
                ))
            total_points += reward.points_cost * quantity

        redemption = Redemption.objects.create(optician=data.optician, total_points=total_points)
        RedemptionItem.objects.bulk_create([
            RedemptionItem(
                redemption=redemption,
                loyalty_product=rewards[reward_id],
                product_name=rewards[reward_id].name,
                quantity=quantity,
                points_cost=rewards[reward_id].points_cost,
                total_points=rewards[reward_id].points_cost * quantity,
            )
            for reward_id, quantity in lines
        ])

        logger.info(
            f"🎁 [Redemption] {redemption.id} submitted by {data.optician}: {total_points} pts, {len(lines)} items"
        )
        return Ok(redemption)

    @staticmethod
    def balance_check(redemption: Redemption) -> BalanceCheck:
        """Non-binding comparison of the current balance with the redemption total"""
        balance = PointsLedger.balance_for(redemption.optician)
        return {
            'balance': balance,
            'sufficient': balance >= redemption.total_points,
            'points_needed': max(redemption.total_points - balance, 0),
        }

    @staticmethod
    @atomic_with_retry('approve_redemption')
    def approve(redemption_id: uuid.UUID, acted_by: User) -> Result[Redemption, DomainError]:
        """
        Decrement every item's stock and debit the total in one transaction.
        Any refused guard rolls the whole approval back and the redemption
        stays PENDING.
        """
        if not acted_by.is_marketplace_admin:
            return Err(DomainError.unauthorized("Only administrators can approve redemptions"))

        locked = RedemptionService._lock_pending(redemption_id)
        if locked.is_err():
            return locked
        redemption = locked.unwrap()

        # Stable lock order across concurrent approvals touching the same rows
        items = sorted(
            redemption.items.select_related('loyalty_product'),
            key=lambda item: str(item.loyalty_product.product_id or item.loyalty_product_id),
        )
        for item in items:
            stock_result = InventoryLedger.try_decrement_reward(item.loyalty_product, item.quantity)
            if stock_result.is_err():
                transaction.set_rollback(True)
                logger.info(f"🎁 [Redemption] Approval of {redemption.id} refused: {stock_result.unwrap_err().message}")
                return Err(stock_result.unwrap_err())

        debit_result = PointsLedger.try_debit(
            redemption.optician,
            redemption.total_points,
            LEDGER_REASON_REDEMPTION_APPROVED,
            reference_id=str(redemption.id),
            created_by=acted_by,
        )
        if debit_result.is_err():
            transaction.set_rollback(True)
            logger.info(f"🎁 [Redemption] Approval of {redemption.id} refused: {debit_result.unwrap_err().message}")
            return Err(debit_result.unwrap_err())

        RedemptionService._transition(redemption, Redemption.STATUS_APPROVED, acted_by)

        log_security_event('redemption_approved', {
            'redemption_id': str(redemption.id),
            'optician_id': str(redemption.optician_id),
            'total_points': redemption.total_points,
            'balance': debit_result.unwrap(),
            'user_id': str(acted_by.pk),
        })
        return Ok(redemption)

    @staticmethod
    @atomic_with_retry('reject_redemption')
    def reject(redemption_id: uuid.UUID, acted_by: User, reason: str = '') -> Result[Redemption, DomainError]:
        """Admin refusal; no stock or points move"""
        if not acted_by.is_marketplace_admin:
            return Err(DomainError.unauthorized("Only administrators can reject redemptions"))

        locked = RedemptionService._lock_pending(redemption_id)
        if locked.is_err():
            return locked
        redemption = locked.unwrap()

        RedemptionService._transition(redemption, Redemption.STATUS_REJECTED, acted_by, reason=reason)
        log_security_event('redemption_rejected', {
            'redemption_id': str(redemption.id),
            'reason': reason,
            'user_id': str(acted_by.pk),
        })
        return Ok(redemption)

    @staticmethod
    @atomic_with_retry('cancel_redemption')
    def cancel(redemption_id: uuid.UUID, acted_by: User) -> Result[Redemption, DomainError]:
        """Withdrawal by the owning optician (or an admin) while still pending"""
        locked = RedemptionService._lock_pending(redemption_id, acted_by=acted_by)
        if locked.is_err():
            return locked
        redemption = locked.unwrap()

        RedemptionService._transition(redemption, Redemption.STATUS_CANCELLED, acted_by)
        logger.info(f"🎁 [Redemption] {redemption.id} cancelled by {acted_by}")
        return Ok(redemption)

    # ===============================================================================
    # INTERNALS
    # ===============================================================================

    @staticmethod
    def _lock_pending(redemption_id: uuid.UUID, acted_by: User | None = None) -> Result[Redemption, DomainError]:
        """Lock the row, then check ownership (when acting as owner) and the PENDING guard"""
        redemption = (
            Redemption.objects.select_for_update()
            .filter(pk=redemption_id)
            .first()
        )
        if redemption is None:
            return Err(DomainError.not_found('Redemption', redemption_id))
        if acted_by is not None:
            access = OpticianAccessService.check_can_view(acted_by, redemption.optician)
            if access.is_err():
                return Err(access.unwrap_err())
        if not redemption.is_pending:
            return Err(DomainError.already_resolved('Redemption', redemption.id, redemption.status))
        return Ok(redemption)

    @staticmethod
    def _transition(redemption: Redemption, status: str, acted_by: User, reason: str = '') -> None:
        now = timezone.now()
        updated = Redemption.objects.filter(pk=redemption.pk, status=Redemption.STATUS_PENDING).update(
            status=status,
            resolved_at=now,
            resolved_by=acted_by,
            rejection_reason=reason[:255],
            updated_at=now,
        )
        if not updated:
            # Lost the race on a backend without row locks; retry re-reads the status
            raise ConflictError(f"Redemption {redemption.pk} changed while being resolved")

        redemption.status = status
        redemption.resolved_at = now
        redemption.resolved_by = acted_by
        redemption.rejection_reason = reason[:255]


# ===============================================================================
# REDEMPTION QUERIES
# ===============================================================================


class RedemptionQueryService:
    """Read side of the Redemption Store"""

    @staticmethod
    def _base() -> QuerySet[Redemption]:
        return Redemption.objects.select_related('optician', 'resolved_by').prefetch_related('items')

    @staticmethod
    def get(redemption_id: uuid.UUID | str) -> Result[Redemption, DomainError]:
        try:
            return Ok(RedemptionQueryService._base().get(pk=redemption_id))
        except (Redemption.DoesNotExist, ValidationError, ValueError):
            return Err(DomainError.not_found('Redemption', redemption_id))

    @staticmethod
    def all() -> QuerySet[Redemption]:
        return RedemptionQueryService._base()

    @staticmethod
    def pending() -> QuerySet[Redemption]:
        return RedemptionQueryService._base().filter(status=Redemption.STATUS_PENDING).order_by('created_at')

    @staticmethod
    def for_optician(optician: Optician) -> QuerySet[Redemption]:
        return RedemptionQueryService._base().filter(optician=optician)
