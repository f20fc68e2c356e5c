"""
Points Ledger for the optical marketplace loyalty program.
Sole write path for LoyaltyAccount.balance; every change is paired with
a PointsLedgerEntry in the same transaction.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypedDict

from django.db import transaction
from django.db.models import F, QuerySet, Sum
from django.utils import timezone

from apps.common.constants import LEDGER_REASON_MANUAL_ADJUSTMENT, MAX_MANUAL_ADJUSTMENT_POINTS
from apps.common.decorators import atomic_with_retry
from apps.common.types import DomainError, Err, Ok, Result
from apps.common.validators import log_security_event
from apps.opticians.models import Optician

from .models import LoyaltyAccount, PointsLedgerEntry

if TYPE_CHECKING:
    from apps.users.models import User

logger = logging.getLogger(__name__)


class LedgerDiscrepancy(TypedDict):
    """Account whose cached balance differs from its ledger history"""

    account_id: int
    optician: str
    balance: int
    ledger_total: int


# ===============================================================================
# POINTS LEDGER
# ===============================================================================


class PointsLedger:
    """
    Atomic credits and conditional debits of loyalty points.

    ``credit`` and ``try_debit`` expect to run inside the caller's transaction
    (order confirmation, redemption approval) so the balance change commits or
    rolls back together with the state change it settles.
    """

    @staticmethod
    def get_or_create_account(optician: Optician) -> LoyaltyAccount:
        account, created = LoyaltyAccount.objects.get_or_create(optician=optician)
        if created:
            logger.info(f"⭐ [Points] Opened loyalty account for {optician}")
        return account

    @staticmethod
    def balance_for(optician: Optician) -> int:
        balance = LoyaltyAccount.objects.filter(optician=optician).values_list('balance', flat=True).first()
        return balance or 0

    @staticmethod
    def ledger_balance(optician: Optician) -> int:
        """Balance reconstructed from the entries rather than the cached column"""
        total = PointsLedgerEntry.objects.filter(account__optician=optician).aggregate(total=Sum('delta'))['total']
        return total or 0

    @staticmethod
    def credit(
        optician: Optician,
        amount: int,
        reason: str,
        reference_id: str = '',
        created_by: User | None = None,
        note: str = '',
    ) -> Result[int, DomainError]:
        """Add points; returns the new balance"""
        if amount <= 0:
            return Err(DomainError.validation("Credit amount must be greater than zero", amount=amount))

        account = PointsLedger.get_or_create_account(optician)
        LoyaltyAccount.objects.filter(pk=account.pk).update(
            balance=F('balance') + amount,
            updated_at=timezone.now(),
        )
        PointsLedgerEntry.objects.create(
            account=account,
            delta=amount,
            reason=reason,
            reference_id=str(reference_id),
            created_by=created_by,
            note=note,
        )

        balance = LoyaltyAccount.objects.filter(pk=account.pk).values_list('balance', flat=True).get()
        logger.info(f"⭐ [Points] Credited {amount} to {optician} ({reason}), balance {balance}")
        return Ok(balance)

    @staticmethod
    def try_debit(
        optician: Optician,
        amount: int,
        reason: str,
        reference_id: str = '',
        created_by: User | None = None,
        note: str = '',
    ) -> Result[int, DomainError]:
        """Remove points only if the balance covers them; returns the new balance"""
        if amount <= 0:
            return Err(DomainError.validation("Debit amount must be greater than zero", amount=amount))

        account = PointsLedger.get_or_create_account(optician)
        updated = LoyaltyAccount.objects.filter(pk=account.pk, balance__gte=amount).update(
            balance=F('balance') - amount,
            updated_at=timezone.now(),
        )
        balance = LoyaltyAccount.objects.filter(pk=account.pk).values_list('balance', flat=True).get()

        if not updated:
            logger.info(f"⭐ [Points] Refused debit of {amount} for {optician}: balance {balance}")
            return Err(DomainError.insufficient_points(amount, balance, optician_id=str(optician.pk)))

        PointsLedgerEntry.objects.create(
            account=account,
            delta=-amount,
            reason=reason,
            reference_id=str(reference_id),
            created_by=created_by,
            note=note,
        )
        logger.info(f"⭐ [Points] Debited {amount} from {optician} ({reason}), balance {balance}")
        return Ok(balance)

    @staticmethod
    @atomic_with_retry('adjust_points')
    def adjust(
        optician: Optician,
        points: int,
        reason: str,
        performed_by: User,
    ) -> Result[int, DomainError]:
        """
        Manual back-office correction (positive or negative).
        Refused when it would take the balance below zero.
        """
        if not performed_by.is_marketplace_admin:
            return Err(DomainError.unauthorized("Only administrators can adjust points"))
        if isinstance(points, bool) or not isinstance(points, int) or points == 0:
            return Err(DomainError.validation("Adjustment must be a non-zero integer", points=points))
        if abs(points) > MAX_MANUAL_ADJUSTMENT_POINTS:
            return Err(DomainError.validation(
                f"Adjustment cannot exceed {MAX_MANUAL_ADJUSTMENT_POINTS} points", points=points
            ))
        if not reason or not reason.strip():
            return Err(DomainError.validation("A reason is required for manual adjustments"))

        reference_id = f"adj-{timezone.now():%Y%m%d%H%M%S}"
        if points > 0:
            result = PointsLedger.credit(
                optician, points, LEDGER_REASON_MANUAL_ADJUSTMENT,
                reference_id=reference_id, created_by=performed_by, note=reason.strip()[:255],
            )
        else:
            result = PointsLedger.try_debit(
                optician, -points, LEDGER_REASON_MANUAL_ADJUSTMENT,
                reference_id=reference_id, created_by=performed_by, note=reason.strip()[:255],
            )

        if result.is_err():
            transaction.set_rollback(True)
            return result

        log_security_event('points_adjusted', {
            'optician_id': str(optician.pk),
            'points': points,
            'reason': reason,
            'balance': result.unwrap(),
            'user_id': str(performed_by.pk),
        })
        return result

    # ===============================================================================
    # RECONCILIATION
    # ===============================================================================

    @staticmethod
    def find_discrepancies() -> list[LedgerDiscrepancy]:
        """Accounts whose balance does not equal the sum of their ledger entries"""
        discrepancies: list[LedgerDiscrepancy] = []
        for account in LoyaltyAccount.objects.select_related('optician').order_by('pk'):
            ledger_total = account.ledger_total()
            if ledger_total != account.balance:
                discrepancies.append({
                    'account_id': account.pk,
                    'optician': str(account.optician),
                    'balance': account.balance,
                    'ledger_total': ledger_total,
                })
        return discrepancies

    @staticmethod
    @transaction.atomic
    def recompute_balance(account: LoyaltyAccount) -> Result[int, DomainError]:
        """Reset the cached balance to the ledger sum"""
        locked = LoyaltyAccount.objects.select_for_update().get(pk=account.pk)
        ledger_total = locked.ledger_total()
        if ledger_total < 0:
            return Err(DomainError.validation(
                "Ledger history sums to a negative balance", account_id=locked.pk, ledger_total=ledger_total
            ))

        if locked.balance != ledger_total:
            log_security_event('points_balance_recomputed', {
                'account_id': locked.pk,
                'previous_balance': locked.balance,
                'ledger_total': ledger_total,
            })
            locked.balance = ledger_total
            locked.save(update_fields=['balance', 'updated_at'])
        return Ok(ledger_total)

    @staticmethod
    def history_queryset(optician: Optician) -> QuerySet[PointsLedgerEntry]:
        """Most recent ledger entries first"""
        return PointsLedgerEntry.objects.filter(account__optician=optician).select_related('created_by')
