"""
Test suite for the points ledger
Every balance change is paired with a ledger entry; debits never go negative.
"""

from django.test import TestCase

from apps.common.constants import LEDGER_REASON_MANUAL_ADJUSTMENT, MAX_MANUAL_ADJUSTMENT_POINTS
from apps.common.types import ErrorCode
from apps.loyalty.models import LoyaltyAccount, PointsLedgerEntry
from apps.loyalty.services import PointsLedger
from tests.factories import create_admin, create_optician, fund_account


class PointsLedgerTestCase(TestCase):
    """Credits and conditional debits"""

    def setUp(self):
        self.optician = create_optician()

    def test_balance_of_optician_without_account_is_zero(self):
        self.assertEqual(PointsLedger.balance_for(self.optician), 0)
        self.assertEqual(PointsLedger.ledger_balance(self.optician), 0)

    def test_credit_opens_account_and_records_entry(self):
        result = PointsLedger.credit(self.optician, 30, 'order_item_confirmed', reference_id='item-1')

        self.assertEqual(result.unwrap(), 30)
        entry = PointsLedgerEntry.objects.get(account__optician=self.optician)
        self.assertEqual(entry.delta, 30)
        self.assertEqual(entry.reference_id, 'item-1')

    def test_credit_rejects_non_positive_amount(self):
        self.assertEqual(
            PointsLedger.credit(self.optician, 0, 'order_item_confirmed').unwrap_err().code,
            ErrorCode.VALIDATION_ERROR,
        )

    def test_debit_within_balance(self):
        fund_account(self.optician, 100)

        self.assertEqual(PointsLedger.try_debit(self.optician, 60, 'redemption_approved').unwrap(), 40)
        self.assertEqual(PointsLedger.ledger_balance(self.optician), 40)

    def test_refused_debit_writes_no_entry(self):
        fund_account(self.optician, 50)

        result = PointsLedger.try_debit(self.optician, 80, 'redemption_approved')

        error = result.unwrap_err()
        self.assertEqual(error.code, ErrorCode.INSUFFICIENT_POINTS)
        self.assertEqual(error.details['balance'], 50)
        self.assertEqual(error.details['points_needed'], 30)
        self.assertEqual(PointsLedgerEntry.objects.filter(delta__lt=0).count(), 0)
        self.assertEqual(PointsLedger.balance_for(self.optician), 50)

    def test_balance_always_equals_ledger_sum(self):
        fund_account(self.optician, 100)
        PointsLedger.try_debit(self.optician, 30, 'redemption_approved')
        PointsLedger.try_debit(self.optician, 500, 'redemption_approved')
        PointsLedger.credit(self.optician, 7, 'order_item_confirmed')

        account = LoyaltyAccount.objects.get(optician=self.optician)
        self.assertEqual(account.balance, 77)
        self.assertEqual(account.ledger_total(), 77)


class ManualAdjustmentTestCase(TestCase):
    """Back-office corrections go through the same ledger"""

    def setUp(self):
        self.admin = create_admin()
        self.optician = create_optician()
        fund_account(self.optician, 40)

    def test_positive_adjustment(self):
        result = PointsLedger.adjust(self.optician, 25, 'Goodwill gesture', self.admin)

        self.assertEqual(result.unwrap(), 65)
        entry = PointsLedgerEntry.objects.filter(reason=LEDGER_REASON_MANUAL_ADJUSTMENT).get()
        self.assertEqual(entry.delta, 25)
        self.assertEqual(entry.note, 'Goodwill gesture')
        self.assertEqual(entry.created_by, self.admin)

    def test_negative_adjustment(self):
        self.assertEqual(PointsLedger.adjust(self.optician, -40, 'Duplicate credit', self.admin).unwrap(), 0)

    def test_negative_adjustment_below_zero_is_refused(self):
        result = PointsLedger.adjust(self.optician, -41, 'Too much', self.admin)

        self.assertEqual(result.unwrap_err().code, ErrorCode.INSUFFICIENT_POINTS)
        self.assertEqual(PointsLedger.balance_for(self.optician), 40)

    def test_invalid_adjustments(self):
        cases = [
            (0, 'Nothing'),
            (MAX_MANUAL_ADJUSTMENT_POINTS + 1, 'Too large'),
            (10, '   '),
        ]
        for points, reason in cases:
            with self.subTest(points=points, reason=reason):
                result = PointsLedger.adjust(self.optician, points, reason, self.admin)
                self.assertEqual(result.unwrap_err().code, ErrorCode.VALIDATION_ERROR)

    def test_only_admins_adjust(self):
        result = PointsLedger.adjust(self.optician, 10, 'Self service', self.optician.user)

        self.assertEqual(result.unwrap_err().code, ErrorCode.UNAUTHORIZED)
        self.assertEqual(PointsLedger.balance_for(self.optician), 40)


class ReconciliationTestCase(TestCase):
    """Drift between the cached balance and the ledger is detected and repaired"""

    def setUp(self):
        self.optician = create_optician()
        fund_account(self.optician, 100)

    def _drift(self, balance: int) -> LoyaltyAccount:
        LoyaltyAccount.objects.filter(optician=self.optician).update(balance=balance)
        return LoyaltyAccount.objects.get(optician=self.optician)

    def test_no_discrepancies_when_in_sync(self):
        self.assertEqual(PointsLedger.find_discrepancies(), [])

    def test_discrepancy_is_reported(self):
        account = self._drift(90)

        discrepancies = PointsLedger.find_discrepancies()

        self.assertEqual(len(discrepancies), 1)
        self.assertEqual(discrepancies[0]['account_id'], account.pk)
        self.assertEqual(discrepancies[0]['balance'], 90)
        self.assertEqual(discrepancies[0]['ledger_total'], 100)

    def test_recompute_restores_ledger_total(self):
        account = self._drift(5)

        self.assertEqual(PointsLedger.recompute_balance(account).unwrap(), 100)
        self.assertEqual(PointsLedger.balance_for(self.optician), 100)
