"""
Test suite for loyalty redemptions
Approval settles every item's stock and the points total atomically.
"""

import uuid

from django.test import TestCase

from apps.common.constants import LEDGER_REASON_REDEMPTION_APPROVED
from apps.common.types import ErrorCode
from apps.loyalty.models import PointsLedgerEntry, Redemption
from apps.loyalty.redemption_service import RedemptionQueryService, RedemptionService, RedemptionSubmitData
from apps.loyalty.services import PointsLedger
from apps.opticians.models import Optician
from apps.products.models import LoyaltyProduct
from tests.factories import (
    create_admin,
    create_loyalty_product,
    create_optician,
    create_product,
    create_redemption,
    fund_account,
)


class RedemptionSubmitTestCase(TestCase):
    """Submission freezes costs and checks the balance without reserving it"""

    def setUp(self):
        self.optician = create_optician()
        self.reward = create_loyalty_product(points_cost=40, own_stock_qty=10)
        fund_account(self.optician, 100)

    def _submit(self, items, submitted_by=None):
        return RedemptionService.submit(RedemptionSubmitData(
            optician=self.optician,
            items=items,
            submitted_by=submitted_by or self.optician.user,
        ))

    def test_submit_creates_pending_redemption(self):
        result = self._submit([{'loyalty_product_id': self.reward.pk, 'quantity': 2}])

        redemption = result.unwrap()
        self.assertEqual(redemption.status, Redemption.STATUS_PENDING)
        self.assertEqual(redemption.total_points, 80)
        item = redemption.items.get()
        self.assertEqual(item.points_cost, 40)
        self.assertEqual(item.product_name, self.reward.name)
        # Nothing moves until approval
        self.assertEqual(PointsLedger.balance_for(self.optician), 100)

    def test_submit_over_balance_is_kept_pending(self):
        """Balance 100 against 60 + 50: stored at submission, refused at approval"""
        second_reward = create_loyalty_product(name='Lens Cloth', points_cost=50, own_stock_qty=10)
        LoyaltyProduct.objects.filter(pk=self.reward.pk).update(points_cost=60)

        result = self._submit([
            {'loyalty_product_id': self.reward.pk, 'quantity': 1},
            {'loyalty_product_id': second_reward.pk, 'quantity': 1},
        ])

        redemption = result.unwrap()
        self.assertEqual(redemption.status, Redemption.STATUS_PENDING)
        self.assertEqual(redemption.total_points, 110)
        check = RedemptionService.balance_check(redemption)
        self.assertFalse(check['sufficient'])
        self.assertEqual(check['points_needed'], 10)

        approval = RedemptionService.approve(redemption.pk, create_admin())

        self.assertEqual(approval.unwrap_err().code, ErrorCode.INSUFFICIENT_POINTS)
        redemption.refresh_from_db()
        self.assertEqual(redemption.status, Redemption.STATUS_PENDING)
        self.assertEqual(PointsLedger.balance_for(self.optician), 100)
        self.assertEqual(LoyaltyProduct.objects.get(pk=second_reward.pk).own_stock_qty, 10)

    def test_submit_unknown_reward(self):
        result = self._submit([{'loyalty_product_id': uuid.uuid4(), 'quantity': 1}])

        self.assertEqual(result.unwrap_err().code, ErrorCode.VALIDATION_ERROR)
        self.assertFalse(Redemption.objects.exists())

    def test_submit_inactive_reward(self):
        LoyaltyProduct.objects.filter(pk=self.reward.pk).update(is_active=False)

        result = self._submit([{'loyalty_product_id': self.reward.pk, 'quantity': 1}])

        self.assertEqual(result.unwrap_err().code, ErrorCode.VALIDATION_ERROR)

    def test_submit_for_another_optician_is_refused(self):
        stranger = create_optician(business_name='Other Shop')

        result = self._submit([{'loyalty_product_id': self.reward.pk, 'quantity': 1}], submitted_by=stranger.user)

        self.assertEqual(result.unwrap_err().code, ErrorCode.UNAUTHORIZED)

    def test_submit_by_unapproved_optician_is_refused(self):
        Optician.objects.filter(pk=self.optician.pk).update(status=Optician.STATUS_PENDING)
        self.optician.refresh_from_db()

        result = self._submit([{'loyalty_product_id': self.reward.pk, 'quantity': 1}])

        self.assertEqual(result.unwrap_err().code, ErrorCode.UNAUTHORIZED)

    def test_admin_may_submit_on_behalf_of_optician(self):
        result = self._submit([{'loyalty_product_id': self.reward.pk, 'quantity': 1}], submitted_by=create_admin())
        self.assertTrue(result.is_ok())


class RedemptionApprovalTestCase(TestCase):
    """Approval is all-or-nothing across items, stock and points"""

    def setUp(self):
        self.admin = create_admin()
        self.optician = create_optician()
        self.product = create_product(stock_qty=5)
        self.linked_reward = create_loyalty_product(name='Frame Case', points_cost=60, product=self.product)
        self.own_reward = create_loyalty_product(name='Lens Cloth', points_cost=50, own_stock_qty=5)

    def test_approve_debits_points_and_stock(self):
        fund_account(self.optician, 200)
        redemption = create_redemption(self.optician, [(self.linked_reward, 1), (self.own_reward, 2)])

        result = RedemptionService.approve(redemption.pk, self.admin)

        self.assertEqual(result.unwrap().status, Redemption.STATUS_APPROVED)
        self.assertEqual(PointsLedger.balance_for(self.optician), 40)
        self.product.refresh_from_db()
        self.own_reward.refresh_from_db()
        self.assertEqual(self.product.stock_qty, 4)
        self.assertEqual(self.own_reward.own_stock_qty, 3)
        entry = PointsLedgerEntry.objects.get(reason=LEDGER_REASON_REDEMPTION_APPROVED)
        self.assertEqual(entry.delta, -160)
        self.assertEqual(entry.reference_id, str(redemption.pk))

    def test_multi_item_approval_is_atomic(self):
        """Balance 100 against 60 + 50: nothing is debited, no stock moves"""
        fund_account(self.optician, 100)
        redemption = create_redemption(self.optician, [(self.linked_reward, 1), (self.own_reward, 1)])

        result = RedemptionService.approve(redemption.pk, self.admin)

        error = result.unwrap_err()
        self.assertEqual(error.code, ErrorCode.INSUFFICIENT_POINTS)
        self.assertEqual(error.details['points_needed'], 10)
        redemption.refresh_from_db()
        self.assertEqual(redemption.status, Redemption.STATUS_PENDING)
        self.assertEqual(PointsLedger.balance_for(self.optician), 100)
        self.product.refresh_from_db()
        self.own_reward.refresh_from_db()
        self.assertEqual(self.product.stock_qty, 5)
        self.assertEqual(self.own_reward.own_stock_qty, 5)

    def test_insufficient_stock_on_any_item_rolls_back_all(self):
        fund_account(self.optician, 1000)
        redemption = create_redemption(self.optician, [(self.linked_reward, 1), (self.own_reward, 6)])

        result = RedemptionService.approve(redemption.pk, self.admin)

        self.assertEqual(result.unwrap_err().code, ErrorCode.INSUFFICIENT_STOCK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_qty, 5)
        self.assertEqual(PointsLedger.balance_for(self.optician), 1000)

    def test_sequential_approvals_exhaust_balance(self):
        """Balance 100, redemptions of 80 and 50: only the first is approved"""
        fund_account(self.optician, 100)
        reward = create_loyalty_product(name='Voucher', points_cost=10, own_stock_qty=100)
        first = create_redemption(self.optician, [(reward, 8)])
        second = create_redemption(self.optician, [(reward, 5)])

        self.assertTrue(RedemptionService.approve(first.pk, self.admin).is_ok())
        result = RedemptionService.approve(second.pk, self.admin)

        self.assertEqual(result.unwrap_err().code, ErrorCode.INSUFFICIENT_POINTS)
        self.assertEqual(PointsLedger.balance_for(self.optician), 20)
        second.refresh_from_db()
        self.assertEqual(second.status, Redemption.STATUS_PENDING)

    def test_second_approval_is_already_resolved(self):
        fund_account(self.optician, 200)
        redemption = create_redemption(self.optician, [(self.linked_reward, 1)])
        RedemptionService.approve(redemption.pk, self.admin)

        result = RedemptionService.approve(redemption.pk, self.admin)

        self.assertEqual(result.unwrap_err().code, ErrorCode.ALREADY_RESOLVED)
        self.assertEqual(PointsLedger.balance_for(self.optician), 140)

    def test_only_admins_approve(self):
        fund_account(self.optician, 200)
        redemption = create_redemption(self.optician, [(self.linked_reward, 1)])

        result = RedemptionService.approve(redemption.pk, self.optician.user)

        self.assertEqual(result.unwrap_err().code, ErrorCode.UNAUTHORIZED)

    def test_unknown_redemption(self):
        self.assertEqual(RedemptionService.approve(uuid.uuid4(), self.admin).unwrap_err().code, ErrorCode.NOT_FOUND)


class RedemptionRejectCancelTestCase(TestCase):
    """Terminal refusals move neither stock nor points"""

    def setUp(self):
        self.admin = create_admin()
        self.optician = create_optician()
        fund_account(self.optician, 100)
        self.reward = create_loyalty_product(points_cost=30, own_stock_qty=5)
        self.redemption = create_redemption(self.optician, [(self.reward, 1)])

    def test_reject_records_reason(self):
        result = RedemptionService.reject(self.redemption.pk, self.admin, 'Out of season')

        redemption = result.unwrap()
        self.assertEqual(redemption.status, Redemption.STATUS_REJECTED)
        self.assertEqual(redemption.rejection_reason, 'Out of season')
        self.assertEqual(redemption.resolved_by, self.admin)
        self.assertEqual(PointsLedger.balance_for(self.optician), 100)

    def test_owner_can_cancel(self):
        result = RedemptionService.cancel(self.redemption.pk, self.optician.user)
        self.assertEqual(result.unwrap().status, Redemption.STATUS_CANCELLED)

    def test_other_optician_cannot_cancel(self):
        stranger = create_optician(business_name='Other Shop')

        result = RedemptionService.cancel(self.redemption.pk, stranger.user)

        self.assertEqual(result.unwrap_err().code, ErrorCode.UNAUTHORIZED)
        self.redemption.refresh_from_db()
        self.assertEqual(self.redemption.status, Redemption.STATUS_PENDING)

    def test_cannot_approve_after_cancel(self):
        RedemptionService.cancel(self.redemption.pk, self.optician.user)

        result = RedemptionService.approve(self.redemption.pk, self.admin)

        self.assertEqual(result.unwrap_err().code, ErrorCode.ALREADY_RESOLVED)
        self.reward.refresh_from_db()
        self.assertEqual(self.reward.own_stock_qty, 5)

    def test_optician_cannot_reject(self):
        result = RedemptionService.reject(self.redemption.pk, self.optician.user)
        self.assertEqual(result.unwrap_err().code, ErrorCode.UNAUTHORIZED)


class RedemptionQueryServiceTestCase(TestCase):
    """Read side"""

    def test_pending_lists_oldest_first(self):
        optician = create_optician()
        reward = create_loyalty_product(own_stock_qty=5)
        first = create_redemption(optician, [(reward, 1)])
        second = create_redemption(optician, [(reward, 1)])
        RedemptionService.reject(first.pk, create_admin())

        self.assertEqual(list(RedemptionQueryService.pending()), [second])

    def test_get_with_malformed_id_is_not_found(self):
        self.assertEqual(RedemptionQueryService.get('nope').unwrap_err().code, ErrorCode.NOT_FOUND)
