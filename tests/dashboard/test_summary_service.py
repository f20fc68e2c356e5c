"""
Test suite for the dashboard summaries
Figures are computed from the stores and the points ledger at read time.
"""

from django.test import TestCase

from apps.dashboard.services import SummaryService
from apps.loyalty.models import LoyaltyAccount
from apps.loyalty.redemption_service import RedemptionService
from apps.loyalty.services import PointsLedger
from apps.opticians.models import Optician
from apps.orders.services import OrderItemConfirmationService
from tests.factories import (
    create_admin,
    create_loyalty_product,
    create_optician,
    create_order,
    create_product,
    create_redemption,
)


class SummaryServiceTestCase(TestCase):
    """Global and per-optician figures"""

    def setUp(self):
        self.admin = create_admin()
        self.optician = create_optician(business_name='Optique du Port')
        self.other = create_optician(business_name='Vision Nord')
        create_optician(business_name='Newcomer', status=Optician.STATUS_PENDING)

        self.product = create_product(stock_qty=20, unit_price_cents=1000, loyalty_points_reward=10)
        order = create_order(self.optician, [(self.product, 3), (self.product, 2), (self.product, 1)])
        OrderItemConfirmationService.confirm(order.items.get(quantity=3).pk, self.admin)
        OrderItemConfirmationService.cancel(order.items.get(quantity=2).pk, self.admin)

        other_order = create_order(self.other, [(self.product, 4)])
        OrderItemConfirmationService.confirm(other_order.items.get().pk, self.admin)

        reward = create_loyalty_product(points_cost=5, own_stock_qty=10)
        approved = create_redemption(self.optician, [(reward, 2)])
        RedemptionService.approve(approved.pk, self.admin)
        create_redemption(self.optician, [(reward, 1)])

    def test_global_summary(self):
        summary = SummaryService.global_summary()

        self.assertEqual(summary['orders_total'], 2)
        self.assertEqual(summary['total_articles'], 10)
        self.assertEqual(summary['total_order_value_cents'], 7000)
        self.assertEqual(summary['order_items'], {'pending': 1, 'confirmed': 2, 'cancelled': 1})
        self.assertEqual(summary['redemptions'], {'pending': 1, 'approved': 1, 'rejected': 0, 'cancelled': 0})
        self.assertEqual(summary['points'], {'issued': 70, 'redeemed': 10, 'adjusted': 0, 'outstanding': 60})
        self.assertEqual(summary['opticians'], {'total': 3, 'pending_approval': 1})

    def test_optician_summary(self):
        summary = SummaryService.optician_summary(self.optician)

        self.assertEqual(summary['orders_total'], 1)
        self.assertEqual(summary['total_articles'], 6)
        self.assertEqual(summary['total_order_value_cents'], 3000)
        self.assertEqual(summary['points'], {'issued': 30, 'redeemed': 10, 'adjusted': 0, 'outstanding': 20})
        self.assertNotIn('opticians', summary)

    def test_manual_adjustments_are_reported_separately(self):
        PointsLedger.adjust(self.optician, -5, 'Duplicate credit', self.admin).unwrap()
        PointsLedger.adjust(self.other, 15, 'Goodwill', self.admin).unwrap()

        points = SummaryService.global_summary()['points']

        self.assertEqual(points, {'issued': 70, 'redeemed': 10, 'adjusted': 10, 'outstanding': 70})
        self.assertEqual(points['issued'] - points['redeemed'] + points['adjusted'], points['outstanding'])

    def test_outstanding_follows_ledger_not_cached_balance(self):
        LoyaltyAccount.objects.filter(optician=self.optician).update(balance=999)

        summary = SummaryService.optician_summary(self.optician)

        self.assertEqual(summary['points']['outstanding'], 20)

    def test_empty_marketplace(self):
        summary = SummaryService.optician_summary(create_optician(business_name='Empty Shop'))

        self.assertEqual(summary['orders_total'], 0)
        self.assertEqual(summary['total_articles'], 0)
        self.assertEqual(summary['points'], {'issued': 0, 'redeemed': 0, 'adjusted': 0, 'outstanding': 0})
