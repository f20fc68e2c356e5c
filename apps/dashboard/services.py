"""
Aggregation View for the back office and optician dashboards.
Every figure is computed from the order store, redemption store and points
ledger at request time; nothing here is cached or stored.
"""

from __future__ import annotations

from typing import TypedDict

from django.db.models import Count, Q, QuerySet, Sum

from apps.common.constants import LEDGER_REASON_ORDER_ITEM_CONFIRMED, LEDGER_REASON_REDEMPTION_APPROVED
from apps.loyalty.models import PointsLedgerEntry, Redemption
from apps.opticians.models import Optician
from apps.orders.models import Order, OrderItem


class OrderItemCounts(TypedDict):
    pending: int
    confirmed: int
    cancelled: int


class RedemptionCounts(TypedDict):
    pending: int
    approved: int
    rejected: int
    cancelled: int


class PointsFigures(TypedDict):
    """issued - redeemed + adjusted == outstanding"""

    issued: int
    redeemed: int
    adjusted: int
    outstanding: int


class OpticianFigures(TypedDict):
    total: int
    pending_approval: int


class Summary(TypedDict, total=False):
    orders_total: int
    total_articles: int
    total_order_value_cents: int
    order_items: OrderItemCounts
    redemptions: RedemptionCounts
    points: PointsFigures
    opticians: OpticianFigures


# ===============================================================================
# SUMMARY SERVICE
# ===============================================================================


class SummaryService:
    """Global and per-optician summaries"""

    @staticmethod
    def global_summary() -> Summary:
        summary = SummaryService._summarize(
            Order.objects.all(),
            OrderItem.objects.all(),
            Redemption.objects.all(),
            PointsLedgerEntry.objects.all(),
        )
        opticians = Optician.objects.aggregate(
            total=Count('pk'),
            pending_approval=Count('pk', filter=Q(status=Optician.STATUS_PENDING)),
        )
        summary['opticians'] = {
            'total': opticians['total'],
            'pending_approval': opticians['pending_approval'],
        }
        return summary

    @staticmethod
    def optician_summary(optician: Optician) -> Summary:
        return SummaryService._summarize(
            Order.objects.filter(optician=optician),
            OrderItem.objects.filter(order__optician=optician),
            Redemption.objects.filter(optician=optician),
            PointsLedgerEntry.objects.filter(account__optician=optician),
        )

    @staticmethod
    def _summarize(
        orders: QuerySet[Order],
        items: QuerySet[OrderItem],
        redemptions: QuerySet[Redemption],
        entries: QuerySet[PointsLedgerEntry],
    ) -> Summary:
        item_figures = items.aggregate(
            pending=Count('pk', filter=Q(status=OrderItem.STATUS_PENDING)),
            confirmed=Count('pk', filter=Q(status=OrderItem.STATUS_CONFIRMED)),
            cancelled=Count('pk', filter=Q(status=OrderItem.STATUS_CANCELLED)),
            total_articles=Sum('quantity'),
            confirmed_value=Sum('line_total_cents', filter=Q(status=OrderItem.STATUS_CONFIRMED)),
        )
        redemption_figures = redemptions.aggregate(
            pending=Count('pk', filter=Q(status=Redemption.STATUS_PENDING)),
            approved=Count('pk', filter=Q(status=Redemption.STATUS_APPROVED)),
            rejected=Count('pk', filter=Q(status=Redemption.STATUS_REJECTED)),
            cancelled=Count('pk', filter=Q(status=Redemption.STATUS_CANCELLED)),
        )
        settled_reasons = [LEDGER_REASON_ORDER_ITEM_CONFIRMED, LEDGER_REASON_REDEMPTION_APPROVED]
        point_figures = entries.aggregate(
            issued=Sum('delta', filter=Q(reason=LEDGER_REASON_ORDER_ITEM_CONFIRMED)),
            redeemed=Sum('delta', filter=Q(reason=LEDGER_REASON_REDEMPTION_APPROVED)),
            adjusted=Sum('delta', filter=~Q(reason__in=settled_reasons)),
            outstanding=Sum('delta'),
        )

        return {
            'orders_total': orders.count(),
            'total_articles': item_figures['total_articles'] or 0,
            'total_order_value_cents': item_figures['confirmed_value'] or 0,
            'order_items': {
                'pending': item_figures['pending'],
                'confirmed': item_figures['confirmed'],
                'cancelled': item_figures['cancelled'],
            },
            'redemptions': {
                'pending': redemption_figures['pending'],
                'approved': redemption_figures['approved'],
                'rejected': redemption_figures['rejected'],
                'cancelled': redemption_figures['cancelled'],
            },
            'points': {
                'issued': point_figures['issued'] or 0,
                # Redemption debits are stored as negative deltas
                'redeemed': -(point_figures['redeemed'] or 0),
                'adjusted': point_figures['adjusted'] or 0,
                'outstanding': point_figures['outstanding'] or 0,
            },
        }
