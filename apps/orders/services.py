"""
Order Management Services for the optical marketplace
Order Store writes and queries, plus the per-item Confirmation Coordinator that
settles stock and loyalty points when the back office acts on a line.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypedDict

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Exists, OuterRef, Prefetch, QuerySet
from django.utils import timezone

from apps.common.constants import (
    LEDGER_REASON_ORDER_ITEM_CONFIRMED,
    MAX_ITEMS_PER_ORDER,
    MAX_QUANTITY_PER_LINE,
)
from apps.common.decorators import atomic_with_retry
from apps.common.types import ConflictError, DomainError, Err, Ok, Result
from apps.common.validators import log_security_event, validate_line_items
from apps.loyalty.services import PointsLedger
from apps.opticians.services import OpticianAccessService
from apps.products.models import Product
from apps.products.services import InventoryLedger

from .models import Order, OrderItem

if TYPE_CHECKING:
    from apps.opticians.models import Optician
    from apps.users.models import User

logger = logging.getLogger(__name__)

# ===============================================================================
# ORDER SERVICE PARAMETER OBJECTS
# ===============================================================================


class OrderItemData(TypedDict):
    """Type definition for a submitted basket line"""
    product_id: uuid.UUID | str
    quantity: int


@dataclass
class OrderCreateData:
    """Parameter object for order creation"""
    optician: Optician
    items: list[OrderItemData]
    created_by: User
    notes: str = ''
    meta: dict[str, Any] = field(default_factory=dict)


# ===============================================================================
# MAIN ORDER SERVICE
# ===============================================================================


class OrderService:
    """Order Store writes"""

    @staticmethod
    @transaction.atomic
    def create_order(data: OrderCreateData) -> Result[Order, DomainError]:
        """
        Persist a PENDING order with each line's pricing frozen.
        Stock is not checked or reserved here; confirmation is the authority.
        """
        access = OpticianAccessService.check_can_submit(data.created_by, data.optician)
        if access.is_err():
            return access

        lines_result = validate_line_items(data.items, 'product_id', MAX_ITEMS_PER_ORDER, MAX_QUANTITY_PER_LINE)
        if lines_result.is_err():
            return lines_result
        lines = lines_result.unwrap()

        products = Product.objects.in_bulk([product_id for product_id, _ in lines])
        for index, (product_id, _quantity) in enumerate(lines):
            product = products.get(product_id)
            if product is None:
                return Err(DomainError.validation(
                    f"Unknown product {product_id}", index=index, product_id=str(product_id)
                ))
            if not product.is_active:
                return Err(DomainError.validation(
                    f"{product.name} is no longer sold", index=index, product_id=str(product_id)
                ))

        order = Order.objects.create(
            optician=data.optician,
            created_by=data.created_by,
            notes=data.notes,
        )

        order_items = []
        for product_id, quantity in lines:
            product = products[product_id]
            sale_price_cents = product.sale_price_cents
            order_items.append(OrderItem(
                order=order,
                product=product,
                quantity=quantity,
                product_name=product.name,
                product_reference=product.reference,
                unit_price_cents=product.unit_price_cents,
                discount_pct=product.discount_pct,
                sale_price_cents=sale_price_cents,
                line_total_cents=sale_price_cents * quantity,
            ))
        OrderItem.objects.bulk_create(order_items)

        log_security_event('order_created', {
            'order_id': str(order.id),
            'optician_id': str(data.optician.pk),
            'items': len(order_items),
            'total_cents': sum(item.line_total_cents for item in order_items),
            'user_id': str(data.created_by.pk),
        })
        return Ok(order)


# ===============================================================================
# CONFIRMATION COORDINATOR
# ===============================================================================


class OrderItemConfirmationService:
    """
    Per-item state machine PENDING -> {CONFIRMED, CANCELLED}.

    Confirmation decrements stock and credits points in one transaction; the
    PENDING guard is re-read under a row lock on every attempt, so a retried
    or duplicated confirm can never settle twice.
    """

    @staticmethod
    @atomic_with_retry('confirm_order_item')
    def confirm(item_id: uuid.UUID, acted_by: User) -> Result[OrderItem, DomainError]:
        if not acted_by.is_marketplace_admin:
            return Err(DomainError.unauthorized("Only administrators can confirm order items"))

        locked = OrderItemConfirmationService._lock_pending(item_id)
        if locked.is_err():
            return locked
        item = locked.unwrap()

        stock_result = InventoryLedger.try_decrement(item.product_id, item.quantity)
        if stock_result.is_err():
            transaction.set_rollback(True)
            logger.info(f"🛒 [Orders] Confirmation of item {item.id} refused: {stock_result.unwrap_err().message}")
            return Err(stock_result.unwrap_err())

        optician = item.order.optician
        points = item.quantity * item.product.loyalty_points_reward
        if points <= 0 or not optician.is_eligible_for_points:
            points = 0

        OrderItemConfirmationService._transition(item, OrderItem.STATUS_CONFIRMED, acted_by, points_awarded=points)

        if points:
            credit_result = PointsLedger.credit(
                optician,
                points,
                LEDGER_REASON_ORDER_ITEM_CONFIRMED,
                reference_id=str(item.id),
                created_by=acted_by,
            )
            if credit_result.is_err():
                transaction.set_rollback(True)
                return Err(credit_result.unwrap_err())

        log_security_event('order_item_confirmed', {
            'order_id': str(item.order_id),
            'item_id': str(item.id),
            'product_id': str(item.product_id),
            'quantity': item.quantity,
            'stock_remaining': stock_result.unwrap(),
            'points_awarded': points,
            'user_id': str(acted_by.pk),
        })
        return Ok(item)

    @staticmethod
    @atomic_with_retry('cancel_order_item')
    def cancel(item_id: uuid.UUID, acted_by: User) -> Result[OrderItem, DomainError]:
        """Terminal refusal of a line; stock is not touched"""
        if not acted_by.is_marketplace_admin:
            return Err(DomainError.unauthorized("Only administrators can cancel order items"))

        locked = OrderItemConfirmationService._lock_pending(item_id)
        if locked.is_err():
            return locked
        item = locked.unwrap()

        OrderItemConfirmationService._transition(item, OrderItem.STATUS_CANCELLED, acted_by)
        log_security_event('order_item_cancelled', {
            'order_id': str(item.order_id),
            'item_id': str(item.id),
            'user_id': str(acted_by.pk),
        })
        return Ok(item)

    @staticmethod
    def _lock_pending(item_id: uuid.UUID) -> Result[OrderItem, DomainError]:
        item = (
            OrderItem.objects.select_for_update(of=('self',))
            .select_related('order__optician__user', 'product')
            .filter(pk=item_id)
            .first()
        )
        if item is None:
            return Err(DomainError.not_found('OrderItem', item_id))
        if not item.is_pending:
            return Err(DomainError.already_resolved('OrderItem', item.id, item.status))
        return Ok(item)

    @staticmethod
    def _transition(item: OrderItem, status: str, acted_by: User, points_awarded: int = 0) -> None:
        now = timezone.now()
        updated = OrderItem.objects.filter(pk=item.pk, status=OrderItem.STATUS_PENDING).update(
            status=status,
            resolved_at=now,
            resolved_by=acted_by,
            points_awarded=points_awarded,
            updated_at=now,
        )
        if not updated:
            # Lost the race on a backend without row locks; retry re-reads the status
            raise ConflictError(f"Order item {item.pk} changed while being resolved")

        item.status = status
        item.resolved_at = now
        item.resolved_by = acted_by
        item.points_awarded = points_awarded


# ===============================================================================
# ORDER QUERY SERVICE
# ===============================================================================


class OrderQueryService:
    """Order Store reads with the derived status computed from items"""

    @staticmethod
    def _base() -> QuerySet[Order]:
        return Order.objects.select_related('optician').prefetch_related(
            Prefetch('items', queryset=OrderItem.objects.select_related('product'))
        )

    @staticmethod
    def get_order_with_items(order_id: uuid.UUID | str) -> Result[Order, DomainError]:
        try:
            return Ok(OrderQueryService._base().get(pk=order_id))
        except (Order.DoesNotExist, ValidationError, ValueError):
            return Err(DomainError.not_found('Order', order_id))

    @staticmethod
    def get_item(item_id: uuid.UUID | str) -> Result[OrderItem, DomainError]:
        try:
            return Ok(OrderItem.objects.select_related('order__optician', 'product').get(pk=item_id))
        except (OrderItem.DoesNotExist, ValidationError, ValueError):
            return Err(DomainError.not_found('OrderItem', item_id))

    @staticmethod
    def get_all_orders() -> QuerySet[Order]:
        return OrderQueryService._base()

    @staticmethod
    def get_orders_for_optician(optician: Optician) -> QuerySet[Order]:
        return OrderQueryService._base().filter(optician=optician)

    @staticmethod
    def get_pending_orders() -> QuerySet[Order]:
        """Orders with at least one line still awaiting a decision, oldest first"""
        pending_items = OrderItem.objects.filter(order=OuterRef('pk'), status=OrderItem.STATUS_PENDING)
        return OrderQueryService._base().filter(Exists(pending_items)).order_by('created_at')
