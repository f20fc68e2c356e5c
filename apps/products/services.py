"""
Inventory Ledger for the optical marketplace.
Sole write path for Product.stock_qty and LoyaltyProduct.own_stock_qty.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from django.db.models import F
from django.utils import timezone

from apps.common.types import DomainError, Err, ErrorCode, Ok, Result
from apps.common.validators import log_security_event

from .models import LoyaltyProduct, Product

if TYPE_CHECKING:
    from apps.users.models import User

logger = logging.getLogger(__name__)

# ===============================================================================
# INVENTORY LEDGER
# ===============================================================================


class InventoryLedger:
    """
    Atomic conditional stock updates.

    Every decrement is a single ``UPDATE ... WHERE stock_qty >= qty``; stock is
    never read, modified and written back, so concurrent confirmations cannot
    oversell. Callers own the surrounding transaction.
    """

    @staticmethod
    def try_decrement(product_id: uuid.UUID, quantity: int) -> Result[int, DomainError]:
        """Decrement stock if enough units remain; returns the remaining stock"""
        if quantity <= 0:
            return Err(DomainError.validation("Quantity must be greater than zero", quantity=quantity))

        updated = Product.objects.filter(pk=product_id, stock_qty__gte=quantity).update(
            stock_qty=F('stock_qty') - quantity,
            updated_at=timezone.now(),
        )
        current = Product.objects.filter(pk=product_id).values_list('stock_qty', flat=True).first()

        if current is None:
            return Err(DomainError.not_found('Product', product_id))

        if not updated:
            logger.info(f"📦 [Inventory] Refused decrement of {quantity} for product {product_id}: {current} left")
            return Err(DomainError.insufficient_stock(quantity, current, product_id=str(product_id)))

        logger.info(f"📦 [Inventory] Decremented product {product_id} by {quantity}, {current} left")
        return Ok(current)

    @staticmethod
    def increment(
        product_id: uuid.UUID,
        quantity: int,
        performed_by: User | None = None,
    ) -> Result[int, DomainError]:
        """Explicit restock. Order item cancellation never calls this."""
        if quantity <= 0:
            return Err(DomainError.validation("Quantity must be greater than zero", quantity=quantity))

        updated = Product.objects.filter(pk=product_id).update(
            stock_qty=F('stock_qty') + quantity,
            updated_at=timezone.now(),
        )
        if not updated:
            return Err(DomainError.not_found('Product', product_id))

        current = Product.objects.filter(pk=product_id).values_list('stock_qty', flat=True).get()

        log_security_event('product_restocked', {
            'product_id': str(product_id),
            'quantity': quantity,
            'stock_qty': current,
            'user_id': str(performed_by.pk) if performed_by else None,
        })
        return Ok(current)

    @staticmethod
    def try_decrement_own_stock(loyalty_product_id: uuid.UUID, quantity: int) -> Result[int, DomainError]:
        """Conditional decrement for rewards that are not linked to a catalog product"""
        if quantity <= 0:
            return Err(DomainError.validation("Quantity must be greater than zero", quantity=quantity))

        updated = LoyaltyProduct.objects.filter(
            pk=loyalty_product_id,
            product__isnull=True,
            own_stock_qty__gte=quantity,
        ).update(
            own_stock_qty=F('own_stock_qty') - quantity,
            updated_at=timezone.now(),
        )
        current = LoyaltyProduct.objects.filter(
            pk=loyalty_product_id, product__isnull=True
        ).values_list('own_stock_qty', flat=True).first()

        if current is None:
            return Err(DomainError.not_found('LoyaltyProduct', loyalty_product_id))

        if not updated:
            return Err(DomainError.insufficient_stock(
                quantity, current, loyalty_product_id=str(loyalty_product_id)
            ))

        logger.info(f"🎁 [Inventory] Decremented reward {loyalty_product_id} by {quantity}, {current} left")
        return Ok(current)

    @staticmethod
    def try_decrement_reward(loyalty_product: LoyaltyProduct, quantity: int) -> Result[int, DomainError]:
        """Decrement the stock a reward draws from: the linked product's, or its own"""
        if loyalty_product.product_id is not None:
            result = InventoryLedger.try_decrement(loyalty_product.product_id, quantity)
        else:
            result = InventoryLedger.try_decrement_own_stock(loyalty_product.pk, quantity)

        if result.is_err() and result.unwrap_err().code == ErrorCode.INSUFFICIENT_STOCK:
            error = result.unwrap_err()
            return Err(DomainError(
                error.code,
                f"Insufficient stock for {loyalty_product.name}: {error.message}",
                {**error.details, 'loyalty_product_id': str(loyalty_product.pk)},
            ))
        return result
