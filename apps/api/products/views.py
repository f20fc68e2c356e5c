"""
Product API Views
Explicit restock, the only path that adds catalog stock.
"""

import logging
import uuid

from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.request import Request
from rest_framework.response import Response

from apps.api.core.permissions import IsMarketplaceAdmin
from apps.api.core.responses import error_response, invalid_input_response
from apps.api.core.throttling import LedgerActionThrottle
from apps.products.services import InventoryLedger

from .serializers import RestockInputSerializer

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([IsMarketplaceAdmin])
@throttle_classes([LedgerActionThrottle])
def restock_product(request: Request, product_id: uuid.UUID) -> Response:
    serializer = RestockInputSerializer(data=request.data)
    if not serializer.is_valid():
        return invalid_input_response(serializer.errors)

    quantity = serializer.validated_data['quantity']
    logger.info(f"📦 [Products API] Restock of {quantity} for product {product_id} by {request.user}")

    result = InventoryLedger.increment(product_id, quantity, performed_by=request.user)
    if result.is_err():
        return error_response(result.unwrap_err(), request)

    return Response({'productId': str(product_id), 'stockQty': result.unwrap()})
