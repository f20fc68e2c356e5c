"""
Order API Views for the optical marketplace
Basket submission, order reads and the back-office confirm/cancel actions.
"""

import logging
import uuid

from django_filters.utils import translate_validation
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.request import Request
from rest_framework.response import Response

from apps.api.core.pagination import StandardResultsSetPagination
from apps.api.core.permissions import IsMarketplaceAdmin, IsMarketplaceUser
from apps.api.core.responses import error_response, invalid_input_response
from apps.api.core.throttling import LedgerActionThrottle, MarketplaceReadThrottle, SubmissionThrottle
from apps.common.types import DomainError
from apps.loyalty.services import PointsLedger
from apps.opticians.models import Optician
from apps.opticians.services import OpticianAccessService
from apps.orders.models import Order, OrderItem
from apps.orders.services import (
    OrderCreateData,
    OrderItemConfirmationService,
    OrderQueryService,
    OrderService,
)

from .filters import OrderFilter
from .serializers import (
    OrderCreateInputSerializer,
    OrderItemActionInputSerializer,
    OrderItemSerializer,
    OrderSerializer,
)

logger = logging.getLogger(__name__)


# ===============================================================================
# OPTICIAN ENDPOINTS
# ===============================================================================


@api_view(['GET', 'POST'])
@permission_classes([IsMarketplaceUser])
@throttle_classes([SubmissionThrottle, MarketplaceReadThrottle])
def order_collection(request: Request) -> Response:
    """GET lists orders (``?opticianId=``); POST submits a basket"""
    if request.method == 'POST':
        return _create_order(request)
    return _list_orders(request)


def _create_order(request: Request) -> Response:
    serializer = OrderCreateInputSerializer(data=request.data)
    if not serializer.is_valid():
        return invalid_input_response(serializer.errors)

    optician_result = OpticianAccessService.get(serializer.validated_data['opticianId'])
    if optician_result.is_err():
        return error_response(optician_result.unwrap_err(), request)

    logger.info(f"🛒 [Orders API] Order submission for optician {optician_result.unwrap().pk}")
    result = OrderService.create_order(OrderCreateData(
        optician=optician_result.unwrap(),
        items=serializer.to_service_items(),
        created_by=request.user,
        notes=serializer.validated_data['notes'],
    ))
    if result.is_err():
        return error_response(result.unwrap_err(), request)

    order = OrderQueryService.get_order_with_items(result.unwrap().pk).unwrap()
    return Response({
        'orderId': str(order.id),
        'order': OrderSerializer(order).data,
    }, status=status.HTTP_201_CREATED)


def _list_orders(request: Request) -> Response:
    optician_id = request.query_params.get('opticianId')

    if optician_id:
        optician_result = OpticianAccessService.get(optician_id)
        if optician_result.is_err():
            return error_response(optician_result.unwrap_err(), request)
        access = OpticianAccessService.check_can_view(request.user, optician_result.unwrap())
        if access.is_err():
            return error_response(access.unwrap_err(), request)
        queryset = OrderQueryService.get_orders_for_optician(optician_result.unwrap())
    elif request.user.is_marketplace_admin:
        queryset = OrderQueryService.get_all_orders()
    else:
        optician = Optician.objects.filter(user=request.user).first()
        if optician is None:
            return error_response(DomainError.not_found('Optician', request.user.pk), request)
        queryset = OrderQueryService.get_orders_for_optician(optician)

    filterset = OrderFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return invalid_input_response(translate_validation(filterset.errors).detail)

    paginator = StandardResultsSetPagination()
    page = paginator.paginate_queryset(filterset.qs, request)
    return paginator.get_paginated_response(OrderSerializer(page, many=True).data)


@api_view(['GET'])
@permission_classes([IsMarketplaceUser])
@throttle_classes([MarketplaceReadThrottle])
def order_detail(request: Request, order_id: uuid.UUID) -> Response:
    result = OrderQueryService.get_order_with_items(order_id)
    if result.is_err():
        return error_response(result.unwrap_err(), request)

    order = result.unwrap()
    access = OpticianAccessService.check_can_view(request.user, order.optician)
    if access.is_err():
        return error_response(access.unwrap_err(), request)

    return Response(OrderSerializer(order).data)


# ===============================================================================
# BACK-OFFICE ENDPOINTS
# ===============================================================================


@api_view(['POST'])
@permission_classes([IsMarketplaceAdmin])
@throttle_classes([LedgerActionThrottle])
def confirm_order_item(request: Request, item_id: uuid.UUID) -> Response:
    return _apply_item_action(request, item_id, OrderItemActionInputSerializer.ACTION_CONFIRM)


@api_view(['POST'])
@permission_classes([IsMarketplaceAdmin])
@throttle_classes([LedgerActionThrottle])
def cancel_order_item(request: Request, item_id: uuid.UUID) -> Response:
    return _apply_item_action(request, item_id, OrderItemActionInputSerializer.ACTION_CANCEL)


@api_view(['POST'])
@permission_classes([IsMarketplaceAdmin])
@throttle_classes([LedgerActionThrottle])
def order_item_action(request: Request) -> Response:
    """Tagged variant: ``{itemId, action: confirm|cancel}``"""
    serializer = OrderItemActionInputSerializer(data=request.data)
    if not serializer.is_valid():
        return invalid_input_response(serializer.errors)

    return _apply_item_action(request, serializer.validated_data['itemId'], serializer.validated_data['action'])


@api_view(['GET'])
@permission_classes([IsMarketplaceAdmin])
@throttle_classes([MarketplaceReadThrottle])
def pending_orders(request: Request) -> Response:
    """Orders with at least one line awaiting a decision"""
    paginator = StandardResultsSetPagination()
    page = paginator.paginate_queryset(OrderQueryService.get_pending_orders(), request)
    return paginator.get_paginated_response(OrderSerializer(page, many=True).data)


def _apply_item_action(request: Request, item_id: uuid.UUID, action: str) -> Response:
    logger.info(f"🛒 [Orders API] {action} order item {item_id} by {request.user}")

    if action == OrderItemActionInputSerializer.ACTION_CONFIRM:
        result = OrderItemConfirmationService.confirm(item_id, request.user)
    else:
        result = OrderItemConfirmationService.cancel(item_id, request.user)

    if result.is_err():
        return error_response(result.unwrap_err(), request)

    return Response(_item_post_state(result.unwrap().pk))


def _item_post_state(item_id: uuid.UUID) -> dict:
    """Authoritative state after a mutation: line, order status, stock and balance"""
    item = OrderItem.objects.select_related('product', 'order__optician').get(pk=item_id)
    order = Order.objects.prefetch_related('items').get(pk=item.order_id)
    return {
        'item': OrderItemSerializer(item).data,
        'orderStatus': order.aggregate_status,
        'stockQty': item.product.stock_qty,
        'balance': PointsLedger.balance_for(item.order.optician),
    }
