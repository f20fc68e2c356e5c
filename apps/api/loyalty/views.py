"""
Loyalty API Views
Redemption submission and resolution, points balance and history,
manual adjustments and the loyalty catalog.
"""

import logging
import uuid

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.request import Request
from rest_framework.response import Response

from apps.api.core.pagination import StandardResultsSetPagination
from apps.api.core.permissions import IsMarketplaceAdmin, IsMarketplaceUser
from apps.api.core.responses import error_response, invalid_input_response
from apps.api.core.throttling import LedgerActionThrottle, MarketplaceReadThrottle, SubmissionThrottle
from apps.common.types import DomainError
from apps.loyalty.redemption_service import RedemptionQueryService, RedemptionService, RedemptionSubmitData
from apps.loyalty.services import PointsLedger
from apps.opticians.models import Optician
from apps.opticians.services import OpticianAccessService
from apps.products.models import LoyaltyProduct

from .serializers import (
    LoyaltyProductSerializer,
    PointsAdjustInputSerializer,
    PointsLedgerEntrySerializer,
    RedemptionActionInputSerializer,
    RedemptionCreateInputSerializer,
    RedemptionRejectInputSerializer,
    RedemptionSerializer,
)

logger = logging.getLogger(__name__)


# ===============================================================================
# REDEMPTIONS
# ===============================================================================


@api_view(['GET', 'POST'])
@permission_classes([IsMarketplaceUser])
@throttle_classes([SubmissionThrottle, MarketplaceReadThrottle])
def redemption_collection(request: Request) -> Response:
    """GET lists redemptions (``?opticianId=``); POST submits a redemption"""
    if request.method == 'POST':
        return _create_redemption(request)
    return _list_redemptions(request)


def _create_redemption(request: Request) -> Response:
    serializer = RedemptionCreateInputSerializer(data=request.data)
    if not serializer.is_valid():
        return invalid_input_response(serializer.errors)

    optician_result = OpticianAccessService.get(serializer.validated_data['opticianId'])
    if optician_result.is_err():
        return error_response(optician_result.unwrap_err(), request)

    result = RedemptionService.submit(RedemptionSubmitData(
        optician=optician_result.unwrap(),
        items=serializer.to_service_items(),
        submitted_by=request.user,
    ))
    if result.is_err():
        return error_response(result.unwrap_err(), request)

    redemption = RedemptionQueryService.get(result.unwrap().pk).unwrap()
    check = RedemptionService.balance_check(redemption)
    return Response({
        'redemptionId': str(redemption.id),
        'totalPoints': redemption.total_points,
        'redemption': RedemptionSerializer(redemption).data,
        'balance': check['balance'],
        'balanceSufficient': check['sufficient'],
        'pointsNeeded': check['points_needed'],
    }, status=status.HTTP_201_CREATED)


def _list_redemptions(request: Request) -> Response:
    optician_id = request.query_params.get('opticianId')

    if optician_id:
        optician_result = OpticianAccessService.get(optician_id)
        if optician_result.is_err():
            return error_response(optician_result.unwrap_err(), request)
        access = OpticianAccessService.check_can_view(request.user, optician_result.unwrap())
        if access.is_err():
            return error_response(access.unwrap_err(), request)
        queryset = RedemptionQueryService.for_optician(optician_result.unwrap())
    elif request.user.is_marketplace_admin:
        queryset = RedemptionQueryService.all()
    else:
        optician = Optician.objects.filter(user=request.user).first()
        if optician is None:
            return error_response(DomainError.not_found('Optician', request.user.pk), request)
        queryset = RedemptionQueryService.for_optician(optician)

    paginator = StandardResultsSetPagination()
    page = paginator.paginate_queryset(queryset, request)
    return paginator.get_paginated_response(RedemptionSerializer(page, many=True).data)


@api_view(['GET'])
@permission_classes([IsMarketplaceUser])
@throttle_classes([MarketplaceReadThrottle])
def redemption_detail(request: Request, redemption_id: uuid.UUID) -> Response:
    result = RedemptionQueryService.get(redemption_id)
    if result.is_err():
        return error_response(result.unwrap_err(), request)

    redemption = result.unwrap()
    access = OpticianAccessService.check_can_view(request.user, redemption.optician)
    if access.is_err():
        return error_response(access.unwrap_err(), request)

    return Response(RedemptionSerializer(redemption).data)


@api_view(['POST'])
@permission_classes([IsMarketplaceAdmin])
@throttle_classes([LedgerActionThrottle])
def approve_redemption(request: Request, redemption_id: uuid.UUID) -> Response:
    return _apply_redemption_action(request, redemption_id, RedemptionActionInputSerializer.STATUS_APPROVE)


@api_view(['POST'])
@permission_classes([IsMarketplaceAdmin])
@throttle_classes([LedgerActionThrottle])
def reject_redemption(request: Request, redemption_id: uuid.UUID) -> Response:
    serializer = RedemptionRejectInputSerializer(data=request.data)
    if not serializer.is_valid():
        return invalid_input_response(serializer.errors)

    return _apply_redemption_action(
        request, redemption_id, RedemptionActionInputSerializer.STATUS_REJECT, serializer.validated_data['reason']
    )


@api_view(['POST'])
@permission_classes([IsMarketplaceUser])
@throttle_classes([LedgerActionThrottle])
def cancel_redemption(request: Request, redemption_id: uuid.UUID) -> Response:
    """Owning optician or admin"""
    return _apply_redemption_action(request, redemption_id, RedemptionActionInputSerializer.STATUS_CANCEL)


@api_view(['POST'])
@permission_classes([IsMarketplaceAdmin])
@throttle_classes([LedgerActionThrottle])
def redemption_action(request: Request) -> Response:
    """Tagged variant: ``{redemptionId, status: approve|reject|cancel, reason?}``"""
    serializer = RedemptionActionInputSerializer(data=request.data)
    if not serializer.is_valid():
        return invalid_input_response(serializer.errors)

    data = serializer.validated_data
    return _apply_redemption_action(request, data['redemptionId'], data['status'], data['reason'])


@api_view(['GET'])
@permission_classes([IsMarketplaceAdmin])
@throttle_classes([MarketplaceReadThrottle])
def pending_redemptions(request: Request) -> Response:
    paginator = StandardResultsSetPagination()
    page = paginator.paginate_queryset(RedemptionQueryService.pending(), request)
    return paginator.get_paginated_response(RedemptionSerializer(page, many=True).data)


def _apply_redemption_action(request: Request, redemption_id: uuid.UUID, action: str, reason: str = '') -> Response:
    logger.info(f"🎁 [Loyalty API] {action} redemption {redemption_id} by {request.user}")

    if action == RedemptionActionInputSerializer.STATUS_APPROVE:
        result = RedemptionService.approve(redemption_id, request.user)
    elif action == RedemptionActionInputSerializer.STATUS_REJECT:
        result = RedemptionService.reject(redemption_id, request.user, reason)
    else:
        result = RedemptionService.cancel(redemption_id, request.user)

    if result.is_err():
        return error_response(result.unwrap_err(), request)

    redemption = RedemptionQueryService.get(result.unwrap().pk).unwrap()
    return Response({
        'redemption': RedemptionSerializer(redemption).data,
        'balance': PointsLedger.balance_for(redemption.optician),
    })


# ===============================================================================
# POINTS
# ===============================================================================


@api_view(['GET'])
@permission_classes([IsMarketplaceUser])
@throttle_classes([MarketplaceReadThrottle])
def points_balance(request: Request, optician_id: uuid.UUID) -> Response:
    optician_result = _viewable_optician(request, optician_id)
    if optician_result.is_err():
        return error_response(optician_result.unwrap_err(), request)

    optician = optician_result.unwrap()
    return Response({
        'opticianId': str(optician.pk),
        'balance': PointsLedger.ledger_balance(optician),
    })


@api_view(['GET'])
@permission_classes([IsMarketplaceUser])
@throttle_classes([MarketplaceReadThrottle])
def points_history(request: Request, optician_id: uuid.UUID) -> Response:
    optician_result = _viewable_optician(request, optician_id)
    if optician_result.is_err():
        return error_response(optician_result.unwrap_err(), request)

    paginator = StandardResultsSetPagination()
    page = paginator.paginate_queryset(PointsLedger.history_queryset(optician_result.unwrap()), request)
    return paginator.get_paginated_response(PointsLedgerEntrySerializer(page, many=True).data)


@api_view(['POST'])
@permission_classes([IsMarketplaceAdmin])
@throttle_classes([LedgerActionThrottle])
def adjust_points(request: Request, optician_id: uuid.UUID) -> Response:
    serializer = PointsAdjustInputSerializer(data=request.data)
    if not serializer.is_valid():
        return invalid_input_response(serializer.errors)

    optician_result = OpticianAccessService.get(optician_id)
    if optician_result.is_err():
        return error_response(optician_result.unwrap_err(), request)

    result = PointsLedger.adjust(
        optician_result.unwrap(),
        serializer.validated_data['points'],
        serializer.validated_data['reason'],
        request.user,
    )
    if result.is_err():
        return error_response(result.unwrap_err(), request)

    return Response({'opticianId': str(optician_id), 'balance': result.unwrap()})


def _viewable_optician(request: Request, optician_id: uuid.UUID):
    optician_result = OpticianAccessService.get(optician_id)
    if optician_result.is_err():
        return optician_result
    return OpticianAccessService.check_can_view(request.user, optician_result.unwrap())


# ===============================================================================
# LOYALTY CATALOG
# ===============================================================================


@api_view(['GET'])
@permission_classes([IsMarketplaceUser])
@throttle_classes([MarketplaceReadThrottle])
def loyalty_product_list(request: Request) -> Response:
    """Active rewards with stock available to redeem"""
    queryset = LoyaltyProduct.objects.redeemable().order_by('points_cost', 'name')
    serializer = LoyaltyProductSerializer(queryset, many=True)

    return Response({
        'results': serializer.data,
        'count': len(serializer.data)
    })
