"""
Dashboard API Views
Summaries computed on read from the stores and the points ledger.
"""

from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.request import Request
from rest_framework.response import Response

from apps.api.core.permissions import IsMarketplaceAdmin
from apps.api.core.responses import error_response
from apps.api.core.throttling import MarketplaceReadThrottle
from apps.dashboard.services import SummaryService
from apps.opticians.services import OpticianAccessService


@api_view(['GET'])
@permission_classes([IsMarketplaceAdmin])
@throttle_classes([MarketplaceReadThrottle])
def admin_summary(request: Request) -> Response:
    """Global figures, or one optician's with ``?opticianId=``"""
    optician_id = request.query_params.get('opticianId')
    if not optician_id:
        return Response(SummaryService.global_summary())

    optician_result = OpticianAccessService.get(optician_id)
    if optician_result.is_err():
        return error_response(optician_result.unwrap_err(), request)

    optician = optician_result.unwrap()
    return Response({
        'opticianId': str(optician.pk),
        **SummaryService.optician_summary(optician),
    })
