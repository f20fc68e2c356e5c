# ===============================================================================
# DOMAIN ERROR → HTTP RESPONSES 🧭
# ===============================================================================

from typing import Any, Final

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response

from apps.common.types import DomainError, ErrorCode

ERROR_STATUS_MAP: Final[dict[str, int]] = {
    ErrorCode.INSUFFICIENT_STOCK: status.HTTP_409_CONFLICT,
    ErrorCode.INSUFFICIENT_POINTS: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_RESOLVED: status.HTTP_409_CONFLICT,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorCode.RETRY_EXHAUSTED: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_response(error: DomainError, request: Request | None = None) -> Response:
    """Render a DomainError with its machine-readable code and details"""
    http_status = ERROR_STATUS_MAP.get(error.code, status.HTTP_400_BAD_REQUEST)
    if error.code == ErrorCode.UNAUTHORIZED and request is not None and not request.user.is_authenticated:
        http_status = status.HTTP_401_UNAUTHORIZED

    return Response({
        'error': error.code,
        'message': error.message,
        'details': error.details,
    }, status=http_status)


def invalid_input_response(errors: Any) -> Response:
    """Serializer rejection, before any service is called"""
    return Response({
        'error': ErrorCode.VALIDATION_ERROR,
        'message': 'Invalid input',
        'details': errors,
    }, status=status.HTTP_400_BAD_REQUEST)
