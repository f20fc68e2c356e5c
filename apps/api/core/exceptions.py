# ===============================================================================
# API EXCEPTION HANDLER 🔥
# ===============================================================================

import logging
from typing import Any

from rest_framework import exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.common.types import ErrorCode

logger = logging.getLogger(__name__)

_ACCESS_EXCEPTIONS = (exceptions.NotAuthenticated, exceptions.AuthenticationFailed, exceptions.PermissionDenied)


def marketplace_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """
    DRF exception handler.
    Access refusals use the same error body as service errors; anything DRF
    does not handle is logged and left to propagate as a 500.
    """
    response = exception_handler(exc, context)

    if response is None:
        request = context.get('request')
        path = request.path if request is not None else '-'
        logger.exception(f"🔥 [API] Unhandled error on {path}: {exc}")
        return None

    if isinstance(exc, _ACCESS_EXCEPTIONS):
        response.data = {
            'error': ErrorCode.UNAUTHORIZED,
            'message': str(exc.detail),
            'details': {},
        }
    return response
