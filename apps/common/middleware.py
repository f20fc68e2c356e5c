"""
Common middleware for the marketplace engine
Request tracing for audit logs.
"""

import uuid
from collections.abc import Callable
from contextvars import ContextVar

from django.http import HttpRequest, HttpResponse

# Read by RequestIDFilter so ledger log lines carry the originating request
current_request_id: ContextVar[str] = ContextVar('current_request_id', default='-')

# ===============================================================================
# REQUEST ID MIDDLEWARE
# ===============================================================================


class RequestIDMiddleware:
    """Add unique request ID for tracing and audit logs"""

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        # Honour an upstream proxy's ID so log lines correlate across hops
        request_id = request.META.get('HTTP_X_REQUEST_ID') or str(uuid.uuid4())
        request.META['REQUEST_ID'] = request_id
        token = current_request_id.set(request_id)

        try:
            response = self.get_response(request)
        finally:
            current_request_id.reset(token)

        response['X-Request-ID'] = request_id
        return response
