"""
Tests for request tracing
"""

import logging

from django.http import HttpResponse
from django.test import RequestFactory, SimpleTestCase

from apps.common.log_filters import RequestIDFilter
from apps.common.middleware import RequestIDMiddleware, current_request_id


class RequestIDMiddlewareTestCase(SimpleTestCase):
    """Every response carries X-Request-ID; log records see it while handling"""

    def setUp(self):
        self.factory = RequestFactory()
        self.seen = []

        def view(request):
            record = logging.LogRecord('test', logging.INFO, __file__, 1, 'msg', None, None)
            RequestIDFilter().filter(record)
            self.seen.append(record.request_id)
            return HttpResponse('ok')

        self.middleware = RequestIDMiddleware(view)

    def test_generates_request_id(self):
        response = self.middleware(self.factory.get('/api/orders/'))

        self.assertTrue(response['X-Request-ID'])
        self.assertEqual(self.seen, [response['X-Request-ID']])

    def test_honours_upstream_request_id(self):
        response = self.middleware(self.factory.get('/api/orders/', HTTP_X_REQUEST_ID='abc-123'))

        self.assertEqual(response['X-Request-ID'], 'abc-123')
        self.assertEqual(self.seen, ['abc-123'])

    def test_request_id_is_reset_after_response(self):
        self.middleware(self.factory.get('/api/orders/'))
        self.assertEqual(current_request_id.get(), '-')
