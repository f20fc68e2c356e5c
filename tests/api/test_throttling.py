"""
API throttling tests
Reads and submissions on the same collection endpoint draw on separate budgets.
"""

from unittest import mock

from django.core.cache import cache
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from apps.api.core.throttling import MarketplaceReadThrottle, SubmissionThrottle
from tests.factories import create_optician, create_product

TIGHT_RATES = {
    'marketplace_submit': '1/min',
    'ledger_action': '1000/min',
    'marketplace_read': '2/min',
}


class CollectionThrottleTestCase(TestCase):
    """GET and POST on /api/orders/ are limited independently"""

    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.optician = create_optician()
        self.product = create_product(stock_qty=10)
        self.url = reverse('api:orders:order_collection')
        self.client.force_authenticate(self.optician.user)

        for throttle in (SubmissionThrottle, MarketplaceReadThrottle):
            patcher = mock.patch.object(throttle, 'THROTTLE_RATES', TIGHT_RATES)
            patcher.start()
            self.addCleanup(patcher.stop)
        self.addCleanup(cache.clear)

    def _submit(self):
        return self.client.post(self.url, {
            'opticianId': str(self.optician.pk),
            'items': [{'productId': str(self.product.pk), 'quantity': 1}],
        }, format='json')

    def test_reads_do_not_consume_submission_budget(self):
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_200_OK)

        self.assertEqual(self._submit().status_code, status.HTTP_201_CREATED)
        self.assertEqual(self._submit().status_code, status.HTTP_429_TOO_MANY_REQUESTS)

    def test_submissions_do_not_consume_read_budget(self):
        self.assertEqual(self._submit().status_code, status.HTTP_201_CREATED)

        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_429_TOO_MANY_REQUESTS)
