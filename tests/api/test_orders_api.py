"""
Order API tests
Basket submission, back-office line actions and the error mapping to HTTP.
"""

import uuid

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from apps.orders.models import Order, OrderItem
from apps.products.models import Product
from tests.factories import create_admin, create_optician, create_order, create_product


class OrderApiTestCase(TestCase):
    """Shared users and catalog"""

    def setUp(self):
        self.client = APIClient()
        self.admin = create_admin()
        self.optician = create_optician()
        self.product = create_product(stock_qty=5, unit_price_cents=2500, loyalty_points_reward=10)

    def _confirm_url(self, item: OrderItem) -> str:
        return reverse('api:orders:confirm_order_item', args=[item.pk])

    def _cancel_url(self, item: OrderItem) -> str:
        return reverse('api:orders:cancel_order_item', args=[item.pk])


class OrderSubmissionApiTestCase(OrderApiTestCase):
    """POST /api/orders/"""

    def setUp(self):
        super().setUp()
        self.url = reverse('api:orders:order_collection')

    def _payload(self, **overrides):
        payload = {
            'opticianId': str(self.optician.pk),
            'items': [{'productId': str(self.product.pk), 'quantity': 2}],
        }
        payload.update(overrides)
        return payload

    def test_optician_submits_order(self):
        self.client.force_authenticate(self.optician.user)

        response = self.client.post(self.url, self._payload(notes='Urgent'), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        order = Order.objects.get(pk=response.data['orderId'])
        self.assertEqual(order.notes, 'Urgent')
        self.assertEqual(response.data['order']['status'], Order.AGGREGATE_PENDING)
        self.assertEqual(response.data['order']['totalCents'], 5000)
        self.assertEqual(response.data['order']['items'][0]['status'], OrderItem.STATUS_PENDING)

    def test_unauthenticated_submission_is_rejected(self):
        response = self.client.post(self.url, self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_submitting_for_another_optician_is_forbidden(self):
        stranger = create_optician(business_name='Other Shop')
        self.client.force_authenticate(stranger.user)

        response = self.client.post(self.url, self._payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'UNAUTHORIZED')
        self.assertFalse(Order.objects.exists())

    def test_malformed_payloads_are_rejected(self):
        self.client.force_authenticate(self.optician.user)
        cases = [
            self._payload(items=[]),
            self._payload(items=[{'productId': str(self.product.pk), 'quantity': 0}]),
            self._payload(items=[{'productId': 'nope', 'quantity': 1}]),
            self._payload(opticianId='nope'),
        ]
        for payload in cases:
            with self.subTest(payload=payload):
                response = self.client.post(self.url, payload, format='json')
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertEqual(response.data['error'], 'VALIDATION_ERROR')

    def test_unknown_product_is_invalid(self):
        self.client.force_authenticate(self.optician.user)

        response = self.client.post(
            self.url, self._payload(items=[{'productId': str(uuid.uuid4()), 'quantity': 1}]), format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'VALIDATION_ERROR')
        self.assertEqual(response.data['details']['index'], 0)

    def test_unknown_optician_is_not_found(self):
        self.client.force_authenticate(self.admin)

        response = self.client.post(self.url, self._payload(opticianId=str(uuid.uuid4())), format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class OrderReadApiTestCase(OrderApiTestCase):
    """GET /api/orders/ and /api/orders/<id>/"""

    def setUp(self):
        super().setUp()
        self.order = create_order(self.optician, [(self.product, 1)])
        self.other = create_optician(business_name='Other Shop')
        create_order(self.other, [(self.product, 1)])

    def test_optician_lists_only_own_orders(self):
        self.client.force_authenticate(self.optician.user)

        response = self.client.get(reverse('api:orders:order_collection'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['id'], str(self.order.pk))

    def test_admin_lists_all_orders(self):
        self.client.force_authenticate(self.admin)

        response = self.client.get(reverse('api:orders:order_collection'))

        self.assertEqual(response.data['count'], 2)

    def test_admin_filters_by_optician(self):
        self.client.force_authenticate(self.admin)

        response = self.client.get(reverse('api:orders:order_collection'), {'opticianId': str(self.other.pk)})

        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['opticianId'], str(self.other.pk))

    def test_created_window_filter(self):
        self.client.force_authenticate(self.admin)

        response = self.client.get(
            reverse('api:orders:order_collection'), {'createdAfter': '2999-01-01T00:00:00Z'}
        )

        self.assertEqual(response.data['count'], 0)

    def test_invalid_created_window_is_rejected(self):
        self.client.force_authenticate(self.admin)

        response = self.client.get(reverse('api:orders:order_collection'), {'createdAfter': 'yesterday'})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_optician_cannot_list_another_opticians_orders(self):
        self.client.force_authenticate(self.optician.user)

        response = self.client.get(reverse('api:orders:order_collection'), {'opticianId': str(self.other.pk)})

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_order_detail(self):
        self.client.force_authenticate(self.optician.user)

        response = self.client.get(reverse('api:orders:order_detail', args=[self.order.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pendingCount'], 1)
        self.assertEqual(response.data['items'][0]['stockQty'], 5)

    def test_unknown_order_is_not_found(self):
        self.client.force_authenticate(self.admin)

        response = self.client.get(reverse('api:orders:order_detail', args=[uuid.uuid4()]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class OrderItemActionApiTestCase(OrderApiTestCase):
    """Back-office confirm and cancel"""

    def setUp(self):
        super().setUp()
        self.order = create_order(self.optician, [(self.product, 3), (self.product, 3)])
        self.first, self.second = self.order.items.all()
        self.client.force_authenticate(self.admin)

    def test_confirm_returns_post_state(self):
        response = self.client.post(self._confirm_url(self.first))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['item']['status'], OrderItem.STATUS_CONFIRMED)
        self.assertEqual(response.data['item']['pointsAwarded'], 30)
        self.assertEqual(response.data['orderStatus'], Order.AGGREGATE_PENDING)
        self.assertEqual(response.data['stockQty'], 2)
        self.assertEqual(response.data['balance'], 30)

    def test_insufficient_stock_is_conflict_with_shortfall(self):
        self.client.post(self._confirm_url(self.first))

        response = self.client.post(self._confirm_url(self.second))

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'INSUFFICIENT_STOCK')
        self.assertEqual(response.data['details']['available'], 2)
        self.assertEqual(response.data['details']['shortfall'], 1)

    def test_repeated_confirm_is_conflict(self):
        self.client.post(self._confirm_url(self.first))

        response = self.client.post(self._confirm_url(self.first))

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'ALREADY_RESOLVED')
        self.assertEqual(Product.objects.get(pk=self.product.pk).stock_qty, 2)

    def test_cancel_then_order_is_fully_processed(self):
        self.client.post(self._confirm_url(self.first))

        response = self.client.post(self._cancel_url(self.second))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['orderStatus'], Order.AGGREGATE_FULLY_PROCESSED)
        self.assertEqual(response.data['stockQty'], 2)

    def test_unknown_item_is_not_found(self):
        response = self.client.post(reverse('api:orders:confirm_order_item', args=[uuid.uuid4()]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_optician_cannot_confirm(self):
        self.client.force_authenticate(self.optician.user)

        response = self.client.post(self._confirm_url(self.first))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(Product.objects.get(pk=self.product.pk).stock_qty, 5)

    def test_unauthenticated_confirm_is_rejected(self):
        self.client.force_authenticate(None)

        response = self.client.post(self._confirm_url(self.first))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_tagged_action_endpoint(self):
        url = reverse('api:orders:order_item_action')

        response = self.client.post(url, {'itemId': str(self.first.pk), 'action': 'cancel'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['item']['status'], OrderItem.STATUS_CANCELLED)

    def test_tagged_action_rejects_unknown_action(self):
        url = reverse('api:orders:order_item_action')

        response = self.client.post(url, {'itemId': str(self.first.pk), 'action': 'ship'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_pending_orders_queue(self):
        response = self.client.get(reverse('api:orders:pending_orders'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)


class RestockApiTestCase(OrderApiTestCase):
    """POST /api/admin/products/<id>/restock/"""

    def test_admin_restocks(self):
        self.client.force_authenticate(self.admin)

        response = self.client.post(
            reverse('api:products:restock_product', args=[self.product.pk]), {'quantity': 4}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['stockQty'], 9)

    def test_restock_requires_positive_quantity(self):
        self.client.force_authenticate(self.admin)

        response = self.client.post(
            reverse('api:products:restock_product', args=[self.product.pk]), {'quantity': 0}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_optician_cannot_restock(self):
        self.client.force_authenticate(self.optician.user)

        response = self.client.post(
            reverse('api:products:restock_product', args=[self.product.pk]), {'quantity': 4}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class AccessErrorBodyTestCase(TestCase):
    """Permission refusals share the service error body"""

    def test_unauthenticated_body(self):
        response = APIClient().get(reverse('api:orders:order_collection'))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'UNAUTHORIZED')
        self.assertIn('WWW-Authenticate', response)
