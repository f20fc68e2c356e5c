"""
Order list filters
Date window on submission time for the back-office order list.
"""

import django_filters

from apps.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    createdAfter = django_filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='gte')
    createdBefore = django_filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='lt')

    class Meta:
        model = Order
        fields = ('createdAfter', 'createdBefore')
