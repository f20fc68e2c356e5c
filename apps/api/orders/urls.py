"""
Order API URLs for the optical marketplace
Optician basket submission and back-office line actions.
"""

from django.urls import path

from . import views

app_name = 'orders'

urlpatterns = [
    # Order management (opticians and admins)
    path('orders/', views.order_collection, name='order_collection'),
    path('orders/<uuid:order_id>/', views.order_detail, name='order_detail'),

    # Line actions (admins)
    path('order-items/<uuid:item_id>/confirm/', views.confirm_order_item, name='confirm_order_item'),
    path('order-items/<uuid:item_id>/cancel/', views.cancel_order_item, name='cancel_order_item'),
    path('admin/order-items/action/', views.order_item_action, name='order_item_action'),
    path('admin/orders/pending/', views.pending_orders, name='pending_orders'),
]
