"""
Loyalty API URLs
Redemptions, points ledger reads and adjustments, loyalty catalog.
"""

from django.urls import path

from . import views

app_name = 'loyalty'

urlpatterns = [
    # Redemptions
    path('redemptions/', views.redemption_collection, name='redemption_collection'),
    path('redemptions/<uuid:redemption_id>/', views.redemption_detail, name='redemption_detail'),
    path('redemptions/<uuid:redemption_id>/approve/', views.approve_redemption, name='approve_redemption'),
    path('redemptions/<uuid:redemption_id>/reject/', views.reject_redemption, name='reject_redemption'),
    path('redemptions/<uuid:redemption_id>/cancel/', views.cancel_redemption, name='cancel_redemption'),
    path('admin/redemptions/action/', views.redemption_action, name='redemption_action'),
    path('admin/redemptions/pending/', views.pending_redemptions, name='pending_redemptions'),

    # Points ledger
    path('opticians/<uuid:optician_id>/points/', views.points_balance, name='points_balance'),
    path('opticians/<uuid:optician_id>/points/history/', views.points_history, name='points_history'),
    path('admin/opticians/<uuid:optician_id>/points/adjust/', views.adjust_points, name='adjust_points'),

    # Catalog
    path('loyalty-products/', views.loyalty_product_list, name='loyalty_product_list'),
]
