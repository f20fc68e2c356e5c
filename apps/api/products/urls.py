from django.urls import path

from . import views

app_name = 'products'

urlpatterns = [
    path('admin/products/<uuid:product_id>/restock/', views.restock_product, name='restock_product'),
]
