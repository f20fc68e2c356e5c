from django.urls import path

from . import views

app_name = 'dashboard'

urlpatterns = [
    path('admin/summary/', views.admin_summary, name='admin_summary'),
]
