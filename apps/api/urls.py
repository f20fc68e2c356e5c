# ===============================================================================
# MARKETPLACE API MAIN URLS 🚀
# ===============================================================================
#
# Central API routing, mounted at /api/ by config/urls.py.
#
# URL Structure:
#   /api/orders/, /api/order-items/   → Order submission and line actions
#   /api/redemptions/, /api/opticians/ → Redemptions and points ledger
#   /api/loyalty-products/             → Loyalty catalog
#   /api/admin/...                     → Back-office queues, summary, restock
#

from django.urls import include, path

from .dashboard import urls as dashboard_urls
from .loyalty import urls as loyalty_urls
from .orders import urls as order_urls
from .products import urls as product_urls

app_name = 'api'

# ===============================================================================
# API ROUTING 📍
# ===============================================================================

urlpatterns = [
    path('', include((order_urls, 'orders'))),
    path('', include((loyalty_urls, 'loyalty'))),
    path('', include((product_urls, 'products'))),
    path('', include((dashboard_urls, 'dashboard'))),
]
