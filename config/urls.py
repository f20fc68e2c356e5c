"""
URL configuration for the Optical Marketplace
The engine is API-only; every endpoint lives under /api/.
"""

from django.conf import settings
from django.conf.urls.static import static

# ===============================================================================
# MAIN URL PATTERNS
# ===============================================================================
from django.urls import include, path

urlpatterns = [
    # API endpoints
    path("api/", include("apps.api.urls")),
    # Browsable API login for back-office operators
    path("api-auth/", include("rest_framework.urls")),
]

# ===============================================================================
# DEVELOPMENT URLS (static files)
# ===============================================================================

if settings.DEBUG:
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)
