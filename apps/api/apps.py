# ===============================================================================
# MARKETPLACE API APP CONFIGURATION 🛠️
# ===============================================================================

from django.apps import AppConfig


class ApiConfig(AppConfig):
    """
    Configuration for the marketplace REST API.

    Thin HTTP layer over the order, redemption and ledger services:
    serializers validate payloads, services decide, and
    ``apps.api.core.responses`` maps domain errors to status codes.
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.api"
    verbose_name = "Marketplace API"
